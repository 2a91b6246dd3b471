"""Event management service."""
from datetime import time
from typing import Dict, List
from sqlalchemy import func
from churchconnect import db
from churchconnect.models import AttendanceRecord, Event, EventType
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.errors import NotFoundError, ValidationError
from churchconnect.utils.helpers import parse_bool, parse_date
from churchconnect.utils.validators import Validator, ensure_valid

EVENT_TYPES = [t.value for t in EventType]

EVENT_FIELDS = {
    'name': 'name',
    'eventType': 'event_type',
    'description': 'description',
    'organizer': 'organizer',
    'location': 'location',
    'isRecurring': 'is_recurring',
    'recurrencePattern': 'recurrence_pattern',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'startTime': 'start_time',
    'endTime': 'end_time',
    'maxAttendees': 'max_attendees',
    'isActive': 'is_active',
}

def _parse_time(value: str, field: str) -> time:
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use HH:MM")

class EventService:
    """Service for managing events."""

    @staticmethod
    def _values(data: Dict, partial: bool = False) -> Dict:
        data = {key: (None if value == '' else value) for key, value in data.items()}

        if not partial or 'name' in data:
            ensure_valid(Validator.validate_name(data.get('name'), 'Event name'))
        if data.get('eventType') is not None:
            ensure_valid(Validator.validate_choice(data['eventType'], EVENT_TYPES, 'Event type'))

        values = {}
        for field, column in EVENT_FIELDS.items():
            if field not in data:
                continue
            value = data[field]
            if value is not None:
                if column == 'event_type':
                    value = EventType(value)
                elif column in ('start_date', 'end_date'):
                    value = parse_date(value, field)
                elif column in ('start_time', 'end_time'):
                    value = _parse_time(value, field)
                elif column in ('is_recurring', 'is_active'):
                    value = parse_bool(value)
                elif column == 'max_attendees':
                    try:
                        value = int(value)
                    except (TypeError, ValueError):
                        raise ValidationError("maxAttendees must be a number")
                    if value < 1:
                        raise ValidationError("maxAttendees must be positive")
                elif isinstance(value, str):
                    value = value.strip()
            elif column in ('event_type', 'is_recurring', 'is_active'):
                continue
            values[column] = value

        start, end = values.get('start_date'), values.get('end_date')
        if start and end and end < start:
            raise ValidationError("endDate must not be before startDate")
        return values

    @staticmethod
    def create_event(church_id: int, user_id: int, data: Dict) -> Event:
        event = Event(church_id=church_id, created_by=user_id, **EventService._values(data))
        return event.save()

    @staticmethod
    def get_event(church_id: int, event_id: int) -> Event:
        event = Event.get_for_church(event_id, church_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    def update_event(church_id: int, event_id: int, data: Dict) -> Event:
        event = EventService.get_event(church_id, event_id)
        event.update(**EventService._values(data, partial=True))
        return event

    @staticmethod
    def delete_event(church_id: int, event_id: int) -> None:
        event = EventService.get_event(church_id, event_id)
        AttendanceRecord.query.filter_by(event_id=event.id).update(
            {AttendanceRecord.event_id: None}, synchronize_session=False
        )
        event.delete()

    @staticmethod
    def list_events(church_id: int, active_only: bool = False) -> List[Event]:
        query = Event.for_church(church_id)
        if active_only:
            query = query.filter(Event.is_active.is_(True))
        return query.order_by(Event.name).all()

    @staticmethod
    def attendance_counts(church_id: int) -> List[Dict]:
        """Total check-ins per event."""
        rows = db.session.query(
            Event.id, Event.name, func.count(AttendanceRecord.id)
        ).outerjoin(
            AttendanceRecord, AttendanceRecord.event_id == Event.id
        ).filter(
            Event.church_id == church_id
        ).group_by(Event.id, Event.name).order_by(Event.name).all()

        return [
            {'eventId': event_id, 'eventName': name, 'attendanceCount': count}
            for event_id, name, count in rows
        ]

    @staticmethod
    def attendance_stats(church_id: int, event_id: int) -> Dict:
        event = EventService.get_event(church_id, event_id)
        records = AttendanceRecord.query.filter_by(church_id=church_id, event_id=event.id).all()

        dates = sorted({record.attendance_date for record in records})
        methods: Dict[str, int] = {}
        for record in records:
            methods[record.check_in_method.value] = methods.get(record.check_in_method.value, 0) + 1

        stats = AttendanceService.demographics(records)
        stats.update({
            'eventId': event.id,
            'eventName': event.name,
            'members': sum(1 for record in records if record.member_id is not None),
            'visitors': sum(1 for record in records if record.visitor_id is not None),
            'byMethod': methods,
            'sessions': len(dates),
            'lastAttendanceDate': dates[-1].isoformat() if dates else None,
        })
        return stats
