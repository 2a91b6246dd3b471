"""Attendance recording shared by every check-in channel."""
from datetime import date
from typing import Dict, List, Optional
from flask import current_app
from sqlalchemy.exc import IntegrityError
from churchconnect import db
from churchconnect.models import (
    AttendanceRecord, CheckInMethod, Event, Member, Visitor
)
from churchconnect.utils.errors import (
    DuplicateCheckInError, NotFoundError, ValidationError, AuthorizationError
)
from churchconnect.utils.helpers import today

class AttendanceService:
    """Service for creating and summarising attendance records."""

    @staticmethod
    def resolve_event(church_id: int, event_id: Optional[int]) -> Optional[Event]:
        """Event must belong to the church and be active."""
        if event_id is None:
            return None
        event = Event.get_for_church(event_id, church_id)
        if not event:
            raise NotFoundError("Event not found")
        if not event.is_active:
            raise ValidationError("Event is not active")
        return event

    @staticmethod
    def find_existing(
        member_id: Optional[int],
        visitor_id: Optional[int],
        event_id: Optional[int],
        attendance_date: date
    ) -> Optional[AttendanceRecord]:
        query = AttendanceRecord.query.filter_by(event_id=event_id, attendance_date=attendance_date)
        if member_id is not None:
            query = query.filter_by(member_id=member_id)
        else:
            query = query.filter_by(visitor_id=visitor_id)
        return query.first()

    @staticmethod
    def record_check_in(
        church_id: int,
        method: CheckInMethod,
        member_id: Optional[int] = None,
        visitor_id: Optional[int] = None,
        event_id: Optional[int] = None,
        attendance_date: Optional[date] = None,
        is_guest: bool = False
    ) -> AttendanceRecord:
        """
        Create one attendance record.

        Raises DuplicateCheckInError when the person already has a record
        for the event on that day, whichever path detects it.
        """
        if (member_id is None) == (visitor_id is None):
            raise ValidationError("Provide exactly one of memberId or visitorId")

        if member_id is not None:
            if not Member.get_for_church(member_id, church_id):
                raise NotFoundError("Member not found")
        elif not Visitor.get_for_church(visitor_id, church_id):
            raise NotFoundError("Visitor not found")

        AttendanceService.resolve_event(church_id, event_id)
        attendance_date = attendance_date or today()

        if AttendanceService.find_existing(member_id, visitor_id, event_id, attendance_date):
            raise DuplicateCheckInError()

        record = AttendanceRecord(
            church_id=church_id,
            member_id=member_id,
            visitor_id=visitor_id,
            event_id=event_id,
            attendance_date=attendance_date,
            check_in_method=method,
            is_guest=is_guest
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateCheckInError()

        current_app.logger.info(
            'Check-in %s: church=%s member=%s visitor=%s event=%s',
            method.value, church_id, member_id, visitor_id, event_id
        )
        return record

    @staticmethod
    def family_check_in(
        church_id: int,
        parent_id: int,
        children_ids: Optional[List[int]] = None,
        event_id: Optional[int] = None,
        method: CheckInMethod = CheckInMethod.FAMILY,
        public: bool = False
    ) -> Dict:
        """
        Check in a parent and children.

        children_ids None means every child of the parent. Duplicates are
        reported per person and never abort the batch.
        """
        if parent_id is None:
            raise ValidationError("parentId is required")
        parent = Member.get_for_church(parent_id, church_id)
        if not parent:
            raise NotFoundError("Parent not found")

        AttendanceService.resolve_event(church_id, event_id)

        all_children = parent.ordered_children()
        if children_ids is None:
            selected = all_children
        else:
            by_id = {child.id: child for child in all_children}
            unknown = [cid for cid in children_ids if cid not in by_id]
            if unknown:
                raise ValidationError("Selected children must belong to the parent", payload={'invalidChildIds': unknown})
            selected = [by_id[cid] for cid in children_ids]

        results = []
        for person in [parent] + selected:
            try:
                record = AttendanceService.record_check_in(
                    church_id, method, member_id=person.id, event_id=event_id
                )
                results.append({
                    'memberId': person.id,
                    'name': person.full_name,
                    'status': 'checked_in',
                    'checkInTime': record.check_in_time.isoformat(),
                })
            except DuplicateCheckInError:
                results.append({
                    'memberId': person.id,
                    'name': person.full_name,
                    'status': 'already_checked_in',
                })

        def serialize(member):
            return member.to_public_dict(include_children=False) if public else member.to_dict()

        checked_in = sum(1 for result in results if result['status'] == 'checked_in')
        return {
            'success': True,
            'parent': serialize(parent),
            'children': [serialize(child) for child in selected],
            'results': results,
            'attendanceRecords': checked_in,
        }

    @staticmethod
    def records_for_date(church_id: int, attendance_date: date) -> List[AttendanceRecord]:
        return AttendanceRecord.query.filter_by(
            church_id=church_id, attendance_date=attendance_date
        ).order_by(AttendanceRecord.check_in_time.desc()).all()

    @staticmethod
    def demographics(records: List[AttendanceRecord]) -> Dict[str, int]:
        """Count records by gender and age group; visitors use their own fields."""
        stats = {'total': len(records), 'male': 0, 'female': 0, 'child': 0, 'adolescent': 0, 'adult': 0}
        for record in records:
            person = record.member if record.member is not None else record.visitor
            if person is None:
                continue
            if person.gender is not None:
                stats[person.gender.value] += 1
            if person.age_group is not None:
                stats[person.age_group.value] += 1
        return stats

    @staticmethod
    def stats_for_date(church_id: int, attendance_date: date) -> Dict[str, int]:
        return AttendanceService.demographics(
            AttendanceService.records_for_date(church_id, attendance_date)
        )

    @staticmethod
    def delete_record(church_id: int, record_id: int) -> None:
        record = AttendanceRecord.get_for_church(record_id, church_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        record.delete()

    @staticmethod
    def member_history(church_id: int, member_id: int, limit: int = 10) -> List[AttendanceRecord]:
        if not Member.get_for_church(member_id, church_id):
            raise NotFoundError("Member not found")
        return AttendanceRecord.query.filter_by(
            church_id=church_id, member_id=member_id
        ).order_by(
            AttendanceRecord.attendance_date.desc(),
            AttendanceRecord.check_in_time.desc()
        ).limit(limit).all()

    @staticmethod
    def fingerprint_scan(church_id: int, fingerprint_id: str, event_id: Optional[int] = None) -> Dict:
        """Identify a member by fingerprint and check them in."""
        if not fingerprint_id:
            raise ValidationError("fingerprintId is required")

        member = Member.query.filter_by(church_id=church_id, fingerprint_id=fingerprint_id).first()
        if not member:
            return {
                'member': None,
                'checkInSuccess': False,
                'scannedFingerprintId': fingerprint_id,
                'message': 'Fingerprint not recognized',
            }

        try:
            AttendanceService.record_check_in(
                church_id, CheckInMethod.BIOMETRIC, member_id=member.id, event_id=event_id
            )
        except DuplicateCheckInError as error:
            return {
                'member': member.to_dict(),
                'checkInSuccess': False,
                'isDuplicate': True,
                'message': error.message,
            }

        return {
            'member': member.to_dict(),
            'checkInSuccess': True,
            'message': 'Check-in successful',
        }

    @staticmethod
    def ensure_event_in_scope(session, event_id: int) -> Event:
        """Kiosk check-ins only reach events captured at session start."""
        if event_id is None:
            raise ValidationError("eventId is required")
        if not session.covers_event(event_id):
            raise AuthorizationError("Event is not available in this kiosk session")
        event = Event.get_for_church(event_id, session.church_id)
        if not event or not event.is_active:
            raise AuthorizationError("Event is no longer active")
        return event
