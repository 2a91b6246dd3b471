"""Visitor registry and follow-up funnel."""
from typing import Dict, List, Optional
from flask import current_app
from churchconnect import db
from churchconnect.models import (
    AttendanceRecord, CheckInMethod, Member, Visitor, FollowUpStatus,
    ChurchUser, Gender, AgeGroup
)
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.errors import NotFoundError, ValidationError
from churchconnect.utils.helpers import parse_date
from churchconnect.utils.validators import Validator, ensure_valid

VISITOR_FIELDS = {
    'name': 'name',
    'gender': 'gender',
    'ageGroup': 'age_group',
    'address': 'address',
    'email': 'email',
    'phone': 'phone',
    'whatsappNumber': 'whatsapp_number',
    'birthday': 'birthday',
    'weddingAnniversary': 'wedding_anniversary',
    'prayerPoints': 'prayer_points',
    'howDidYouHearAboutUs': 'how_did_you_hear_about_us',
    'comments': 'comments',
    'visitDate': 'visit_date',
    'assignedTo': 'assigned_to',
}

STATUSES = [s.value for s in FollowUpStatus]

class VisitorService:
    """Service for managing visitors."""

    @staticmethod
    def _values(church_id: int, data: Dict, partial: bool = False) -> Dict:
        data = {key: (None if value == '' else value) for key, value in data.items()}

        if not partial or 'name' in data:
            ensure_valid(Validator.validate_name(data.get('name'), 'Name'))
        if data.get('gender') is not None:
            ensure_valid(Validator.validate_choice(data['gender'], [g.value for g in Gender], 'Gender'))
        if data.get('ageGroup') is not None:
            ensure_valid(Validator.validate_choice(data['ageGroup'], [a.value for a in AgeGroup], 'Age group'))
        if data.get('email') and not Validator.validate_email(data['email']):
            raise ValidationError("Invalid email format")
        for field in ('phone', 'whatsappNumber'):
            if data.get(field) and not Validator.validate_phone(str(data[field])):
                raise ValidationError(f"Invalid {field} format")
        if data.get('assignedTo') is not None and not ChurchUser.get_for_church(data['assignedTo'], church_id):
            raise ValidationError("Assigned user not found in this church")

        values = {}
        for field, column in VISITOR_FIELDS.items():
            if field not in data:
                continue
            value = data[field]
            if value is not None:
                if column == 'gender':
                    value = Gender(value)
                elif column == 'age_group':
                    value = AgeGroup(value)
                elif column in ('birthday', 'wedding_anniversary', 'visit_date'):
                    value = parse_date(value, field)
                elif isinstance(value, str):
                    value = value.strip()
            values[column] = value

        if 'visit_date' in values and values['visit_date'] is None:
            del values['visit_date']
        return values

    @staticmethod
    def create_visitor(church_id: int, data: Dict, commit: bool = True) -> Visitor:
        visitor = Visitor(church_id=church_id, **VisitorService._values(church_id, data))
        db.session.add(visitor)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return visitor

    @staticmethod
    def get_visitor(church_id: int, visitor_id: int) -> Visitor:
        visitor = Visitor.get_for_church(visitor_id, church_id)
        if not visitor:
            raise NotFoundError("Visitor not found")
        return visitor

    @staticmethod
    def list_visitors(church_id: int, status: Optional[str] = None) -> List[Visitor]:
        query = Visitor.for_church(church_id)
        if status:
            if status not in STATUSES:
                raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
            query = query.filter(Visitor.follow_up_status == FollowUpStatus(status))
        return query.order_by(Visitor.visit_date.desc(), Visitor.id.desc()).all()

    @staticmethod
    def update_visitor(church_id: int, visitor_id: int, data: Dict) -> Visitor:
        """Update details and, when asked, advance the follow-up status."""
        visitor = VisitorService.get_visitor(church_id, visitor_id)
        values = VisitorService._values(church_id, data, partial=True)

        status = data.get('followUpStatus')
        if status is not None and status != visitor.follow_up_status.value:
            if status not in STATUSES:
                raise ValidationError(f"followUpStatus must be one of: {', '.join(STATUSES)}")
            target = FollowUpStatus(status)
            if not visitor.can_transition_to(target):
                raise ValidationError(
                    f"Cannot change follow-up status from {visitor.follow_up_status.value} to {status}"
                )
            values['follow_up_status'] = target

            if target == FollowUpStatus.MEMBER and data.get('memberId') is not None:
                member = Member.get_for_church(data['memberId'], church_id)
                if not member:
                    raise ValidationError("Member not found in this church")
                values['member_id'] = member.id
                VisitorService.move_attendance_to_member(visitor, member)

        visitor.update(**values)
        return visitor

    @staticmethod
    def move_attendance_to_member(visitor: Visitor, member: Member) -> int:
        """Re-point visitor attendance to the member, skipping covered days."""
        moved = 0
        records = AttendanceRecord.query.filter_by(visitor_id=visitor.id).all()
        for record in records:
            covered = AttendanceService.find_existing(
                member.id, None, record.event_id, record.attendance_date
            )
            if covered:
                continue
            record.visitor_id = None
            record.member_id = member.id
            record.is_guest = False
            moved += 1

        current_app.logger.info('Moved %s attendance records from visitor %s to member %s', moved, visitor.id, member.id)
        return moved

    @staticmethod
    def check_in_visitor(church_id: int, data: Dict) -> Dict:
        """Register a visitor and record their attendance."""
        event_id = data.get('eventId')
        AttendanceService.resolve_event(church_id, event_id)

        visitor = VisitorService.create_visitor(church_id, data)
        record = AttendanceService.record_check_in(
            church_id, CheckInMethod.VISITOR, visitor_id=visitor.id,
            event_id=event_id, is_guest=True
        )
        return {
            'visitor': visitor.to_dict(),
            'attendanceRecord': record.to_dict(),
        }
