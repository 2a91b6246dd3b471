"""Attendance model shared by every check-in channel."""
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin
from churchconnect.utils.helpers import today, utcnow

class CheckInMethod(Enum):
    """Channel that produced the record."""
    MANUAL = 'manual'
    BIOMETRIC = 'biometric'
    FAMILY = 'family'
    EXTERNAL = 'external'
    KIOSK = 'kiosk'
    VISITOR = 'visitor'

class AttendanceRecord(ChurchScopedMixin, BaseModel):
    """One person present at one event on one day."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('member_id', 'event_id', 'attendance_date', name='uq_attendance_member_event_date'),
        db.UniqueConstraint('visitor_id', 'event_id', 'attendance_date', name='uq_attendance_visitor_event_date'),
        db.CheckConstraint('(member_id IS NULL) <> (visitor_id IS NULL)', name='ck_attendance_one_person'),
    )

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'), nullable=True, index=True)
    visitor_id = db.Column(db.Integer, db.ForeignKey('visitors.id', ondelete='CASCADE'), nullable=True, index=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='SET NULL'), nullable=True, index=True)

    attendance_date = db.Column(db.Date, default=today, nullable=False, index=True)
    check_in_time = db.Column(db.DateTime, default=utcnow, nullable=False)
    check_in_method = db.Column(db.Enum(CheckInMethod), default=CheckInMethod.MANUAL, nullable=False)
    is_guest = db.Column(db.Boolean, default=False, nullable=False)

    member = db.relationship('Member', backref=db.backref('attendance_records', lazy='dynamic', passive_deletes=True))
    visitor = db.relationship('Visitor', backref=db.backref('attendance_records', lazy='dynamic', passive_deletes=True))

    @property
    def person_name(self) -> str:
        if self.member is not None:
            return self.member.full_name
        if self.visitor is not None:
            return self.visitor.name
        return 'Unknown'

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['personName'] = self.person_name
        result['eventName'] = self.event.name if self.event else None
        return result

    def __repr__(self) -> str:
        return f'<AttendanceRecord {self.member_id or self.visitor_id}-{self.event_id}-{self.attendance_date}>'
