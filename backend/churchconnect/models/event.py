"""Event model with external check-in fields."""
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin

class EventType(Enum):
    """Event types enumeration."""
    SUNDAY_SERVICE = 'sunday_service'
    BIBLE_STUDY = 'bible_study'
    PRAYER_MEETING = 'prayer_meeting'
    YOUTH_SERVICE = 'youth_service'
    SPECIAL_EVENT = 'special_event'
    OTHER = 'other'

class Event(ChurchScopedMixin, BaseModel):
    """A service or gathering members check in to."""

    __tablename__ = 'events'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)

    name = db.Column(db.String(200), nullable=False)
    event_type = db.Column(db.Enum(EventType), nullable=False, default=EventType.SUNDAY_SERVICE)
    description = db.Column(db.Text, nullable=True)
    organizer = db.Column(db.String(200), nullable=True)
    location = db.Column(db.String(255), nullable=True)

    # Schedule
    is_recurring = db.Column(db.Boolean, default=False, nullable=False)
    recurrence_pattern = db.Column(db.String(50), nullable=True)  # weekly, monthly
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)
    max_attendees = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)

    # External check-in
    external_checkin_enabled = db.Column(db.Boolean, default=False, nullable=False)
    external_checkin_url = db.Column(db.String(64), unique=True, nullable=True, index=True)
    external_checkin_pin = db.Column(db.String(6), nullable=True)

    attendance_records = db.relationship('AttendanceRecord', backref='event', lazy='dynamic')

    def to_dict(self, exclude: list = None) -> dict:
        # The PIN is only shown through the external check-in admin read
        exclude = (exclude or []) + ['external_checkin_pin']
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<Event {self.name}>'
