"""Visitor model."""
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin
from churchconnect.models.member import Gender, AgeGroup
from churchconnect.utils.helpers import today

class FollowUpStatus(Enum):
    """Visitor follow-up pipeline."""
    PENDING = 'pending'
    CONTACTED = 'contacted'
    MEMBER = 'member'

# Explicit forward moves only
FOLLOW_UP_TRANSITIONS = {
    FollowUpStatus.PENDING: {FollowUpStatus.CONTACTED, FollowUpStatus.MEMBER},
    FollowUpStatus.CONTACTED: {FollowUpStatus.MEMBER},
    FollowUpStatus.MEMBER: set(),
}

class Visitor(ChurchScopedMixin, BaseModel):
    """A guest who is not (yet) on the church roll."""

    __tablename__ = 'visitors'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)

    name = db.Column(db.String(200), nullable=False)
    gender = db.Column(db.Enum(Gender), nullable=True)
    age_group = db.Column(db.Enum(AgeGroup), nullable=True)
    address = db.Column(db.Text, nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    whatsapp_number = db.Column(db.String(30), nullable=True)
    birthday = db.Column(db.Date, nullable=True)
    wedding_anniversary = db.Column(db.Date, nullable=True)

    prayer_points = db.Column(db.Text, nullable=True)
    how_did_you_hear_about_us = db.Column(db.Text, nullable=True)
    comments = db.Column(db.Text, nullable=True)
    visit_date = db.Column(db.Date, default=today, nullable=False)

    follow_up_status = db.Column(db.Enum(FollowUpStatus), default=FollowUpStatus.PENDING, nullable=False)
    assigned_to = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)

    member = db.relationship('Member', foreign_keys=[member_id])

    def can_transition_to(self, status: FollowUpStatus) -> bool:
        return status in FOLLOW_UP_TRANSITIONS[self.follow_up_status]

    def __repr__(self) -> str:
        return f'<Visitor {self.name}>'
