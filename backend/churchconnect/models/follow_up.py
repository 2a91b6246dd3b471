"""Absence tracking for pastoral follow-up."""
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin

class FollowUpRecord(ChurchScopedMixin, BaseModel):
    """Per-member absence counters."""

    __tablename__ = 'follow_up_records'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'), nullable=False, unique=True)

    last_contact_date = db.Column(db.DateTime, nullable=True)
    contact_method = db.Column(db.String(20), nullable=True)  # sms, email
    consecutive_absences = db.Column(db.Integer, default=0, nullable=False)
    needs_follow_up = db.Column(db.Boolean, default=False, nullable=False)

    member = db.relationship('Member', backref=db.backref('follow_up', uselist=False, passive_deletes=True))

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        if self.member is not None:
            result['member'] = {
                'id': self.member.id,
                'fullName': self.member.full_name,
                'phone': self.member.phone,
                'email': self.member.email,
            }
        return result
