"""Kiosk session: a time-boxed self-service check-in window."""
from enum import Enum
from sqlalchemy import text
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin
from churchconnect.utils.helpers import utcnow

class KioskEndReason(Enum):
    """Why a kiosk session stopped."""
    ENDED = 'ended'
    EXPIRED = 'expired'
    REPLACED = 'replaced'
    DISABLED = 'disabled'

class KioskSession(ChurchScopedMixin, BaseModel):
    """Kiosk session scoped to the events active when it started."""

    __tablename__ = 'kiosk_sessions'
    __table_args__ = (
        # At most one active session per church
        db.Index(
            'uq_kiosk_sessions_one_active',
            'church_id',
            unique=True,
            sqlite_where=text('is_active = 1'),
            postgresql_where=text('is_active'),
        ),
    )

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    started_by = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)
    started_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    event_ids = db.Column(db.JSON, nullable=False, default=list)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    ended_at = db.Column(db.DateTime, nullable=True)
    end_reason = db.Column(db.Enum(KioskEndReason), nullable=True)

    church = db.relationship('Church')

    def is_expired(self, now=None) -> bool:
        """Check if session is past its expiry."""
        return (now or utcnow()) >= self.expires_at

    def is_live(self, now=None) -> bool:
        return self.is_active and not self.is_expired(now)

    def time_remaining(self, now=None) -> int:
        """Whole seconds left, never negative."""
        return max(0, int((self.expires_at - (now or utcnow())).total_seconds()))

    def covers_event(self, event_id: int) -> bool:
        return event_id in (self.event_ids or [])

    def close(self, reason: KioskEndReason) -> None:
        self.is_active = False
        self.ended_at = utcnow()
        self.end_reason = reason

    def __repr__(self) -> str:
        return f'<KioskSession {self.id} church={self.church_id}>'
