"""Church (tenant) model."""
from datetime import timedelta
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel
from churchconnect.utils.helpers import utcnow

class SubscriptionTier(Enum):
    """Subscription tiers enumeration."""
    TRIAL = 'trial'
    STARTER = 'starter'
    GROWTH = 'growth'
    ENTERPRISE = 'enterprise'
    SUSPENDED = 'suspended'

class Church(BaseModel):
    """A tenant. Every other record is partitioned by church_id."""

    __tablename__ = 'churches'

    name = db.Column(db.String(255), nullable=False)
    subdomain = db.Column(db.String(50), unique=True, nullable=True, index=True)

    # Branding
    logo_url = db.Column(db.Text, nullable=True)
    banner_url = db.Column(db.Text, nullable=True)
    brand_color = db.Column(db.String(7), default='#6366f1')

    # Subscription
    subscription_tier = db.Column(db.Enum(SubscriptionTier), nullable=False, default=SubscriptionTier.TRIAL)
    trial_start_date = db.Column(db.DateTime, default=utcnow)
    trial_end_date = db.Column(db.DateTime, nullable=True)
    subscription_start_date = db.Column(db.DateTime, nullable=True)
    max_members = db.Column(db.Integer, default=100, nullable=False)

    # Kiosk
    kiosk_mode_enabled = db.Column(db.Boolean, default=False, nullable=False)
    kiosk_session_timeout = db.Column(db.Integer, default=60, nullable=False)  # minutes

    # Relationships
    users = db.relationship('ChurchUser', backref='church', lazy='dynamic', cascade='all, delete-orphan')
    events = db.relationship('Event', backref='church', lazy='dynamic', cascade='all, delete-orphan')
    members = db.relationship('Member', backref='church', lazy='dynamic', cascade='all, delete-orphan')

    def start_trial(self, days: int) -> None:
        self.subscription_tier = SubscriptionTier.TRIAL
        self.trial_start_date = utcnow()
        self.trial_end_date = self.trial_start_date + timedelta(days=days)

    def is_trial_active(self) -> bool:
        """Trial churches keep every feature until the trial end date."""
        return (
            self.subscription_tier == SubscriptionTier.TRIAL
            and self.trial_end_date is not None
            and utcnow() < self.trial_end_date
        )

    def trial_days_remaining(self) -> int:
        if not self.is_trial_active():
            return 0
        remaining = self.trial_end_date - utcnow()
        return max(0, remaining.days + (1 if remaining.seconds else 0))

    def is_suspended(self) -> bool:
        return self.subscription_tier == SubscriptionTier.SUSPENDED

    def member_count(self) -> int:
        return self.members.count()

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['isTrialActive'] = self.is_trial_active()
        result['trialDaysRemaining'] = self.trial_days_remaining()
        return result

    def __repr__(self) -> str:
        return f'<Church {self.name}>'
