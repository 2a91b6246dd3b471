"""Messaging provider configuration and delivery log."""
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin

class ProviderType(Enum):
    SMS = 'sms'
    EMAIL = 'email'

class DeliveryStatus(Enum):
    SENT = 'sent'
    FAILED = 'failed'

class CommunicationProvider(ChurchScopedMixin, BaseModel):
    """SMS or email gateway configured by a church admin."""

    __tablename__ = 'communication_providers'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    provider_type = db.Column(db.Enum(ProviderType), nullable=False)
    provider_name = db.Column(db.String(50), nullable=False)  # twilio, sendgrid, webhook, console
    display_name = db.Column(db.String(100), nullable=False)

    # Fernet token of the JSON credentials
    encrypted_credentials = db.Column(db.Text, nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_primary = db.Column(db.Boolean, default=False, nullable=False)

    # Last connectivity test
    test_status = db.Column(db.String(20), nullable=True)  # success, failed
    test_message = db.Column(db.Text, nullable=True)
    last_tested_at = db.Column(db.DateTime, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)

    def to_dict(self, exclude: list = None) -> dict:
        exclude = (exclude or []) + ['encrypted_credentials']
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<CommunicationProvider {self.provider_name}:{self.provider_type.value}>'

class MessageDelivery(ChurchScopedMixin, BaseModel):
    """One attempted send through a provider."""

    __tablename__ = 'message_deliveries'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey('communication_providers.id', ondelete='SET NULL'), nullable=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)

    recipient = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum(DeliveryStatus), nullable=False)
    provider_message_id = db.Column(db.String(255), nullable=True)
    error_message = db.Column(db.Text, nullable=True)
