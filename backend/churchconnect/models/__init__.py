"""Models package with all models."""
from .base import BaseModel
from .church import Church, SubscriptionTier
from .user import ChurchUser, UserRole
from .member import Member, Gender, AgeGroup
from .visitor import Visitor, FollowUpStatus
from .event import Event, EventType
from .attendance import AttendanceRecord, CheckInMethod
from .kiosk_session import KioskSession, KioskEndReason
from .follow_up import FollowUpRecord
from .communication import CommunicationProvider, MessageDelivery, ProviderType, DeliveryStatus
from .report import ReportConfig, ReportRun

__all__ = [
    'BaseModel', 'Church', 'SubscriptionTier', 'ChurchUser', 'UserRole',
    'Member', 'Gender', 'AgeGroup', 'Visitor', 'FollowUpStatus',
    'Event', 'EventType', 'AttendanceRecord', 'CheckInMethod',
    'KioskSession', 'KioskEndReason', 'FollowUpRecord',
    'CommunicationProvider', 'MessageDelivery', 'ProviderType', 'DeliveryStatus',
    'ReportConfig', 'ReportRun'
]
