"""Church user model for authentication and authorization."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin

class UserRole(Enum):
    """User roles enumeration."""
    ADMIN = 'admin'
    VOLUNTEER = 'volunteer'
    DATA_VIEWER = 'data_viewer'

class ChurchUser(ChurchScopedMixin, BaseModel):
    """Staff account belonging to exactly one church."""

    __tablename__ = 'church_users'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)

    # Role
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.ADMIN)

    # Security and Authentication
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)
    failed_login_attempts = db.Column(db.Integer, default=0)

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        default_exclude = ['password_hash', 'failed_login_attempts']
        exclude = (exclude or []) + default_exclude
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<ChurchUser {self.email}>'
