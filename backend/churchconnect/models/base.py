"""Base model class with common functionality."""
from datetime import datetime
from typing import Dict, Any, Optional
from churchconnect import db
from churchconnect.utils.helpers import camelize, serialize_value, utcnow

class BaseModel(db.Model):
    """Base model class with common fields and methods."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def save(self) -> 'BaseModel':
        """Save instance to database."""
        db.session.add(self)
        db.session.commit()
        return self

    def delete(self) -> None:
        """Delete instance from database."""
        db.session.delete(self)
        db.session.commit()

    def update(self, **kwargs) -> 'BaseModel':
        """Update instance with provided data."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

        self.updated_at = utcnow()
        db.session.commit()
        return self

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        """Convert instance to a camelCase dictionary."""
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            key = column.name
            if key not in exclude:
                result[camelize(key)] = serialize_value(getattr(self, key))

        return result

    @classmethod
    def get_by_id(cls, id: int) -> Optional['BaseModel']:
        """Get instance by ID."""
        return db.session.get(cls, id)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'

class ChurchScopedMixin:
    """Lookups that never cross the tenant boundary."""

    @classmethod
    def get_for_church(cls, id: int, church_id: int):
        """Get instance by ID only when it belongs to the church."""
        if id is None:
            return None
        return cls.query.filter_by(id=id, church_id=church_id).first()

    @classmethod
    def for_church(cls, church_id: int):
        return cls.query.filter_by(church_id=church_id)
