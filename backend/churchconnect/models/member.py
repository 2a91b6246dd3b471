"""Member model with the parent/child family link."""
from enum import Enum
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin

class Gender(Enum):
    """Gender enumeration."""
    MALE = 'male'
    FEMALE = 'female'

class AgeGroup(Enum):
    """Age group enumeration."""
    CHILD = 'child'
    ADOLESCENT = 'adolescent'
    ADULT = 'adult'

class Member(ChurchScopedMixin, BaseModel):
    """A person on the church roll."""

    __tablename__ = 'members'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)

    # Personal Information
    title = db.Column(db.String(20), nullable=True)
    first_name = db.Column(db.String(100), nullable=False)
    surname = db.Column(db.String(100), nullable=False)
    gender = db.Column(db.Enum(Gender), nullable=False)
    age_group = db.Column(db.Enum(AgeGroup), nullable=False)

    # Contact
    phone = db.Column(db.String(30), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    whatsapp_number = db.Column(db.String(30), nullable=True)
    address = db.Column(db.Text, nullable=True)

    # Dates
    date_of_birth = db.Column(db.Date, nullable=True)
    wedding_anniversary = db.Column(db.Date, nullable=True)

    is_current_member = db.Column(db.Boolean, default=True, nullable=False)
    fingerprint_id = db.Column(db.String(255), nullable=True, index=True)

    # Family
    parent_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True, index=True)
    children = db.relationship(
        'Member',
        backref=db.backref('parent', remote_side='Member.id'),
        lazy='dynamic'
    )

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.surname}'

    def to_dict(self, exclude: list = None, include_children: bool = False) -> dict:
        result = super().to_dict(exclude=exclude)
        result['fullName'] = self.full_name
        if include_children:
            result['children'] = [child.to_dict() for child in self.ordered_children()]
        return result

    def to_public_dict(self, include_children: bool = True) -> dict:
        """Minimal view for unauthenticated and kiosk callers."""
        result = {
            'id': self.id,
            'title': self.title,
            'firstName': self.first_name,
            'surname': self.surname,
            'gender': self.gender.value,
            'ageGroup': self.age_group.value,
            'parentId': self.parent_id,
        }
        if include_children:
            result['children'] = [
                child.to_public_dict(include_children=False)
                for child in self.ordered_children()
            ]
        return result

    def ordered_children(self):
        return self.children.order_by(Member.first_name, Member.surname).all()

    def __repr__(self) -> str:
        return f'<Member {self.full_name}>'
