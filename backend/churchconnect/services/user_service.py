"""Staff account management within a church."""
from typing import Dict, List

from churchconnect.models import ChurchUser, UserRole
from churchconnect.utils.errors import AuthorizationError, NotFoundError, ValidationError
from churchconnect.utils.helpers import parse_bool
from churchconnect.utils.validators import Validator, ensure_valid

ROLES = [r.value for r in UserRole]

class UserService:

    @staticmethod
    def list_users(church_id: int) -> List[ChurchUser]:
        return ChurchUser.for_church(church_id).order_by(ChurchUser.first_name, ChurchUser.last_name).all()

    @staticmethod
    def get_user(church_id: int, user_id: int) -> ChurchUser:
        user = ChurchUser.get_for_church(user_id, church_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _email(value, user_id: int = None) -> str:
        email = (value or '').lower().strip()
        if not Validator.validate_email(email):
            raise ValidationError("Invalid email format")
        existing = ChurchUser.query.filter_by(email=email).first()
        if existing and existing.id != user_id:
            raise ValidationError("Email already registered")
        return email

    @staticmethod
    def create_user(church_id: int, data: Dict) -> ChurchUser:
        ensure_valid(
            Validator.validate_name(data.get('firstName'), 'First name'),
            Validator.validate_name(data.get('lastName'), 'Last name'),
            Validator.validate_choice(data.get('role'), ROLES, 'Role'),
            Validator.validate_password(data.get('password')),
        )
        user = ChurchUser(
            church_id=church_id,
            email=UserService._email(data.get('email')),
            first_name=data['firstName'].strip(),
            last_name=data['lastName'].strip(),
            role=UserRole(data['role']),
            is_active=parse_bool(data.get('isActive', True))
        )
        user.set_password(data['password'])
        return user.save()

    @staticmethod
    def update_user(church_id: int, user_id: int, data: Dict, acting_user: ChurchUser) -> ChurchUser:
        user = UserService.get_user(church_id, user_id)
        values = {}

        for field, column, label in (('firstName', 'first_name', 'First name'), ('lastName', 'last_name', 'Last name')):
            if field in data:
                ensure_valid(Validator.validate_name(data[field], label))
                values[column] = data[field].strip()
        if 'email' in data:
            values['email'] = UserService._email(data['email'], user_id=user.id)
        if 'role' in data:
            ensure_valid(Validator.validate_choice(data['role'], ROLES, 'Role'))
            if user.id == acting_user.id and data['role'] != UserRole.ADMIN.value:
                raise AuthorizationError("You cannot remove your own admin role")
            values['role'] = UserRole(data['role'])
        if 'isActive' in data:
            is_active = parse_bool(data['isActive'])
            if user.id == acting_user.id and not is_active:
                raise AuthorizationError("You cannot deactivate your own account")
            values['is_active'] = is_active
        if data.get('password'):
            ensure_valid(Validator.validate_password(data['password']))
            user.set_password(data['password'])

        user.update(**values)
        return user

    @staticmethod
    def delete_user(church_id: int, user_id: int, acting_user: ChurchUser) -> None:
        user = UserService.get_user(church_id, user_id)
        if user.id == acting_user.id:
            raise AuthorizationError("You cannot delete your own account")
        user.delete()
