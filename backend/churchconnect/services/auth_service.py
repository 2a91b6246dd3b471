"""Authentication service for churches and staff accounts."""
from typing import Dict, Tuple
from flask import current_app
from flask_jwt_extended import create_access_token
from churchconnect import db
from churchconnect.models import Church, ChurchUser, UserRole
from churchconnect.utils.decorators import USER_CREDENTIAL, KIOSK_CREDENTIAL
from churchconnect.utils.errors import (
    ValidationError, AuthenticationError, AuthorizationError
)
from churchconnect.utils.helpers import utcnow, slugify
from churchconnect.utils.validators import Validator, ensure_valid

class AuthService:
    """Registration, login and token issuance."""

    @staticmethod
    def create_user_token(user: ChurchUser) -> str:
        """Staff access token carrying the tenant and role."""
        return create_access_token(
            identity=str(user.id),
            additional_claims={
                'church_id': user.church_id,
                'role': user.role.value,
                'credential': USER_CREDENTIAL,
            }
        )

    @staticmethod
    def create_kiosk_token(session) -> str:
        """Kiosk capability token bound to one kiosk session."""
        return create_access_token(
            identity=f'kiosk:{session.id}',
            additional_claims={
                'church_id': session.church_id,
                'kiosk_session_id': session.id,
                'credential': KIOSK_CREDENTIAL,
            },
            expires_delta=current_app.config['KIOSK_TOKEN_EXPIRES']
        )

    @staticmethod
    def is_subdomain_available(subdomain: str) -> bool:
        return Church.query.filter_by(subdomain=subdomain).first() is None

    @staticmethod
    def unique_subdomain(base: str) -> str:
        """Append -1, -2, ... until the subdomain is free."""
        candidate = base
        counter = 1
        while not AuthService.is_subdomain_available(candidate):
            candidate = f'{base}-{counter}'
            counter += 1
        return candidate

    @staticmethod
    def check_subdomain(subdomain: str) -> Dict:
        ensure_valid(Validator.validate_subdomain(subdomain))
        return {
            'available': AuthService.is_subdomain_available(subdomain),
            'subdomain': subdomain,
        }

    @staticmethod
    def register_church(data: Dict) -> Tuple[Church, ChurchUser, str]:
        """Create a trial church with its first admin."""
        email = (data.get('adminEmail') or '').lower().strip()
        password = data.get('password') or ''
        subdomain = data.get('subdomain')

        results = [
            Validator.validate_name(data.get('churchName'), 'Church name'),
            Validator.validate_name(data.get('adminFirstName'), 'First name'),
            Validator.validate_name(data.get('adminLastName'), 'Last name'),
            Validator.validate_password(password),
        ]
        if subdomain:
            results.append(Validator.validate_subdomain(subdomain))
        ensure_valid(*results)

        if not Validator.validate_email(email):
            raise ValidationError("Invalid email format")

        if ChurchUser.query.filter_by(email=email).first():
            raise ValidationError("Email already registered")

        church_name = data['churchName'].strip()
        base = subdomain or slugify(church_name) or 'church'
        if len(base) < 3:
            base = f'{base}-church'

        church = Church(
            name=church_name,
            subdomain=AuthService.unique_subdomain(base),
            brand_color=current_app.config['DEFAULT_BRAND_COLOR'],
            max_members=current_app.config['DEFAULT_MAX_MEMBERS'],
            kiosk_mode_enabled=False,
            kiosk_session_timeout=current_app.config['KIOSK_SESSION_TIMEOUT_DEFAULT']
        )
        church.start_trial(current_app.config['TRIAL_PERIOD_DAYS'])
        db.session.add(church)
        db.session.flush()

        admin = ChurchUser(
            church_id=church.id,
            email=email,
            first_name=data['adminFirstName'].strip(),
            last_name=data['adminLastName'].strip(),
            role=UserRole.ADMIN,
            is_active=True
        )
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()

        current_app.logger.info('Registered church %s (%s)', church.id, church.subdomain)
        return church, admin, AuthService.create_user_token(admin)

    @staticmethod
    def login(email: str, password: str) -> Tuple[Church, ChurchUser, str]:
        """Authenticate a staff user and return a token."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = ChurchUser.query.filter_by(email=email.lower().strip()).first()
        if not user:
            raise AuthenticationError("Invalid email or password")

        if not user.check_password(password):
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            db.session.commit()
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        church = user.church
        if church.is_suspended():
            raise AuthorizationError(
                "Church account is suspended. Please contact support for assistance.",
                payload={'suspended': True}
            )

        user.failed_login_attempts = 0
        user.last_login_at = utcnow()
        db.session.commit()

        return church, user, AuthService.create_user_token(user)

    @staticmethod
    def church_summary(church: Church) -> Dict:
        return {
            'id': church.id,
            'name': church.name,
            'subdomain': church.subdomain,
            'subscriptionTier': church.subscription_tier.value,
            'trialEndDate': church.trial_end_date.isoformat() if church.trial_end_date else None,
            'logoUrl': church.logo_url,
            'bannerUrl': church.banner_url,
            'brandColor': church.brand_color,
            'maxMembers': church.max_members,
            'isTrialActive': church.is_trial_active(),
            'trialDaysRemaining': church.trial_days_remaining(),
        }

    @staticmethod
    def user_summary(user: ChurchUser) -> Dict:
        return {
            'id': user.id,
            'email': user.email,
            'firstName': user.first_name,
            'lastName': user.last_name,
            'role': user.role.value,
        }
