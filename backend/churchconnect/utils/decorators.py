"""Custom decorators for tenant resolution and authorization."""
from dataclasses import dataclass, field
from functools import wraps
from typing import FrozenSet, Optional

from flask import g
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity

from churchconnect import db
from churchconnect.utils.errors import (
    AuthenticationError, AuthorizationError, FeatureNotAvailableError
)

USER_CREDENTIAL = 'user'
KIOSK_CREDENTIAL = 'kiosk'

# Capabilities
MANAGE_MEMBERS = 'manage_members'
VIEW_MEMBERS = 'view_members'
CHECK_IN = 'check_in'
VIEW_REPORTS = 'view_reports'
EXPORT = 'export'
MANAGE_EVENTS = 'manage_events'
MANAGE_SETTINGS = 'manage_settings'
MANAGE_USERS = 'manage_users'
MANAGE_KIOSK = 'manage_kiosk'
MANAGE_PROVIDERS = 'manage_providers'

ALL_CAPABILITIES = frozenset({
    MANAGE_MEMBERS, VIEW_MEMBERS, CHECK_IN, VIEW_REPORTS, EXPORT,
    MANAGE_EVENTS, MANAGE_SETTINGS, MANAGE_USERS, MANAGE_KIOSK, MANAGE_PROVIDERS,
})

ROLE_CAPABILITIES = {
    'admin': ALL_CAPABILITIES,
    'volunteer': frozenset({CHECK_IN, VIEW_MEMBERS}),
    'data_viewer': frozenset({VIEW_REPORTS, EXPORT, VIEW_MEMBERS}),
}

@dataclass
class ChurchContext:
    """Resolved caller for a staff request."""
    church: object
    user: object
    role: str
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def church_id(self) -> int:
        return self.church.id

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

@dataclass
class KioskContext:
    """Resolved kiosk session for a kiosk request."""
    church: object
    session: object

    @property
    def church_id(self) -> int:
        return self.church.id

def capabilities_for(role: str) -> FrozenSet[str]:
    return ROLE_CAPABILITIES.get(role, frozenset())

def resolve_church_context() -> ChurchContext:
    """Verify the bearer token and load the caller's church context."""
    from churchconnect.models import ChurchUser

    verify_jwt_in_request()
    claims = get_jwt()

    if claims.get('credential') != USER_CREDENTIAL:
        raise AuthenticationError("Staff credentials required")

    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    user = db.session.get(ChurchUser, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    # The token's church must still be the user's church
    if claims.get('church_id') != user.church_id:
        raise AuthenticationError("Invalid token")

    church = user.church
    if church.is_suspended():
        raise AuthorizationError("Church account is suspended", payload={'suspended': True})

    role = user.role.value
    return ChurchContext(church=church, user=user, role=role, capabilities=capabilities_for(role))

def church_context_required(*capabilities: str):
    """Require a staff token whose role grants every listed capability."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            context = resolve_church_context()

            missing = [cap for cap in capabilities if not context.can(cap)]
            if missing:
                raise AuthorizationError("Insufficient permissions")

            g.church_context = context
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def admin_required(f):
    """Decorator to require the admin role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context = resolve_church_context()
        if context.role != 'admin':
            raise AuthorizationError("Admin access required")
        g.church_context = context
        return f(*args, **kwargs)
    return decorated_function

def staff_required(f):
    """Any authenticated staff role."""
    return church_context_required()(f)

def kiosk_session_required(f):
    """Require a kiosk token backed by a live kiosk session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from churchconnect.services.kiosk_service import KioskService

        verify_jwt_in_request()
        claims = get_jwt()

        if claims.get('credential') != KIOSK_CREDENTIAL:
            raise AuthenticationError("Kiosk credentials required")

        session = KioskService.load_live_session(
            claims.get('kiosk_session_id'), claims.get('church_id')
        )
        g.kiosk_context = KioskContext(church=session.church, session=session)
        return f(*args, **kwargs)
    return decorated_function

def requires_feature(feature: str):
    """Reject the request when the church's plan lacks a feature."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from churchconnect.services.feature_service import FeatureService

            context: Optional[ChurchContext] = g.get('church_context')
            if context is None:
                raise AuthenticationError("Authorization token required")

            if not FeatureService.church_has_feature(context.church, feature):
                raise FeatureNotAvailableError(
                    "This feature requires a higher subscription plan",
                    feature=feature
                )
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def current_context() -> ChurchContext:
    return g.church_context

def current_kiosk() -> KioskContext:
    return g.kiosk_context
