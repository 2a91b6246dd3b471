"""Shared fixtures: an in-memory app with two churches."""
import pytest
from churchconnect import create_app, db
from churchconnect.models import (
    Church, ChurchUser, UserRole, SubscriptionTier, Member, Gender, AgeGroup,
    Event, EventType
)
from churchconnect.services.auth_service import AuthService

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

def make_church(name, subdomain, tier=SubscriptionTier.ENTERPRISE, **kwargs):
    church = Church(
        name=name,
        subdomain=subdomain,
        subscription_tier=tier,
        max_members=kwargs.pop('max_members', 100),
        kiosk_mode_enabled=kwargs.pop('kiosk_mode_enabled', True),
        kiosk_session_timeout=kwargs.pop('kiosk_session_timeout', 30),
        **kwargs
    )
    return church.save()

def make_user(church, email, role=UserRole.ADMIN, password='password123'):
    user = ChurchUser(
        church_id=church.id,
        email=email,
        first_name=email.split('@')[0].title(),
        last_name='Staff',
        role=role
    )
    user.set_password(password)
    return user.save()

def make_member(church, first_name, surname, gender=Gender.MALE, age_group=AgeGroup.ADULT, **kwargs):
    member = Member(
        church_id=church.id,
        first_name=first_name,
        surname=surname,
        gender=gender,
        age_group=age_group,
        **kwargs
    )
    return member.save()

def make_event(church, name, is_active=True, event_type=EventType.SUNDAY_SERVICE):
    event = Event(church_id=church.id, name=name, event_type=event_type, is_active=is_active)
    return event.save()

def bearer(token):
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def church(app):
    return make_church('Grace Chapel', 'grace-chapel')

@pytest.fixture
def admin(church):
    return make_user(church, 'admin@grace.org', UserRole.ADMIN)

@pytest.fixture
def volunteer(church):
    return make_user(church, 'volunteer@grace.org', UserRole.VOLUNTEER)

@pytest.fixture
def viewer(church):
    return make_user(church, 'viewer@grace.org', UserRole.DATA_VIEWER)

@pytest.fixture
def admin_headers(admin):
    return bearer(AuthService.create_user_token(admin))

@pytest.fixture
def volunteer_headers(volunteer):
    return bearer(AuthService.create_user_token(volunteer))

@pytest.fixture
def viewer_headers(viewer):
    return bearer(AuthService.create_user_token(viewer))

@pytest.fixture
def event(church):
    return make_event(church, 'Sunday Service')

@pytest.fixture
def member(church):
    return make_member(church, 'John', 'Mensah', phone='+44 7700 900001', email='john@example.com')

@pytest.fixture
def family(church, member):
    """John Mensah with two children."""
    kofi = make_member(church, 'Kofi', 'Mensah', age_group=AgeGroup.CHILD, parent_id=member.id)
    ama = make_member(church, 'Ama', 'Mensah', gender=Gender.FEMALE,
                      age_group=AgeGroup.ADOLESCENT, parent_id=member.id)
    return member, [ama, kofi]

@pytest.fixture
def other_church(app):
    return make_church('Hope Church', 'hope-church')

@pytest.fixture
def other_admin_headers(other_church):
    return bearer(AuthService.create_user_token(make_user(other_church, 'admin@hope.org')))
