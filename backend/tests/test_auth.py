"""Test church registration, login and token handling."""
import json
from churchconnect import db
from churchconnect.models import Church, ChurchUser, SubscriptionTier
from conftest import bearer, make_church, make_user

REGISTRATION = {
    'churchName': 'Grace Chapel',
    'adminFirstName': 'Ada',
    'adminLastName': 'Owusu',
    'adminEmail': 'ada@grace.org',
    'password': 'password123',
}

def test_health_check(client):
    """Test auth health endpoint."""
    response = client.get('/api/auth/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['message'] == 'Auth service is running'

def test_register_creates_trial_church(client):
    response = client.post('/api/churches/register', json=REGISTRATION)

    assert response.status_code == 201
    data = response.get_json()
    assert data['church']['subdomain'] == 'grace-chapel'
    assert data['church']['subscriptionTier'] == 'trial'
    assert data['church']['isTrialActive'] is True
    assert data['user']['role'] == 'admin'
    assert data['token']

    church = Church.query.filter_by(subdomain='grace-chapel').first()
    assert church.kiosk_mode_enabled is False
    assert church.kiosk_session_timeout == 60

def test_register_deduplicates_subdomain(client):
    client.post('/api/churches/register', json=REGISTRATION)
    second = dict(REGISTRATION, adminEmail='other@grace.org')

    response = client.post('/api/churches/register', json=second)

    assert response.status_code == 201
    assert response.get_json()['church']['subdomain'] == 'grace-chapel-1'

def test_register_duplicate_email(client):
    client.post('/api/churches/register', json=REGISTRATION)
    response = client.post('/api/churches/register', json=dict(REGISTRATION, churchName='Another'))

    assert response.status_code == 400
    assert response.get_json()['error'] is True

def test_register_validation(client):
    response = client.post('/api/churches/register', json={'churchName': 'X'})
    assert response.status_code == 400

    response = client.post('/api/churches/register', json=dict(REGISTRATION, password='short'))
    assert response.status_code == 400

def test_login_success_updates_last_login(client, church, admin):
    response = client.post('/api/churches/login', json={
        'email': 'admin@grace.org',
        'password': 'password123'
    })

    assert response.status_code == 200
    data = response.get_json()
    assert data['token']
    assert data['church']['id'] == church.id
    assert db.session.get(ChurchUser, admin.id).last_login_at is not None

def test_login_wrong_password(client, admin):
    response = client.post('/api/churches/login', json={
        'email': 'admin@grace.org',
        'password': 'wrong-password'
    })
    assert response.status_code == 401

def test_login_inactive_user(client, admin):
    admin.update(is_active=False)
    response = client.post('/api/churches/login', json={
        'email': 'admin@grace.org',
        'password': 'password123'
    })
    assert response.status_code == 401

def test_login_suspended_church(client, church, admin):
    church.update(subscription_tier=SubscriptionTier.SUSPENDED)
    response = client.post('/api/churches/login', json={
        'email': 'admin@grace.org',
        'password': 'password123'
    })

    assert response.status_code == 403
    assert response.get_json()['suspended'] is True

def test_suspended_church_token_rejected(client, church, admin_headers):
    church.update(subscription_tier=SubscriptionTier.SUSPENDED)
    response = client.get('/api/churches/me', headers=admin_headers)

    assert response.status_code == 403
    assert response.get_json()['suspended'] is True

def test_check_subdomain(client, church):
    taken = client.post('/api/churches/check-subdomain', json={'subdomain': 'grace-chapel'})
    assert taken.status_code == 200
    assert taken.get_json()['available'] is False

    free = client.post('/api/churches/check-subdomain', json={'subdomain': 'new-church'})
    assert free.get_json() == {'available': True, 'subdomain': 'new-church'}

    invalid = client.post('/api/churches/check-subdomain', json={'subdomain': 'Bad_Name'})
    assert invalid.status_code == 400

def test_me_returns_church_summary(client, church, admin_headers):
    response = client.get('/api/churches/me', headers=admin_headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data['church']['name'] == 'Grace Chapel'
    assert data['church']['memberCount'] == 0
    assert data['user']['email'] == 'admin@grace.org'

def test_me_requires_token(client):
    response = client.get('/api/churches/me')
    assert response.status_code == 401

def test_refresh_issues_staff_token(client, admin_headers):
    response = client.post('/api/auth/refresh', headers=admin_headers)

    assert response.status_code == 200
    token = response.get_json()['token']
    assert client.get('/api/auth/me', headers=bearer(token)).status_code == 200

def test_token_of_moved_user_is_rejected(client, church, admin, admin_headers):
    other = make_church('Hope Church', 'hope-church')
    admin.update(church_id=other.id)

    response = client.get('/api/churches/me', headers=admin_headers)
    assert response.status_code == 401

def test_data_viewer_cannot_manage_kiosk(client, viewer_headers):
    response = client.post('/api/churches/kiosk-session/start', headers=viewer_headers)
    assert response.status_code == 403
