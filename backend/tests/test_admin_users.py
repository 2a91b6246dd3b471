"""Test staff account management."""
from churchconnect.models import ChurchUser

NEW_USER = {
    'email': 'Usher@Grace.org',
    'firstName': 'Kwesi',
    'lastName': 'Appiah',
    'role': 'volunteer',
    'password': 'password123',
}

def test_health_check(client):
    assert client.get('/api/admin/users/health').status_code == 200

def test_create_user(client, church, admin_headers):
    response = client.post('/api/admin/users', json=NEW_USER, headers=admin_headers)

    assert response.status_code == 201
    data = response.get_json()
    assert data['email'] == 'usher@grace.org'
    assert data['role'] == 'volunteer'
    assert data['churchId'] == church.id
    assert 'passwordHash' not in data

    login = client.post('/api/churches/login', json={'email': 'usher@grace.org', 'password': 'password123'})
    assert login.status_code == 200

def test_create_user_validation(client, admin, admin_headers):
    assert client.post('/api/admin/users', json=dict(NEW_USER, role='owner'),
                       headers=admin_headers).status_code == 400
    assert client.post('/api/admin/users', json=dict(NEW_USER, password='short'),
                       headers=admin_headers).status_code == 400
    assert client.post('/api/admin/users', json=dict(NEW_USER, email=admin.email),
                       headers=admin_headers).status_code == 400

def test_user_management_requires_admin(client, admin, volunteer_headers):
    assert client.get('/api/admin/users', headers=volunteer_headers).status_code == 200
    assert client.post('/api/admin/users', json=NEW_USER, headers=volunteer_headers).status_code == 403
    assert client.put(f'/api/admin/users/{admin.id}', json={'role': 'volunteer'},
                      headers=volunteer_headers).status_code == 403

def test_list_users_scoped_to_church(client, admin, volunteer, other_admin_headers):
    users = client.get('/api/admin/users', headers=other_admin_headers).get_json()
    assert [u['email'] for u in users] == ['admin@hope.org']
    assert client.get(f'/api/admin/users/{admin.id}', headers=other_admin_headers).status_code == 404

def test_update_user_role(client, volunteer, admin_headers):
    response = client.put(f'/api/admin/users/{volunteer.id}', json={'role': 'data_viewer', 'lastName': 'Ofori'},
                          headers=admin_headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data['role'] == 'data_viewer'
    assert data['lastName'] == 'Ofori'

def test_admin_cannot_demote_or_deactivate_self(client, admin, admin_headers):
    demote = client.put(f'/api/admin/users/{admin.id}', json={'role': 'volunteer'}, headers=admin_headers)
    assert demote.status_code == 403
    assert demote.get_json()['message'] == 'You cannot remove your own admin role'

    deactivate = client.put(f'/api/admin/users/{admin.id}', json={'isActive': False}, headers=admin_headers)
    assert deactivate.status_code == 403

    assert client.delete(f'/api/admin/users/{admin.id}', headers=admin_headers).status_code == 403

def test_deactivated_user_token_rejected(client, volunteer, volunteer_headers, admin_headers):
    client.put(f'/api/admin/users/{volunteer.id}', json={'isActive': False}, headers=admin_headers)
    assert client.get('/api/churches/me', headers=volunteer_headers).status_code == 401

def test_delete_user(client, volunteer, admin_headers):
    response = client.delete(f'/api/admin/users/{volunteer.id}', headers=admin_headers)
    assert response.status_code == 200
    assert ChurchUser.query.filter_by(email='volunteer@grace.org').first() is None
