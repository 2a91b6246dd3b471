"""Test member registry endpoints."""
import io
from churchconnect import db
from churchconnect.models import AttendanceRecord, CheckInMethod, Member, SubscriptionTier
from churchconnect.services.attendance_service import AttendanceService
from conftest import make_member

NEW_MEMBER = {
    'title': 'Mrs',
    'firstName': 'Abena',
    'surname': 'Asante',
    'gender': 'female',
    'ageGroup': 'adult',
    'phone': '+233 20 123 4567',
    'email': 'abena@example.com',
}

def test_health_check(client):
    response = client.get('/api/members/health')
    assert response.status_code == 200
    assert response.get_json()['message'] == 'Members service is running'

def test_create_member(client, church, admin_headers):
    response = client.post('/api/members', json=NEW_MEMBER, headers=admin_headers)

    assert response.status_code == 201
    data = response.get_json()
    assert data['fullName'] == 'Abena Asante'
    assert data['gender'] == 'female'
    assert data['isCurrentMember'] is True
    assert data['churchId'] == church.id

def test_create_member_validation(client, admin_headers):
    missing = client.post('/api/members', json={'firstName': 'Abena'}, headers=admin_headers)
    assert missing.status_code == 400

    bad_gender = client.post('/api/members', json=dict(NEW_MEMBER, gender='other'), headers=admin_headers)
    assert bad_gender.status_code == 400

    bad_email = client.post('/api/members', json=dict(NEW_MEMBER, email='not-an-email'), headers=admin_headers)
    assert bad_email.status_code == 400

    future = client.post('/api/members', json=dict(NEW_MEMBER, dateOfBirth='2999-01-01'), headers=admin_headers)
    assert future.status_code == 400

def test_create_member_requires_manage_capability(client, volunteer_headers, viewer_headers):
    assert client.post('/api/members', json=NEW_MEMBER, headers=volunteer_headers).status_code == 403
    assert client.post('/api/members', json=NEW_MEMBER, headers=viewer_headers).status_code == 403

def test_member_limit(client, church, admin_headers):
    church.update(subscription_tier=SubscriptionTier.STARTER, max_members=2)
    make_member(church, 'One', 'Member')
    make_member(church, 'Two', 'Member')

    response = client.post('/api/members', json=NEW_MEMBER, headers=admin_headers)

    assert response.status_code == 403
    data = response.get_json()
    assert data['upgradeRequired'] is True
    assert data['currentCount'] == 2
    assert data['limit'] == 2
    assert Member.query.count() == 2

def test_parent_must_belong_to_church(client, other_church, admin_headers):
    outsider = make_member(other_church, 'Paul', 'Stranger')
    response = client.post('/api/members', json=dict(NEW_MEMBER, parentId=outsider.id), headers=admin_headers)
    assert response.status_code == 400

def test_member_cannot_be_own_parent(client, member, admin_headers):
    response = client.put(f'/api/members/{member.id}', json={'parentId': member.id}, headers=admin_headers)
    assert response.status_code == 400

def test_list_members_filters(client, church, family, admin_headers):
    make_member(church, 'Former', 'Member', is_current_member=False)

    everyone = client.get('/api/members', headers=admin_headers).get_json()
    assert [m['firstName'] for m in everyone] == ['Ama', 'Former', 'John', 'Kofi']

    children = client.get('/api/members?ageGroup=child', headers=admin_headers).get_json()
    assert [m['firstName'] for m in children] == ['Kofi']

    current = client.get('/api/members?isCurrentMember=false', headers=admin_headers).get_json()
    assert [m['firstName'] for m in current] == ['Former']

    search = client.get('/api/members?search=mens', headers=admin_headers).get_json()
    assert len(search) == 3

    assert client.get('/api/members?gender=other', headers=admin_headers).status_code == 400

def test_members_are_scoped_to_church(client, other_church, member, other_admin_headers):
    assert client.get('/api/members', headers=other_admin_headers).get_json() == []
    assert client.get(f'/api/members/{member.id}', headers=other_admin_headers).status_code == 404
    assert client.delete(f'/api/members/{member.id}', headers=other_admin_headers).status_code == 404

def test_get_member_with_children(client, family, volunteer_headers):
    parent, _ = family
    data = client.get(f'/api/members/{parent.id}', headers=volunteer_headers).get_json()
    assert [c['firstName'] for c in data['children']] == ['Ama', 'Kofi']

    children = client.get(f'/api/members/{parent.id}/children', headers=volunteer_headers).get_json()
    assert [c['parentId'] for c in children] == [parent.id, parent.id]

def test_update_member(client, member, admin_headers):
    response = client.put(f'/api/members/{member.id}', json={'phone': '+44 7700 900999', 'isCurrentMember': False},
                          headers=admin_headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data['phone'] == '+44 7700 900999'
    assert data['isCurrentMember'] is False
    assert data['firstName'] == 'John'

def test_delete_member_unlinks_children_and_removes_records(client, church, event, family, admin_headers):
    parent, children = family
    AttendanceService.record_check_in(church.id, CheckInMethod.MANUAL, member_id=parent.id, event_id=event.id)

    response = client.delete(f'/api/members/{parent.id}', headers=admin_headers)

    assert response.status_code == 200
    assert db.session.get(Member, parent.id) is None
    assert AttendanceRecord.query.count() == 0
    for child in children:
        db.session.refresh(child)
        assert child.parent_id is None

def test_delete_member_requires_admin(client, member, volunteer_headers):
    assert client.delete(f'/api/members/{member.id}', headers=volunteer_headers).status_code == 403

def test_bulk_upload_csv(client, church, admin_headers):
    csv = (
        'First Name,Surname,Gender,Age Group,Email\n'
        'Kwame,Owusu,male,adult,kwame@example.com\n'
        'Efua,Owusu,female,child,\n'
        'Bad,Row,unknown,adult,\n'
    )
    response = client.post(
        '/api/members/bulk-upload',
        data={'file': (io.BytesIO(csv.encode()), 'members.csv')},
        content_type='multipart/form-data',
        headers=admin_headers
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data['created'] == 2
    assert data['total'] == 3
    assert data['results'][2]['success'] is False
    assert data['results'][2]['row'] == 4
    assert len(data['errors']) == 1
    assert Member.query.filter_by(church_id=church.id).count() == 2

def test_bulk_upload_json(client, admin_headers):
    response = client.post('/api/members/bulk-upload', json={'members': [NEW_MEMBER]}, headers=admin_headers)
    assert response.get_json()['created'] == 1

def test_bulk_upload_rejects_bad_file_type(client, admin_headers):
    response = client.post(
        '/api/members/bulk-upload',
        data={'file': (io.BytesIO(b'hello'), 'members.txt')},
        content_type='multipart/form-data',
        headers=admin_headers
    )
    assert response.status_code == 400

def test_bulk_upload_requires_enterprise(client, church, admin_headers):
    church.update(subscription_tier=SubscriptionTier.GROWTH)
    response = client.post('/api/members/bulk-upload', json={'members': [NEW_MEMBER]}, headers=admin_headers)
    assert response.status_code == 403
    assert response.get_json()['feature'] == 'bulk_upload'
