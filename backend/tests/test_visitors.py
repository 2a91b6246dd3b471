"""Test the visitor registry and follow-up funnel."""
from datetime import timedelta
from churchconnect import db
from churchconnect.models import AttendanceRecord, CheckInMethod, SubscriptionTier, Visitor
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.helpers import today

GUEST = {
    'name': 'Esi Mensah',
    'gender': 'female',
    'ageGroup': 'adult',
    'phone': '+233 24 555 0101',
    'howDidYouHearAboutUs': 'A friend',
}

def test_visitor_checkin_records_guest_attendance(client, event, volunteer_headers):
    response = client.post('/api/visitor-checkin', json=dict(GUEST, eventId=event.id), headers=volunteer_headers)

    assert response.status_code == 201
    data = response.get_json()
    assert data['visitor']['followUpStatus'] == 'pending'
    assert data['visitor']['howDidYouHearAboutUs'] == 'A friend'
    assert data['attendanceRecord']['isGuest'] is True
    assert data['attendanceRecord']['checkInMethod'] == 'visitor'
    assert data['attendanceRecord']['personName'] == 'Esi Mensah'

def test_visitor_checkin_validates_event_first(client, admin_headers):
    response = client.post('/api/visitor-checkin', json=dict(GUEST, eventId=9999), headers=admin_headers)
    assert response.status_code == 404
    assert Visitor.query.count() == 0

def test_create_and_list_visitors(client, admin_headers):
    created = client.post('/api/visitors', json=GUEST, headers=admin_headers)
    assert created.status_code == 201
    assert created.get_json()['visitDate'] == today().isoformat()

    client.post('/api/visitors', json={'name': 'Kojo Visitor'}, headers=admin_headers)
    visitors = client.get('/api/visitors', headers=admin_headers).get_json()
    assert len(visitors) == 2

    pending = client.get('/api/visitors?status=pending', headers=admin_headers).get_json()
    assert len(pending) == 2
    assert client.get('/api/visitors?status=lost', headers=admin_headers).status_code == 400

def test_create_visitor_requires_name(client, admin_headers):
    response = client.post('/api/visitors', json={'gender': 'female'}, headers=admin_headers)
    assert response.status_code == 400

def test_follow_up_moves_forward_only(client, admin_headers):
    visitor_id = client.post('/api/visitors', json=GUEST, headers=admin_headers).get_json()['id']

    contacted = client.patch(f'/api/visitors/{visitor_id}', json={'followUpStatus': 'contacted'},
                             headers=admin_headers)
    assert contacted.status_code == 200
    assert contacted.get_json()['followUpStatus'] == 'contacted'

    back = client.patch(f'/api/visitors/{visitor_id}', json={'followUpStatus': 'pending'},
                        headers=admin_headers)
    assert back.status_code == 400

    bogus = client.patch(f'/api/visitors/{visitor_id}', json={'followUpStatus': 'lost'},
                         headers=admin_headers)
    assert bogus.status_code == 400

def test_conversion_moves_attendance_to_member(client, church, event, member, admin_headers):
    result = client.post('/api/visitor-checkin', json=dict(GUEST, eventId=event.id), headers=admin_headers).get_json()
    visitor_id = result['visitor']['id']
    AttendanceService.record_check_in(church.id, CheckInMethod.VISITOR, visitor_id=visitor_id, event_id=event.id,
                                      attendance_date=today() - timedelta(days=7), is_guest=True)
    # The member already attended today, so today's guest record stays with the visitor
    AttendanceService.record_check_in(church.id, CheckInMethod.MANUAL, member_id=member.id, event_id=event.id)

    response = client.patch(f'/api/visitors/{visitor_id}',
                            json={'followUpStatus': 'member', 'memberId': member.id},
                            headers=admin_headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data['followUpStatus'] == 'member'
    assert data['memberId'] == member.id

    member_records = AttendanceRecord.query.filter_by(member_id=member.id).count()
    visitor_records = AttendanceRecord.query.filter_by(visitor_id=visitor_id).count()
    assert member_records == 2
    assert visitor_records == 1

def test_conversion_rejects_foreign_member(client, other_church, admin_headers):
    from conftest import make_member
    outsider = make_member(other_church, 'Paul', 'Stranger')
    visitor_id = client.post('/api/visitors', json=GUEST, headers=admin_headers).get_json()['id']

    response = client.patch(f'/api/visitors/{visitor_id}',
                            json={'followUpStatus': 'member', 'memberId': outsider.id},
                            headers=admin_headers)
    assert response.status_code == 400
    assert db.session.get(Visitor, visitor_id).follow_up_status.value == 'pending'

def test_visitors_scoped_to_church(client, admin_headers, other_admin_headers):
    visitor_id = client.post('/api/visitors', json=GUEST, headers=admin_headers).get_json()['id']
    assert client.get(f'/api/visitors/{visitor_id}', headers=other_admin_headers).status_code == 404

def test_visitor_management_requires_growth(client, church, admin_headers):
    church.update(subscription_tier=SubscriptionTier.STARTER)
    response = client.get('/api/visitors', headers=admin_headers)
    assert response.status_code == 403
    assert response.get_json()['upgradeRequired'] is True
