"""Test the absence-driven follow-up queue."""
from datetime import timedelta
import requests
from churchconnect import db
from churchconnect.models import CheckInMethod, FollowUpRecord, MessageDelivery, SubscriptionTier
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.helpers import today, utcnow
from conftest import make_member

def backdate(member, days):
    member.created_at = utcnow() - timedelta(days=days)
    db.session.commit()

def test_update_absences_flags_lapsed_members(client, church, event, admin_headers):
    lapsed = make_member(church, 'Lapsed', 'Member')
    regular = make_member(church, 'Regular', 'Member')
    newcomer = make_member(church, 'New', 'Comer')
    backdate(lapsed, 90)
    backdate(regular, 90)
    AttendanceService.record_check_in(church.id, CheckInMethod.MANUAL, member_id=lapsed.id, event_id=event.id,
                                      attendance_date=today() - timedelta(days=30))
    AttendanceService.record_check_in(church.id, CheckInMethod.MANUAL, member_id=regular.id, event_id=event.id,
                                      attendance_date=today() - timedelta(days=3))

    response = client.post('/api/follow-up/update-absences', headers=admin_headers)

    assert response.get_json() == {'processed': 3, 'flagged': 1, 'cleared': 0}
    record = FollowUpRecord.query.filter_by(member_id=lapsed.id).one()
    assert record.needs_follow_up is True
    assert record.consecutive_absences == 4
    assert FollowUpRecord.query.filter_by(member_id=newcomer.id).one().needs_follow_up is False

    queue = client.get('/api/follow-up', headers=admin_headers).get_json()
    assert [r['member']['fullName'] for r in queue] == ['Lapsed Member']

def test_update_absences_clears_returning_members(client, church, event, member, admin_headers):
    backdate(member, 60)
    client.post('/api/follow-up/update-absences', headers=admin_headers)
    AttendanceService.record_check_in(church.id, CheckInMethod.MANUAL, member_id=member.id, event_id=event.id)

    response = client.post('/api/follow-up/update-absences', headers=admin_headers)

    assert response.get_json()['cleared'] == 1
    assert client.get('/api/follow-up', headers=admin_headers).get_json() == []

def test_mark_contacted_sends_sms(client, church, member, admin_headers, monkeypatch):
    sent = []
    monkeypatch.setattr(requests, 'post', lambda url, **kwargs: sent.append(kwargs) or _ok())
    client.post('/api/communication-providers', json={
        'providerType': 'sms', 'providerName': 'webhook', 'displayName': 'Gateway',
        'credentials': {'url': 'https://sms.example.org/send'},
    }, headers=admin_headers)
    backdate(member, 60)
    client.post('/api/follow-up/update-absences', headers=admin_headers)

    response = client.post(f'/api/follow-up/{member.id}', json={'method': 'sms'}, headers=admin_headers)

    data = response.get_json()
    assert data['success'] is True
    assert data['followUp']['contactMethod'] == 'sms'
    assert data['followUp']['needsFollowUp'] is False
    assert data['notification']['success'] is True
    assert sent[0]['json']['recipient'] == '+44 7700 900001'
    assert MessageDelivery.query.one().member_id == member.id

def test_mark_contacted_without_provider_still_succeeds(client, member, admin_headers):
    response = client.post(f'/api/follow-up/{member.id}', json={'method': 'email'}, headers=admin_headers)

    data = response.get_json()
    assert response.status_code == 200
    assert data['success'] is True
    assert data['notification']['success'] is False
    assert FollowUpRecord.query.one().last_contact_date is not None

def test_mark_contacted_sms_not_in_growth_plan(client, church, member, admin_headers):
    church.update(subscription_tier=SubscriptionTier.GROWTH)
    response = client.post(f'/api/follow-up/{member.id}', json={'method': 'sms'}, headers=admin_headers)

    data = response.get_json()
    assert data['success'] is True
    assert data['notification']['success'] is False
    assert 'not included' in data['notification']['message']

def test_mark_contacted_validation(client, member, other_church, admin_headers):
    assert client.post(f'/api/follow-up/{member.id}', json={'method': 'pigeon'},
                       headers=admin_headers).status_code == 400

    outsider = make_member(other_church, 'Paul', 'Stranger')
    assert client.post(f'/api/follow-up/{outsider.id}', json={'method': 'sms'},
                       headers=admin_headers).status_code == 404

def test_follow_up_requires_growth(client, church, admin_headers, volunteer_headers):
    assert client.post('/api/follow-up/update-absences', headers=volunteer_headers).status_code == 403

    church.update(subscription_tier=SubscriptionTier.STARTER)
    response = client.get('/api/follow-up', headers=admin_headers)
    assert response.status_code == 403
    assert response.get_json()['feature'] == 'follow_up_queue'

class _OkResponse:
    status_code = 200
    headers = {}

    def json(self):
        return {'id': 'msg-1'}

def _ok():
    return _OkResponse()
