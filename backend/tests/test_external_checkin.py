"""Test the external check-in gateway."""
import re
from churchconnect import db
from churchconnect.models import AttendanceRecord, CheckInMethod, Event
from conftest import make_event, make_member

def enable(client, event, headers):
    response = client.post(
        f'/api/events/{event.id}/external-checkin/toggle',
        json={'enabled': True},
        headers=headers
    )
    assert response.status_code == 200
    return response.get_json()

def credentials(event_id):
    event = db.session.get(Event, event_id)
    db.session.refresh(event)
    return event.external_checkin_url, event.external_checkin_pin

def test_health_check(client):
    response = client.get('/api/external-checkin/health')
    assert response.status_code == 200
    assert response.get_json()['message'] == 'External check-in service is running'

def test_grace_chapel_scenario(client, church, event, member, admin_headers):
    data = enable(client, event, admin_headers)
    assert data['success'] is True
    assert data['externalUrl'].startswith('https://checkin.example.org/external-checkin/')
    assert len(data['event']['externalCheckinUrl']) >= 16
    assert re.fullmatch(r'\d{6}', data['event']['externalCheckinPin'])

    details = client.get(f'/api/events/{event.id}/external-checkin', headers=admin_headers).get_json()
    assert details['enabled'] is True
    assert len(details['url']) >= 16
    assert re.fullmatch(r'\d{6}', details['pin'])
    assert details['qrCode'].startswith('data:image/png;base64,')

    public = client.get(f"/api/external-checkin/event/{details['url']}")
    assert public.status_code == 200
    assert public.get_json() == {
        'eventId': event.id,
        'eventName': 'Sunday Service',
        'eventType': 'sunday_service',
        'location': None,
        'churchName': 'Grace Chapel',
        'churchBrandColor': '#6366f1',
        'requiresPin': True,
    }

    body = {'pin': details['pin'], 'memberId': str(member.id)}
    first = client.post(f"/api/external-checkin/checkin/{details['url']}", json=body)
    assert first.status_code == 200
    first_data = first.get_json()
    assert first_data['success'] is True
    assert first_data['member']['name'] == 'John Mensah'
    assert first_data['member']['checkInTime']

    second = client.post(f"/api/external-checkin/checkin/{details['url']}", json=body)
    assert second.status_code == 409
    assert second.get_json()['isDuplicate'] is True

    records = AttendanceRecord.query.filter_by(member_id=member.id, event_id=event.id).all()
    assert len(records) == 1
    assert records[0].check_in_method == CheckInMethod.EXTERNAL

def test_repeated_enable_rotates_url_and_pin(client, event, admin_headers):
    seen = set()
    for _ in range(5):
        enable(client, event, admin_headers)
        seen.add(credentials(event.id))
    assert len(seen) == 5
    assert len({url for url, _ in seen}) == 5

def test_old_credentials_stop_working_after_rotation(client, event, member, admin_headers):
    enable(client, event, admin_headers)
    old_url, old_pin = credentials(event.id)
    enable(client, event, admin_headers)

    assert client.get(f'/api/external-checkin/event/{old_url}').status_code == 404
    response = client.post(
        f'/api/external-checkin/checkin/{old_url}',
        json={'pin': old_pin, 'memberId': member.id}
    )
    assert response.status_code == 401

def test_disable_clears_url_and_pin(client, event, admin_headers):
    enable(client, event, admin_headers)
    url, _ = credentials(event.id)

    response = client.post(
        f'/api/events/{event.id}/external-checkin/toggle',
        json={'enabled': False},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.get_json()['externalUrl'] is None
    assert 'externalCheckinPin' not in response.get_json()['event']
    assert credentials(event.id) == (None, None)
    assert client.get(f'/api/external-checkin/event/{url}').status_code == 404

def test_toggle_requires_boolean(client, event, admin_headers):
    response = client.post(
        f'/api/events/{event.id}/external-checkin/toggle',
        json={'enabled': 'yes'},
        headers=admin_headers
    )
    assert response.status_code == 400

def test_toggle_unknown_and_foreign_events(client, event, admin_headers, other_admin_headers):
    missing = client.post('/api/events/9999/external-checkin/toggle', json={'enabled': True}, headers=admin_headers)
    assert missing.status_code == 404

    foreign = client.post(
        f'/api/events/{event.id}/external-checkin/toggle',
        json={'enabled': True},
        headers=other_admin_headers
    )
    assert foreign.status_code == 403

def test_toggle_requires_admin(client, event, volunteer_headers):
    response = client.post(
        f'/api/events/{event.id}/external-checkin/toggle',
        json={'enabled': True},
        headers=volunteer_headers
    )
    assert response.status_code == 403

def test_pin_of_one_event_rejected_on_another(client, church, event, member, admin_headers):
    other_event = make_event(church, 'Bible Study')
    enable(client, event, admin_headers)
    enable(client, other_event, admin_headers)
    Event.query.filter_by(id=event.id).update({Event.external_checkin_pin: '111111'})
    Event.query.filter_by(id=other_event.id).update({Event.external_checkin_pin: '222222'})
    db.session.commit()
    url_b, _ = credentials(other_event.id)

    response = client.post(f'/api/external-checkin/checkin/{url_b}', json={'pin': '111111', 'memberId': member.id})
    assert response.status_code == 401

    response = client.post(f'/api/external-checkin/checkin/{url_b}', json={'pin': '222222', 'memberId': member.id})
    assert response.status_code == 200

def test_submit_validation_before_lookup(client, event, member, admin_headers):
    enable(client, event, admin_headers)
    url, _ = credentials(event.id)

    assert client.post(f'/api/external-checkin/checkin/{url}', json={'memberId': member.id}).status_code == 400
    assert client.post(f'/api/external-checkin/checkin/{url}', json={'pin': '123'}).status_code == 400
    assert client.post(
        f'/api/external-checkin/checkin/{url}', json={'pin': '12345', 'memberId': member.id}
    ).status_code == 400

def test_wrong_pin_is_generic_401(client, event, member, admin_headers):
    enable(client, event, admin_headers)
    url, pin = credentials(event.id)
    wrong = f'{(int(pin) + 1) % 1000000:06d}'

    response = client.post(f'/api/external-checkin/checkin/{url}', json={'pin': wrong, 'memberId': member.id})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid PIN or check-in not available'

def test_member_of_another_church_not_found(client, event, other_church, admin_headers):
    outsider = make_member(other_church, 'Paul', 'Stranger')
    enable(client, event, admin_headers)
    url, pin = credentials(event.id)

    response = client.post(f'/api/external-checkin/checkin/{url}', json={'pin': pin, 'memberId': outsider.id})
    assert response.status_code == 404
    assert AttendanceRecord.query.count() == 0

def test_inactive_event_hidden_and_rejected(client, event, member, admin_headers):
    enable(client, event, admin_headers)
    url, pin = credentials(event.id)
    db.session.get(Event, event.id).update(is_active=False)

    public = client.get(f'/api/external-checkin/event/{url}')
    assert public.status_code == 404
    assert public.get_json()['message'] == 'External check-in not found or disabled'

    response = client.post(f'/api/external-checkin/checkin/{url}', json={'pin': pin, 'memberId': member.id})
    assert response.status_code == 401

def test_public_member_listing(client, church, event, family, admin_headers):
    parent, children = family
    make_member(church, 'Former', 'Member', is_current_member=False)
    enable(client, event, admin_headers)
    url, _ = credentials(event.id)

    response = client.post('/api/external-checkin/members', json={'eventUrl': url})
    assert response.status_code == 200
    members = response.get_json()
    names = [m['firstName'] for m in members]
    assert 'Former' not in names

    john = next(m for m in members if m['id'] == parent.id)
    assert [child['firstName'] for child in john['children']] == ['Ama', 'Kofi']
    assert 'phone' not in john and 'email' not in john

    search = client.post('/api/external-checkin/search', json={'eventUrl': url, 'search': 'kofi'})
    assert [m['firstName'] for m in search.get_json()] == ['Kofi']

def test_member_listing_unknown_url(client):
    response = client.post('/api/external-checkin/members', json={'eventUrl': 'nope'})
    assert response.status_code == 404
    assert client.post('/api/external-checkin/members', json={}).status_code == 400
