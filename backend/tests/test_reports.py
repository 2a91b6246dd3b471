"""Test attendance analytics, named reports and CSV exports."""
import io
from datetime import timedelta

import pandas as pd

from churchconnect.models import (
    AttendanceRecord, CheckInMethod, FollowUpRecord, ReportRun, SubscriptionTier, Visitor, AgeGroup, Gender
)
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.services.report_service import ATTENDANCE_EXPORT_COLUMNS
from churchconnect.utils.helpers import today
from conftest import make_member

def check_in(church, member, event, days_ago=0, method=CheckInMethod.MANUAL):
    return AttendanceService.record_check_in(
        church.id, method, member_id=member.id, event_id=event.id,
        attendance_date=today() - timedelta(days=days_ago)
    )

def test_health_check(client):
    assert client.get('/api/reports/health').status_code == 200
    assert client.get('/api/export/health').status_code == 200

def test_attendance_history_filters(client, church, event, family, viewer_headers):
    parent, children = family
    check_in(church, parent, event)
    check_in(church, children[0], event, days_ago=3)
    check_in(church, parent, event, days_ago=60)

    rows = client.get('/api/attendance/history', headers=viewer_headers).get_json()
    assert [r['personName'] for r in rows] == ['John Mensah', 'Ama Mensah']
    assert rows[0]['isVisitor'] is False
    assert rows[0]['phone'] == '+44 7700 900001'

    female = client.get('/api/attendance/history?gender=female', headers=viewer_headers).get_json()
    assert [r['personName'] for r in female] == ['Ama Mensah']

    wide = client.get(
        f'/api/attendance/history?memberId={parent.id}&startDate={(today() - timedelta(days=90)).isoformat()}',
        headers=viewer_headers
    ).get_json()
    assert len(wide) == 2

    assert client.get('/api/attendance/history?memberId=abc', headers=viewer_headers).status_code == 400
    assert client.get('/api/attendance/history?startDate=2026-02-01&endDate=2026-01-01',
                      headers=viewer_headers).status_code == 400

def test_history_requires_growth_and_report_access(client, church, admin_headers, volunteer_headers):
    assert client.get('/api/attendance/history', headers=volunteer_headers).status_code == 403

    church.update(subscription_tier=SubscriptionTier.STARTER)
    response = client.get('/api/attendance/history', headers=admin_headers)
    assert response.status_code == 403
    assert response.get_json()['feature'] == 'history_tracking'

def test_date_range(client, church, event, member, viewer_headers):
    empty = client.get('/api/attendance/date-range', headers=viewer_headers).get_json()
    assert empty == {'earliest': today().isoformat(), 'latest': today().isoformat()}

    check_in(church, member, event, days_ago=10)
    check_in(church, member, event, days_ago=2)
    data = client.get('/api/attendance/date-range', headers=viewer_headers).get_json()
    assert data['earliest'] == (today() - timedelta(days=10)).isoformat()
    assert data['latest'] == (today() - timedelta(days=2)).isoformat()

def test_stats_range(client, church, event, family, viewer_headers):
    parent, children = family
    check_in(church, parent, event)
    check_in(church, children[0], event)
    check_in(church, parent, event, days_ago=1)
    guest = Visitor(church_id=church.id, name='Guest', gender=Gender.FEMALE, age_group=AgeGroup.ADULT).save()
    AttendanceService.record_check_in(church.id, CheckInMethod.VISITOR, visitor_id=guest.id, event_id=event.id)

    data = client.get('/api/attendance/stats-range', headers=viewer_headers).get_json()

    assert data['endDate'] == today().isoformat()
    assert data['startDate'] == (today() - timedelta(days=6)).isoformat()
    assert data['totalDays'] == 2
    assert data['totalAttendance'] == 4
    assert data['averagePerDay'] == 2.0
    assert data['memberAttendance'] == 3
    assert data['visitorAttendance'] == 1
    assert data['genderBreakdown'] == {'male': 2, 'female': 2}
    assert data['ageGroupBreakdown'] == {'child': 0, 'adolescent': 1, 'adult': 3}
    assert data['dailyCounts'] == [
        {'date': (today() - timedelta(days=1)).isoformat(), 'count': 1},
        {'date': today().isoformat(), 'count': 3},
    ]

def test_weekly_attendance_report(client, church, event, family, viewer_headers):
    parent, children = family
    for person in [parent] + children:
        check_in(church, person, event)

    rows = client.get('/api/reports/weekly-attendance', headers=viewer_headers).get_json()
    assert sorted((r['group'], r['count']) for r in rows) == [('female', 1), ('male', 2)]

def test_missed_services_report(client, church, event, viewer_headers):
    regular = make_member(church, 'Regular', 'Attender')
    absent = make_member(church, 'Absent', 'Member')
    make_member(church, 'Former', 'Member', is_current_member=False)
    check_in(church, regular, event, days_ago=2)
    check_in(church, absent, event, days_ago=40)

    rows = client.get('/api/reports/missed-services', headers=viewer_headers).get_json()
    assert [r['firstName'] for r in rows] == ['Absent']
    assert rows[0]['lastAttendance'] == (today() - timedelta(days=40)).isoformat()

    wider = client.get('/api/reports/missed-services?weeks=8', headers=viewer_headers).get_json()
    assert wider == []
    assert client.get('/api/reports/missed-services?weeks=0', headers=viewer_headers).status_code == 400

def test_inactive_members_includes_former_members(client, church, event, viewer_headers):
    make_member(church, 'Former', 'Member', is_current_member=False)
    lapsed = make_member(church, 'Lapsed', 'Member')
    check_in(church, lapsed, event, days_ago=35)

    rows = client.get('/api/reports/inactive-members', headers=viewer_headers).get_json()
    by_name = {r['firstName']: r for r in rows}
    assert by_name['Former']['isCurrentMember'] is False
    assert by_name['Former']['weeksSinceLastAttendance'] is None
    assert by_name['Lapsed']['weeksSinceLastAttendance'] == 5

def test_analytics_reports_require_enterprise(client, church, viewer_headers):
    church.update(subscription_tier=SubscriptionTier.GROWTH)

    response = client.get('/api/reports/group-attendance-trend', headers=viewer_headers)
    assert response.status_code == 403
    assert response.get_json()['feature'] == 'full_analytics'

    assert client.get('/api/reports/weekly-attendance', headers=viewer_headers).status_code == 200

def test_group_attendance_trend(client, church, event, family, viewer_headers):
    parent, children = family
    for person in [parent] + children:
        check_in(church, person, event)

    rows = client.get('/api/reports/group-attendance-trend', headers=viewer_headers).get_json()
    assert sorted(r['group'] for r in rows) == ['adolescent', 'adult', 'child']

def test_family_checkin_summary(client, church, event, family, viewer_headers):
    parent, _ = family
    AttendanceService.family_check_in(church.id, parent.id, event_id=event.id)

    rows = client.get('/api/reports/family-checkin-summary', headers=viewer_headers).get_json()
    assert len(rows) == 3
    child_rows = [r for r in rows if r['parentId'] == parent.id]
    assert {r['childName'] for r in child_rows} == {'Ama Mensah', 'Kofi Mensah'}
    assert all(r['parentName'] == 'John Mensah' for r in child_rows)

def test_new_members_and_followup_tracker(client, church, member, viewer_headers):
    rows = client.get('/api/reports/new-members', headers=viewer_headers).get_json()
    assert [r['id'] for r in rows] == [member.id]

    FollowUpRecord(church_id=church.id, member_id=member.id, consecutive_absences=3, needs_follow_up=True).save()
    tracker = client.get('/api/reports/followup-action-tracker', headers=viewer_headers).get_json()
    assert tracker[0]['memberName'] == 'John Mensah'
    assert tracker[0]['needsFollowUp'] is True

def test_unknown_report_type(client, viewer_headers):
    assert client.get('/api/reports/everything', headers=viewer_headers).status_code == 400

def test_report_configs_and_runs(client, church, admin_headers, viewer_headers):
    created = client.post('/api/admin/report-configs', json={
        'name': 'Monthly absentees',
        'reportType': 'missed-services',
        'parameters': {'weeks': 4},
    }, headers=admin_headers)
    assert created.status_code == 201
    config_id = created.get_json()['id']

    assert client.post('/api/admin/report-configs', json={'name': 'X', 'reportType': 'nope'},
                       headers=admin_headers).status_code == 400
    assert client.post('/api/admin/report-configs', json={'name': 'X', 'reportType': 'new-members'},
                       headers=viewer_headers).status_code == 403

    run = client.post('/api/admin/report-runs', json={'reportConfigId': config_id, 'rowCount': 7},
                      headers=viewer_headers)
    assert run.status_code == 201
    assert run.get_json()['reportType'] == 'missed-services'
    assert run.get_json()['parameters'] == {'weeks': 4}

    runs = client.get('/api/admin/report-runs', headers=viewer_headers).get_json()
    assert len(runs) == 1

def test_monthly_report_limit(client, church, viewer_headers):
    church.update(subscription_tier=SubscriptionTier.STARTER)
    for _ in range(5):
        ReportRun(church_id=church.id, report_type='new-members', parameters={}).save()

    response = client.post('/api/admin/report-runs', json={'reportType': 'new-members'}, headers=viewer_headers)

    assert response.status_code == 403
    data = response.get_json()
    assert data['upgradeRequired'] is True
    assert data['currentCount'] == 5
    assert data['limit'] == 5

def test_export_attendance_csv(client, church, event, member, viewer_headers):
    check_in(church, member, event)

    response = client.get('/api/export/attendance', headers=viewer_headers)

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'attendance_export_' in response.headers['Content-Disposition']
    df = pd.read_csv(io.BytesIO(response.data))
    assert list(df.columns) == ATTENDANCE_EXPORT_COLUMNS
    assert df.iloc[0]['Member Name'] == 'John Mensah'
    assert df.iloc[0]['Event Name'] == 'Sunday Service'

def test_export_members_and_visitors(client, church, family, viewer_headers):
    Visitor(church_id=church.id, name='Guest One').save()

    members = client.get('/api/export/members', headers=viewer_headers)
    assert 'members_export_' in members.headers['Content-Disposition']
    assert len(pd.read_csv(io.BytesIO(members.data))) == 3

    visitors = client.get('/api/export/visitors', headers=viewer_headers)
    df = pd.read_csv(io.BytesIO(visitors.data))
    assert df.iloc[0]['Name'] == 'Guest One'
    assert df.iloc[0]['Follow-up Status'] == 'pending'

def test_export_requires_export_capability(client, volunteer_headers):
    assert client.get('/api/export/attendance', headers=volunteer_headers).status_code == 403

def test_exports_are_church_scoped(client, church, event, member, other_admin_headers):
    check_in(church, member, event)
    response = client.get('/api/export/attendance', headers=other_admin_headers)
    assert len(pd.read_csv(io.BytesIO(response.data))) == 0
