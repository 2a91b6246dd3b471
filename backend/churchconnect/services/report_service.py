"""Attendance analytics and report generation."""
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import func, or_
from sqlalchemy.orm import aliased

from churchconnect import db
from churchconnect.models import (
    AttendanceRecord, CheckInMethod, FollowUpRecord, Member, Visitor,
    Gender, AgeGroup, ReportConfig, ReportRun
)
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.services.feature_service import FeatureService, usage_limit
from churchconnect.utils.errors import FeatureNotAvailableError, ValidationError
from churchconnect.utils.helpers import parse_bool, parse_date, parse_id, today, serialize_value

ATTENDANCE_EXPORT_COLUMNS = [
    'ID', 'Member Name', 'Event Name', 'Check-in Time', 'Check-in Method',
    'Gender', 'Age Group', 'Phone', 'Email', 'Attendance Date',
]

REPORT_TYPES = [
    'weekly-attendance', 'member-attendance-log', 'missed-services', 'new-members',
    'inactive-members', 'group-attendance-trend', 'family-checkin-summary',
    'followup-action-tracker',
]

# Reports that need the full analytics plan
FULL_ANALYTICS_REPORTS = {'inactive-members', 'group-attendance-trend'}

def date_window(start: Optional[str], end: Optional[str], default_days: int = 7):
    """Parse an inclusive date window, defaulting to the last week."""
    end_date = parse_date(end, 'endDate') if end else today()
    start_date = parse_date(start, 'startDate') if start else end_date - timedelta(days=default_days - 1)
    if start_date > end_date:
        raise ValidationError("startDate must not be after endDate")
    return start_date, end_date

def parse_weeks(value: Optional[str], default: int = 3) -> int:
    if value in (None, ''):
        return default
    try:
        weeks = int(value)
    except (TypeError, ValueError):
        raise ValidationError("weeks must be a number")
    if weeks < 1 or weeks > 52:
        raise ValidationError("weeks must be between 1 and 52")
    return weeks

class ReportService:
    """Tenant-scoped aggregations over the attendance table."""

    # ---- attendance history -------------------------------------------------

    @staticmethod
    def _history_row(record: AttendanceRecord) -> Dict[str, Any]:
        person = record.member if record.member is not None else record.visitor
        is_visitor = record.visitor_id is not None
        return {
            'id': record.id,
            'memberId': record.member_id,
            'visitorId': record.visitor_id,
            'eventId': record.event_id,
            'eventName': record.event.name if record.event else None,
            'attendanceDate': record.attendance_date.isoformat(),
            'checkInTime': record.check_in_time.isoformat(),
            'checkInMethod': record.check_in_method.value,
            'isGuest': record.is_guest,
            'isVisitor': is_visitor,
            'personName': record.person_name,
            'gender': serialize_value(person.gender) if person else None,
            'ageGroup': serialize_value(person.age_group) if person else None,
            'phone': person.phone if person else None,
            'email': person.email if person else None,
            'isCurrentMember': None if is_visitor or person is None else person.is_current_member,
        }

    @staticmethod
    def _records_query(church_id: int, start_date: date, end_date: date):
        return AttendanceRecord.query.outerjoin(
            Member, AttendanceRecord.member_id == Member.id
        ).outerjoin(
            Visitor, AttendanceRecord.visitor_id == Visitor.id
        ).filter(
            AttendanceRecord.church_id == church_id,
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date
        )

    @staticmethod
    def attendance_history(church_id: int, args: Dict[str, str]) -> List[Dict]:
        start_date, end_date = date_window(args.get('startDate'), args.get('endDate'), default_days=30)
        query = ReportService._records_query(church_id, start_date, end_date)

        if args.get('memberId'):
            query = query.filter(AttendanceRecord.member_id == parse_id(args['memberId'], 'memberId'))
        if args.get('gender'):
            gender = Gender(args['gender']) if args['gender'] in [g.value for g in Gender] else None
            if gender is None:
                raise ValidationError("Invalid gender filter")
            query = query.filter(or_(Member.gender == gender, Visitor.gender == gender))
        if args.get('ageGroup'):
            age_group = AgeGroup(args['ageGroup']) if args['ageGroup'] in [a.value for a in AgeGroup] else None
            if age_group is None:
                raise ValidationError("Invalid ageGroup filter")
            query = query.filter(or_(Member.age_group == age_group, Visitor.age_group == age_group))
        if args.get('isCurrentMember') not in (None, ''):
            query = query.filter(Member.is_current_member == parse_bool(args['isCurrentMember']))

        records = query.order_by(
            AttendanceRecord.attendance_date.desc(), AttendanceRecord.check_in_time.desc()
        ).all()
        return [ReportService._history_row(record) for record in records]

    @staticmethod
    def attendance_date_range(church_id: int) -> Dict[str, str]:
        earliest, latest = db.session.query(
            func.min(AttendanceRecord.attendance_date),
            func.max(AttendanceRecord.attendance_date)
        ).filter(AttendanceRecord.church_id == church_id).one()

        fallback = today()
        return {
            'earliest': serialize_value(earliest or fallback),
            'latest': serialize_value(latest or fallback),
        }

    @staticmethod
    def attendance_stats_range(church_id: int, start: Optional[str], end: Optional[str]) -> Dict:
        start_date, end_date = date_window(start, end)
        records = ReportService._records_query(church_id, start_date, end_date).all()

        per_day: Dict[str, int] = {}
        for record in records:
            key = record.attendance_date.isoformat()
            per_day[key] = per_day.get(key, 0) + 1

        stats = AttendanceService.demographics(records)
        total_days = len(per_day)
        return {
            'startDate': start_date.isoformat(),
            'endDate': end_date.isoformat(),
            'totalDays': total_days,
            'totalAttendance': len(records),
            'averagePerDay': round(len(records) / total_days, 2) if total_days else 0,
            'memberAttendance': sum(1 for record in records if record.member_id is not None),
            'visitorAttendance': sum(1 for record in records if record.visitor_id is not None),
            'genderBreakdown': {'male': stats['male'], 'female': stats['female']},
            'ageGroupBreakdown': {
                'child': stats['child'], 'adolescent': stats['adolescent'], 'adult': stats['adult'],
            },
            'dailyCounts': [{'date': day, 'count': per_day[day]} for day in sorted(per_day)],
        }

    # ---- named reports ------------------------------------------------------

    @staticmethod
    def weekly_attendance(church_id: int, args: Dict[str, str]) -> List[Dict]:
        """Member check-ins per day and gender."""
        start_date, end_date = date_window(args.get('startDate'), args.get('endDate'))
        rows = db.session.query(
            AttendanceRecord.attendance_date, Member.gender, func.count(AttendanceRecord.id)
        ).join(
            Member, AttendanceRecord.member_id == Member.id
        ).filter(
            AttendanceRecord.church_id == church_id,
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date
        ).group_by(
            AttendanceRecord.attendance_date, Member.gender
        ).order_by(AttendanceRecord.attendance_date).all()

        return [
            {'date': day.isoformat(), 'group': gender.value, 'count': count}
            for day, gender, count in rows
        ]

    @staticmethod
    def member_attendance_log(church_id: int, args: Dict[str, str]) -> List[Dict]:
        query = db.session.query(AttendanceRecord, Member).join(
            Member, AttendanceRecord.member_id == Member.id
        ).filter(AttendanceRecord.church_id == church_id)

        if args.get('memberId'):
            query = query.filter(AttendanceRecord.member_id == parse_id(args['memberId'], 'memberId'))
        if args.get('startDate'):
            query = query.filter(AttendanceRecord.attendance_date >= parse_date(args['startDate'], 'startDate'))
        if args.get('endDate'):
            query = query.filter(AttendanceRecord.attendance_date <= parse_date(args['endDate'], 'endDate'))

        rows = query.order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.check_in_time.desc()).all()
        return [
            {
                'memberId': member.id,
                'memberName': member.full_name,
                'group': member.gender.value,
                'attendanceDate': record.attendance_date.isoformat(),
                'checkInTime': record.check_in_time.isoformat(),
                'checkInMethod': record.check_in_method.value,
                'eventName': record.event.name if record.event else None,
            }
            for record, member in rows
        ]

    @staticmethod
    def last_attendance_by_member(church_id: int) -> Dict[int, date]:
        rows = db.session.query(
            AttendanceRecord.member_id, func.max(AttendanceRecord.attendance_date)
        ).filter(
            AttendanceRecord.church_id == church_id,
            AttendanceRecord.member_id.isnot(None)
        ).group_by(AttendanceRecord.member_id).all()
        return {member_id: last for member_id, last in rows}

    @staticmethod
    def _member_absence_row(member: Member, last: Optional[date]) -> Dict:
        return {
            'id': member.id,
            'firstName': member.first_name,
            'surname': member.surname,
            'group': member.gender.value,
            'ageGroup': member.age_group.value,
            'phone': member.phone,
            'email': member.email,
            'lastAttendance': serialize_value(last),
        }

    @staticmethod
    def missed_services(church_id: int, args: Dict[str, str]) -> List[Dict]:
        """Current members with no check-in during the last N weeks."""
        weeks = parse_weeks(args.get('weeks'))
        cutoff = today() - timedelta(weeks=weeks)
        last_seen = ReportService.last_attendance_by_member(church_id)

        members = Member.for_church(church_id).filter(
            Member.is_current_member.is_(True)
        ).order_by(Member.first_name, Member.surname).all()

        return [
            ReportService._member_absence_row(member, last_seen.get(member.id))
            for member in members
            if last_seen.get(member.id) is None or last_seen[member.id] < cutoff
        ]

    @staticmethod
    def inactive_members(church_id: int, args: Dict[str, str]) -> List[Dict]:
        """Every member, current or not, whose last check-in predates the window."""
        weeks = parse_weeks(args.get('weeks'), default=4)
        cutoff = today() - timedelta(weeks=weeks)
        last_seen = ReportService.last_attendance_by_member(church_id)

        members = Member.for_church(church_id).order_by(Member.first_name, Member.surname).all()
        rows = []
        for member in members:
            last = last_seen.get(member.id)
            if last is None or last < cutoff:
                row = ReportService._member_absence_row(member, last)
                row['isCurrentMember'] = member.is_current_member
                row['weeksSinceLastAttendance'] = (today() - last).days // 7 if last else None
                rows.append(row)
        return rows

    @staticmethod
    def new_members(church_id: int, args: Dict[str, str]) -> List[Dict]:
        start_date, end_date = date_window(args.get('startDate'), args.get('endDate'), default_days=30)
        start_dt = datetime.combine(start_date, datetime.min.time())
        end_dt = datetime.combine(end_date + timedelta(days=1), datetime.min.time())

        members = Member.for_church(church_id).filter(
            Member.created_at >= start_dt,
            Member.created_at < end_dt
        ).order_by(Member.created_at.desc()).all()
        return [member.to_dict() for member in members]

    @staticmethod
    def group_attendance_trend(church_id: int, args: Dict[str, str]) -> List[Dict]:
        """Member check-ins per day and age group."""
        start_date, end_date = date_window(args.get('startDate'), args.get('endDate'), default_days=28)
        rows = db.session.query(
            Member.age_group, AttendanceRecord.attendance_date, func.count(AttendanceRecord.id)
        ).join(
            Member, AttendanceRecord.member_id == Member.id
        ).filter(
            AttendanceRecord.church_id == church_id,
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date
        ).group_by(
            Member.age_group, AttendanceRecord.attendance_date
        ).order_by(AttendanceRecord.attendance_date, Member.age_group).all()

        return [
            {'group': group.value, 'attendanceDate': day.isoformat(), 'count': count}
            for group, day, count in rows
        ]

    @staticmethod
    def family_checkin_summary(church_id: int, args: Dict[str, str]) -> List[Dict]:
        day = parse_date(args['date'], 'date') if args.get('date') else today()
        parent = aliased(Member)

        rows = db.session.query(AttendanceRecord, Member, parent).join(
            Member, AttendanceRecord.member_id == Member.id
        ).outerjoin(
            parent, Member.parent_id == parent.id
        ).filter(
            AttendanceRecord.church_id == church_id,
            AttendanceRecord.attendance_date == day,
            AttendanceRecord.check_in_method == CheckInMethod.FAMILY
        ).order_by(AttendanceRecord.check_in_time).all()

        return [
            {
                'parentId': member.parent_id,
                'parentName': parent_member.full_name if parent_member else None,
                'memberId': member.id,
                'childName': member.full_name,
                'childGroup': member.age_group.value,
                'checkInTime': record.check_in_time.isoformat(),
            }
            for record, member, parent_member in rows
        ]

    @staticmethod
    def followup_action_tracker(church_id: int, args: Dict[str, str] = None) -> List[Dict]:
        rows = db.session.query(FollowUpRecord, Member).join(
            Member, FollowUpRecord.member_id == Member.id
        ).filter(
            FollowUpRecord.church_id == church_id
        ).order_by(
            FollowUpRecord.needs_follow_up.desc(),
            FollowUpRecord.consecutive_absences.desc()
        ).all()

        return [
            {
                'memberId': member.id,
                'memberName': member.full_name,
                'consecutiveAbsences': record.consecutive_absences,
                'lastContactDate': serialize_value(record.last_contact_date),
                'contactMethod': record.contact_method,
                'needsFollowUp': record.needs_follow_up,
            }
            for record, member in rows
        ]

    @staticmethod
    def generate(church_id: int, report_type: str, args: Dict[str, str]) -> List[Dict]:
        generators = {
            'weekly-attendance': ReportService.weekly_attendance,
            'member-attendance-log': ReportService.member_attendance_log,
            'missed-services': ReportService.missed_services,
            'new-members': ReportService.new_members,
            'inactive-members': ReportService.inactive_members,
            'group-attendance-trend': ReportService.group_attendance_trend,
            'family-checkin-summary': ReportService.family_checkin_summary,
            'followup-action-tracker': ReportService.followup_action_tracker,
        }
        if report_type not in generators:
            raise ValidationError(f"Unknown report type: {report_type}")
        return generators[report_type](church_id, args)

    # ---- saved configs and run history --------------------------------------

    @staticmethod
    def create_config(church_id: int, user_id: int, data: Dict) -> ReportConfig:
        name = (data.get('name') or '').strip()
        report_type = data.get('reportType')
        if not name:
            raise ValidationError("name is required")
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"reportType must be one of: {', '.join(REPORT_TYPES)}")
        parameters = data.get('parameters') or {}
        if not isinstance(parameters, dict):
            raise ValidationError("parameters must be an object")

        config = ReportConfig(
            church_id=church_id,
            name=name,
            report_type=report_type,
            description=data.get('description'),
            parameters=parameters,
            created_by=user_id
        )
        return config.save()

    @staticmethod
    def list_configs(church_id: int) -> List[ReportConfig]:
        return ReportConfig.for_church(church_id).order_by(ReportConfig.name).all()

    @staticmethod
    def record_run(church, user_id: int, data: Dict) -> ReportRun:
        """Log that a report was generated, within the monthly allowance."""
        church_id = church.id
        limit = usage_limit(church.subscription_tier, 'monthly_reports', church.is_trial_active())
        used = FeatureService.reports_this_month(church)
        if limit is not None and used >= limit:
            raise FeatureNotAvailableError(
                f"Monthly report limit of {limit} reached",
                currentCount=used,
                limit=limit
            )

        config = None
        if data.get('reportConfigId') is not None:
            config = ReportConfig.get_for_church(data['reportConfigId'], church_id)
            if not config:
                raise ValidationError("Report config not found")

        report_type = data.get('reportType') or (config.report_type if config else None)
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"reportType must be one of: {', '.join(REPORT_TYPES)}")
        parameters = data.get('parameters') or (config.parameters if config else {})
        if not isinstance(parameters, dict):
            raise ValidationError("parameters must be an object")

        run = ReportRun(
            church_id=church_id,
            report_config_id=config.id if config else None,
            report_type=report_type,
            parameters=parameters,
            generated_by=user_id,
            row_count=data.get('rowCount')
        )
        return run.save()

    @staticmethod
    def list_runs(church_id: int) -> List[ReportRun]:
        return ReportRun.for_church(church_id).order_by(ReportRun.generated_at.desc()).all()

    # ---- CSV exports --------------------------------------------------------

    @staticmethod
    def attendance_export_frame(church_id: int, start: Optional[str], end: Optional[str]) -> pd.DataFrame:
        start_date, end_date = date_window(start, end, default_days=30)
        records = ReportService._records_query(church_id, start_date, end_date).order_by(
            AttendanceRecord.attendance_date.desc(), AttendanceRecord.check_in_time.desc()
        ).all()

        rows = []
        for record in records:
            row = ReportService._history_row(record)
            rows.append([
                row['id'], row['personName'], row['eventName'], row['checkInTime'],
                row['checkInMethod'], row['gender'], row['ageGroup'], row['phone'],
                row['email'], row['attendanceDate'],
            ])
        return pd.DataFrame(rows, columns=ATTENDANCE_EXPORT_COLUMNS)

    @staticmethod
    def members_export_frame(church_id: int) -> pd.DataFrame:
        members = Member.for_church(church_id).order_by(Member.first_name, Member.surname).all()
        return pd.DataFrame([
            {
                'ID': member.id,
                'Title': member.title,
                'First Name': member.first_name,
                'Surname': member.surname,
                'Gender': member.gender.value,
                'Age Group': member.age_group.value,
                'Phone': member.phone,
                'Email': member.email,
                'WhatsApp': member.whatsapp_number,
                'Address': member.address,
                'Date of Birth': serialize_value(member.date_of_birth),
                'Wedding Anniversary': serialize_value(member.wedding_anniversary),
                'Current Member': member.is_current_member,
                'Parent ID': member.parent_id,
                'Joined': serialize_value(member.created_at),
            }
            for member in members
        ], columns=[
            'ID', 'Title', 'First Name', 'Surname', 'Gender', 'Age Group', 'Phone',
            'Email', 'WhatsApp', 'Address', 'Date of Birth', 'Wedding Anniversary',
            'Current Member', 'Parent ID', 'Joined',
        ])

    @staticmethod
    def visitors_export_frame(church_id: int) -> pd.DataFrame:
        visitors = Visitor.for_church(church_id).order_by(Visitor.visit_date.desc()).all()
        return pd.DataFrame([
            {
                'ID': visitor.id,
                'Name': visitor.name,
                'Gender': serialize_value(visitor.gender),
                'Age Group': serialize_value(visitor.age_group),
                'Phone': visitor.phone,
                'Email': visitor.email,
                'Visit Date': serialize_value(visitor.visit_date),
                'How Did You Hear About Us': visitor.how_did_you_hear_about_us,
                'Prayer Points': visitor.prayer_points,
                'Follow-up Status': visitor.follow_up_status.value,
            }
            for visitor in visitors
        ], columns=[
            'ID', 'Name', 'Gender', 'Age Group', 'Phone', 'Email', 'Visit Date',
            'How Did You Hear About Us', 'Prayer Points', 'Follow-up Status',
        ])
