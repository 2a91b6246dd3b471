"""Pastoral follow-up queue driven by attendance gaps."""
from datetime import timedelta
from typing import Dict, List

from flask import current_app

from churchconnect import db
from churchconnect.models import FollowUpRecord, Member, ProviderType
from churchconnect.services.feature_service import FeatureService
from churchconnect.services.member_service import MemberService
from churchconnect.services.notification_service import NotificationService
from churchconnect.services.report_service import ReportService
from churchconnect.utils.errors import ValidationError
from churchconnect.utils.helpers import today, utcnow

CONTACT_METHODS = [t.value for t in ProviderType]

class FollowUpService:

    @staticmethod
    def queue(church_id: int) -> List[FollowUpRecord]:
        return FollowUpRecord.query.join(
            Member, FollowUpRecord.member_id == Member.id
        ).filter(
            FollowUpRecord.church_id == church_id,
            FollowUpRecord.needs_follow_up.is_(True)
        ).order_by(
            FollowUpRecord.consecutive_absences.desc(), Member.first_name
        ).all()

    @staticmethod
    def _record_for(member: Member) -> FollowUpRecord:
        record = FollowUpRecord.query.filter_by(member_id=member.id).first()
        if record is None:
            record = FollowUpRecord(church_id=member.church_id, member_id=member.id)
            db.session.add(record)
        return record

    @staticmethod
    def update_absences(church_id: int) -> Dict[str, int]:
        """Recompute absence counters for every current member."""
        weeks = current_app.config['FOLLOW_UP_ABSENCE_WEEKS']
        current_day = today()
        cutoff = current_day - timedelta(weeks=weeks)
        last_seen = ReportService.last_attendance_by_member(church_id)

        flagged = cleared = 0
        members = Member.for_church(church_id).filter(Member.is_current_member.is_(True)).all()
        for member in members:
            reference = last_seen.get(member.id) or member.created_at.date()
            record = FollowUpService._record_for(member)

            if reference < cutoff:
                record.consecutive_absences = (current_day - reference).days // 7
                record.needs_follow_up = True
                flagged += 1
            else:
                if record.needs_follow_up:
                    cleared += 1
                record.consecutive_absences = 0
                record.needs_follow_up = False

        db.session.commit()
        current_app.logger.info('Follow-up refresh for church %s: %s flagged, %s cleared', church_id, flagged, cleared)
        return {'processed': len(members), 'flagged': flagged, 'cleared': cleared}

    @staticmethod
    def mark_contacted(church, member_id: int, method) -> Dict:
        """Record the contact and notify the member; notification never fails the call."""
        if method not in CONTACT_METHODS:
            raise ValidationError(f"method must be one of: {', '.join(CONTACT_METHODS)}")

        member = MemberService.get_member(church.id, member_id)
        record = FollowUpService._record_for(member)
        record.last_contact_date = utcnow()
        record.contact_method = method
        record.needs_follow_up = False
        db.session.commit()

        provider_type = ProviderType(method)
        if FeatureService.church_has_feature(church, f'{method}_notifications'):
            notification = NotificationService.send_to_member(
                church.id, member, provider_type,
                f'Hello {member.first_name}, we missed you at {church.name}. '
                'We would love to see you again soon.',
                subject=f'We missed you at {church.name}'
            )
        else:
            notification = {
                'success': False,
                'message': f'{method} notifications are not included in your plan',
                'providerMessageId': None,
            }

        if not notification['success']:
            current_app.logger.info('Follow-up notice for member %s not sent: %s', member.id, notification['message'])

        return {
            'success': True,
            'followUp': record.to_dict(),
            'notification': notification,
        }
