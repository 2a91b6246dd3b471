"""Kiosk session lifecycle."""
from datetime import timedelta
from typing import Dict, Optional
from flask import current_app
from churchconnect import db
from churchconnect.models import Church, Event, KioskSession, KioskEndReason, CheckInMethod, Member
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.services.auth_service import AuthService
from churchconnect.utils.errors import (
    AuthenticationError, NotFoundError, ValidationError
)
from churchconnect.utils.helpers import utcnow

class KioskService:
    """
    Start, extend and end kiosk sessions.

    Expiry is evaluated lazily: every read of the active session closes it
    when now >= expires_at. There is no background timer.
    """

    @staticmethod
    def active_session(church_id: int) -> Optional[KioskSession]:
        """Return the live session, closing it first if it has expired."""
        session = KioskSession.query.filter_by(church_id=church_id, is_active=True).first()
        if session is None:
            return None
        if session.is_expired():
            session.close(KioskEndReason.EXPIRED)
            db.session.commit()
            current_app.logger.info('Kiosk session %s expired for church %s', session.id, church_id)
            return None
        return session

    @staticmethod
    def session_state(session: Optional[KioskSession]) -> Optional[Dict]:
        if session is None:
            return None
        now = utcnow()
        events = Event.query.filter(
            Event.church_id == session.church_id,
            Event.id.in_(session.event_ids or [])
        ).order_by(Event.name).all()
        return {
            'id': session.id,
            'isActive': session.is_live(now),
            'timeRemaining': session.time_remaining(now),
            'startedAt': session.started_at.isoformat(),
            'expiresAt': session.expires_at.isoformat(),
            'availableEvents': [
                {
                    'id': event.id,
                    'name': event.name,
                    'eventType': event.event_type.value,
                    'location': event.location,
                    'isActive': event.is_active,
                }
                for event in events
            ],
        }

    @staticmethod
    def get_settings(church: Church) -> Dict:
        return {
            'kioskModeEnabled': church.kiosk_mode_enabled,
            'kioskSessionTimeout': church.kiosk_session_timeout,
            'activeSession': KioskService.session_state(KioskService.active_session(church.id)),
        }

    @staticmethod
    def update_settings(church: Church, data: Dict) -> Dict:
        presets = current_app.config['KIOSK_TIMEOUT_PRESETS']

        if 'kioskModeEnabled' in data:
            if not isinstance(data['kioskModeEnabled'], bool):
                raise ValidationError("kioskModeEnabled must be a boolean")
            church.kiosk_mode_enabled = data['kioskModeEnabled']

        if 'kioskSessionTimeout' in data:
            timeout = data['kioskSessionTimeout']
            if isinstance(timeout, bool) or timeout not in presets:
                raise ValidationError(
                    f"kioskSessionTimeout must be one of: {', '.join(str(p) for p in presets)}"
                )
            church.kiosk_session_timeout = timeout

        if not church.kiosk_mode_enabled:
            session = KioskSession.query.filter_by(church_id=church.id, is_active=True).first()
            if session is not None:
                session.close(KioskEndReason.DISABLED)

        db.session.commit()
        return KioskService.get_settings(church)

    @staticmethod
    def start_session(church: Church, user) -> Dict:
        """Open a session over every active event, replacing any live one."""
        if not church.kiosk_mode_enabled:
            raise ValidationError("Kiosk mode is not enabled for this church")

        events = Event.query.filter_by(church_id=church.id, is_active=True).all()
        if not events:
            raise ValidationError("No active events available. Create or activate an event before starting a kiosk session.")

        previous = KioskSession.query.filter_by(church_id=church.id, is_active=True).first()
        if previous is not None:
            reason = KioskEndReason.EXPIRED if previous.is_expired() else KioskEndReason.REPLACED
            previous.close(reason)
            # Deactivate before the insert so the one-active index holds
            db.session.flush()

        now = utcnow()
        session = KioskSession(
            church_id=church.id,
            started_by=user.id,
            started_at=now,
            expires_at=now + timedelta(minutes=church.kiosk_session_timeout),
            event_ids=[event.id for event in events],
            is_active=True
        )
        db.session.add(session)
        db.session.commit()

        current_app.logger.info(
            'Kiosk session %s started by user %s for church %s (%s events)',
            session.id, user.id, church.id, len(events)
        )
        return KioskService._with_tokens(session, user)

    @staticmethod
    def extend_session(church: Church, user) -> Dict:
        """Push the session expiry to now plus the kiosk timeout.

        The expiry never moves earlier: if the timeout was lowered mid-session,
        the longer remaining time is kept until the session runs out.
        """
        session = KioskService.active_session(church.id)
        if session is None:
            raise NotFoundError("No active kiosk session")

        new_expiry = utcnow() + timedelta(minutes=church.kiosk_session_timeout)
        session.expires_at = max(session.expires_at, new_expiry)
        db.session.commit()

        return KioskService._with_tokens(session, user)

    @staticmethod
    def end_session(church: Church) -> Dict:
        session = KioskSession.query.filter_by(church_id=church.id, is_active=True).first()
        if session is not None:
            reason = KioskEndReason.EXPIRED if session.is_expired() else KioskEndReason.ENDED
            session.close(reason)
            db.session.commit()
            current_app.logger.info('Kiosk session %s closed (%s)', session.id, reason.value)

        return {
            'success': True,
            'message': 'Kiosk session ended',
            'activeSession': None,
        }

    @staticmethod
    def _with_tokens(session: KioskSession, user) -> Dict:
        return {
            'success': True,
            'activeSession': KioskService.session_state(session),
            'token': AuthService.create_user_token(user),
            'kioskToken': AuthService.create_kiosk_token(session),
        }

    @staticmethod
    def load_live_session(session_id, church_id) -> KioskSession:
        """Resolve a kiosk token's session or reject the request."""
        session = None
        if session_id is not None and church_id is not None:
            session = KioskSession.get_for_church(session_id, church_id)

        if session is None or not session.is_active:
            raise AuthenticationError("Kiosk session is not active")

        if session.is_expired():
            session.close(KioskEndReason.EXPIRED)
            db.session.commit()
            raise AuthenticationError("Kiosk session has expired")

        return session

    @staticmethod
    def search_members(session: KioskSession, search: Optional[str] = None):
        from churchconnect.services.member_service import MemberService

        members = MemberService.search_current_members(session.church_id, search)
        return [member.to_public_dict() for member in members]

    @staticmethod
    def check_in(session: KioskSession, member_id, event_id) -> Dict:
        if member_id is None:
            raise ValidationError("memberId is required")
        AttendanceService.ensure_event_in_scope(session, event_id)

        member = Member.get_for_church(member_id, session.church_id)
        if not member:
            raise NotFoundError("Member not found")

        record = AttendanceService.record_check_in(
            session.church_id, CheckInMethod.KIOSK, member_id=member.id, event_id=event_id
        )
        return {
            'success': True,
            'message': f'{member.full_name} checked in successfully',
            'member': {
                'name': member.full_name,
                'checkInTime': record.check_in_time.isoformat(),
            },
        }

    @staticmethod
    def family_check_in(session: KioskSession, parent_id, children_ids, event_id) -> Dict:
        if parent_id is None:
            raise ValidationError("parentId is required")
        AttendanceService.ensure_event_in_scope(session, event_id)
        return AttendanceService.family_check_in(
            session.church_id, parent_id, children_ids, event_id, method=CheckInMethod.KIOSK, public=True
        )
