"""External check-in: per-event public URL plus PIN."""
import base64
import io
import secrets
from typing import Dict, Optional, Tuple

import qrcode
from flask import current_app, request

from churchconnect import db
from churchconnect.models import Church, Event, Member, CheckInMethod
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.errors import (
    AuthenticationError, AuthorizationError, DuplicateCheckInError, NotFoundError,
    ValidationError
)

PIN_LENGTH = 6
NOT_FOUND_MESSAGE = "External check-in not found or disabled"
INVALID_PIN_MESSAGE = "Invalid PIN or check-in not available"

class ExternalCheckInService:
    """Issue, revoke and validate external check-in credentials."""

    @staticmethod
    def generate_url_token(previous: Optional[str] = None) -> str:
        """Random URL token, distinct from the previous one and unused."""
        nbytes = current_app.config['EXTERNAL_CHECKIN_TOKEN_BYTES']
        while True:
            token = secrets.token_urlsafe(nbytes)
            if token == previous:
                continue
            if Event.query.filter_by(external_checkin_url=token).first() is None:
                return token

    @staticmethod
    def generate_pin() -> str:
        return f'{secrets.randbelow(10 ** PIN_LENGTH):0{PIN_LENGTH}d}'

    @staticmethod
    def public_base_url() -> str:
        base = current_app.config.get('PUBLIC_BASE_URL') or request.host_url
        return base.rstrip('/')

    @staticmethod
    def full_url(token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return f'{ExternalCheckInService.public_base_url()}/external-checkin/{token}'

    @staticmethod
    def generate_qr_code(data: str) -> str:
        """Base64 PNG data URI of a QR code for the link."""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def _owned_event(church_id: int, event_id: int) -> Event:
        """Unknown event is a 404, another church's event a 403."""
        event = db.session.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event.church_id != church_id:
            raise AuthorizationError("Event belongs to a different church")
        return event

    @staticmethod
    def toggle(church_id: int, event_id: int, enabled) -> Dict:
        if not isinstance(enabled, bool):
            raise ValidationError("enabled must be a boolean")

        event = ExternalCheckInService._owned_event(church_id, event_id)

        if enabled:
            values = {
                Event.external_checkin_enabled: True,
                Event.external_checkin_url: ExternalCheckInService.generate_url_token(event.external_checkin_url),
                Event.external_checkin_pin: ExternalCheckInService.generate_pin(),
            }
        else:
            values = {
                Event.external_checkin_enabled: False,
                Event.external_checkin_url: None,
                Event.external_checkin_pin: None,
            }

        # Flag, URL and PIN change in a single UPDATE
        Event.query.filter_by(id=event.id).update(values, synchronize_session=False)
        db.session.commit()
        db.session.refresh(event)

        current_app.logger.info(
            'External check-in %s for event %s', 'enabled' if enabled else 'disabled', event.id
        )
        data = event.to_dict()
        if enabled:
            data['externalCheckinPin'] = event.external_checkin_pin
        return {
            'success': True,
            'event': data,
            'externalUrl': ExternalCheckInService.full_url(event.external_checkin_url) if enabled else None,
        }

    @staticmethod
    def admin_details(church_id: int, event_id: int) -> Dict:
        event = ExternalCheckInService._owned_event(church_id, event_id)
        full_url = ExternalCheckInService.full_url(event.external_checkin_url)
        return {
            'enabled': bool(event.external_checkin_enabled),
            'url': event.external_checkin_url,
            'pin': event.external_checkin_pin,
            'fullUrl': full_url,
            'qrCode': (
                ExternalCheckInService.generate_qr_code(full_url)
                if event.external_checkin_enabled and full_url else None
            ),
        }

    @staticmethod
    def resolve_public_event(event_url: str) -> Tuple[Event, Church]:
        """Enabled, active event with its church, or a generic 404."""
        event = Event.query.filter_by(
            external_checkin_url=event_url,
            external_checkin_enabled=True,
            is_active=True
        ).first() if event_url else None

        church = db.session.get(Church, event.church_id) if event else None
        if event is None or church is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return event, church

    @staticmethod
    def public_event(event_url: str) -> Dict:
        event, church = ExternalCheckInService.resolve_public_event(event_url)
        return {
            'eventId': event.id,
            'eventName': event.name,
            'eventType': event.event_type.value,
            'location': event.location,
            'churchName': church.name,
            'churchBrandColor': church.brand_color,
            'requiresPin': True,
        }

    @staticmethod
    def submit(event_url: str, pin, member_id) -> Dict:
        """Validate URL and PIN together, then record the check-in."""
        if not pin or not member_id:
            raise ValidationError("PIN and member ID are required")

        pin = str(pin)
        if len(pin) != PIN_LENGTH:
            raise ValidationError("PIN must be exactly 6 digits")

        event = Event.query.filter_by(
            external_checkin_url=event_url,
            external_checkin_pin=pin,
            external_checkin_enabled=True,
            is_active=True
        ).first()
        if event is None:
            raise AuthenticationError(INVALID_PIN_MESSAGE)

        try:
            member_id = int(member_id)
        except (TypeError, ValueError):
            raise NotFoundError("Member not found")

        member = Member.get_for_church(member_id, event.church_id)
        if member is None:
            raise NotFoundError("Member not found")

        try:
            record = AttendanceService.record_check_in(
                event.church_id, CheckInMethod.EXTERNAL, member_id=member.id, event_id=event.id
            )
        except DuplicateCheckInError:
            raise DuplicateCheckInError("You have already checked in to this event today")

        return {
            'success': True,
            'message': f'Check-in successful for {member.full_name}',
            'member': {
                'name': member.full_name,
                'checkInTime': record.check_in_time.isoformat(),
            },
        }

    @staticmethod
    def members(event_url: str, search: Optional[str] = None):
        """Current members of the URL's church with nested children."""
        from churchconnect.services.member_service import MemberService

        event, _ = ExternalCheckInService.resolve_public_event(event_url)
        members = MemberService.search_current_members(event.church_id, search)
        return [member.to_public_dict() for member in members]
