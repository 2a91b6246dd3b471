"""SMS and email delivery through church-configured providers."""
import base64
import json
from typing import Dict, List, Optional

import requests
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from flask import current_app

from churchconnect import db
from churchconnect.models import (
    CommunicationProvider, MessageDelivery, ProviderType, DeliveryStatus
)
from churchconnect.utils.errors import NotFoundError, ValidationError
from churchconnect.utils.helpers import parse_bool, utcnow

PROVIDER_TYPES = [t.value for t in ProviderType]

# Credential keys each provider needs
PROVIDER_CREDENTIALS = {
    'twilio': ('accountSid', 'authToken', 'fromNumber'),
    'sendgrid': ('apiKey', 'fromEmail'),
    'webhook': ('url',),
    'console': (),
}

PROVIDER_TYPES_BY_NAME = {
    'twilio': {'sms'},
    'sendgrid': {'email'},
    'webhook': {'sms', 'email'},
    'console': {'sms', 'email'},
}

TWILIO_URL = 'https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json'
SENDGRID_URL = 'https://api.sendgrid.com/v3/mail/send'

def _fernet() -> Fernet:
    key = current_app.config.get('CREDENTIALS_ENCRYPTION_KEY')
    if not key:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b'churchconnect-provider-credentials',
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(current_app.config['SECRET_KEY'].encode()))
    return Fernet(key)

def encrypt_credentials(credentials: Dict) -> str:
    return _fernet().encrypt(json.dumps(credentials).encode()).decode()

def decrypt_credentials(token: str) -> Dict:
    try:
        return json.loads(_fernet().decrypt(token.encode()))
    except InvalidToken:
        current_app.logger.error('Could not decrypt provider credentials')
        return {}

def mask_value(value) -> str:
    value = str(value or '')
    if len(value) <= 4:
        return '****'
    return '****' + value[-4:]

class NotificationService:
    """Provider configuration and the single send path."""

    @staticmethod
    def serialize_provider(provider: CommunicationProvider) -> Dict:
        result = provider.to_dict()
        credentials = decrypt_credentials(provider.encrypted_credentials)
        result['credentials'] = {key: mask_value(value) for key, value in credentials.items()}
        return result

    @staticmethod
    def list_providers(church_id: int) -> List[CommunicationProvider]:
        return CommunicationProvider.for_church(church_id).order_by(
            CommunicationProvider.provider_type, CommunicationProvider.display_name
        ).all()

    @staticmethod
    def get_provider(church_id: int, provider_id: int) -> CommunicationProvider:
        provider = CommunicationProvider.get_for_church(provider_id, church_id)
        if not provider:
            raise NotFoundError("Provider not found")
        return provider

    @staticmethod
    def _validate_credentials(provider_name: str, credentials) -> Dict:
        if not isinstance(credentials, dict):
            raise ValidationError("credentials must be an object")
        missing = [key for key in PROVIDER_CREDENTIALS[provider_name] if not credentials.get(key)]
        if missing:
            raise ValidationError(f"Missing credentials: {', '.join(missing)}")
        return credentials

    @staticmethod
    def _clear_primary(church_id: int, provider_type: ProviderType, keep_id: Optional[int] = None) -> None:
        query = CommunicationProvider.query.filter_by(
            church_id=church_id, provider_type=provider_type, is_primary=True
        )
        if keep_id is not None:
            query = query.filter(CommunicationProvider.id != keep_id)
        query.update({CommunicationProvider.is_primary: False}, synchronize_session=False)

    @staticmethod
    def create_provider(church_id: int, user_id: int, data: Dict) -> CommunicationProvider:
        provider_type = data.get('providerType')
        provider_name = data.get('providerName')
        display_name = (data.get('displayName') or '').strip()

        if provider_type not in PROVIDER_TYPES:
            raise ValidationError(f"providerType must be one of: {', '.join(PROVIDER_TYPES)}")
        if provider_name not in PROVIDER_CREDENTIALS:
            raise ValidationError(f"providerName must be one of: {', '.join(PROVIDER_CREDENTIALS)}")
        if provider_type not in PROVIDER_TYPES_BY_NAME[provider_name]:
            raise ValidationError(f"{provider_name} cannot send {provider_type} messages")
        if not display_name:
            raise ValidationError("displayName is required")

        credentials = NotificationService._validate_credentials(provider_name, data.get('credentials') or {})
        provider_type = ProviderType(provider_type)

        has_primary = CommunicationProvider.query.filter_by(
            church_id=church_id, provider_type=provider_type, is_primary=True
        ).first() is not None
        is_primary = parse_bool(data['isPrimary']) if 'isPrimary' in data else not has_primary
        if is_primary:
            NotificationService._clear_primary(church_id, provider_type)

        provider = CommunicationProvider(
            church_id=church_id,
            provider_type=provider_type,
            provider_name=provider_name,
            display_name=display_name,
            encrypted_credentials=encrypt_credentials(credentials),
            is_active=parse_bool(data.get('isActive', True)),
            is_primary=is_primary,
            created_by=user_id
        )
        provider.save()
        current_app.logger.info('Provider %s (%s) added for church %s', provider_name, provider_type.value, church_id)
        return provider

    @staticmethod
    def update_provider(church_id: int, provider_id: int, data: Dict) -> CommunicationProvider:
        provider = NotificationService.get_provider(church_id, provider_id)
        values = {}

        if 'displayName' in data:
            display_name = (data['displayName'] or '').strip()
            if not display_name:
                raise ValidationError("displayName is required")
            values['display_name'] = display_name
        if 'credentials' in data:
            credentials = NotificationService._validate_credentials(provider.provider_name, data['credentials'])
            values['encrypted_credentials'] = encrypt_credentials(credentials)
        if 'isActive' in data:
            values['is_active'] = parse_bool(data['isActive'])
        if 'isPrimary' in data:
            values['is_primary'] = parse_bool(data['isPrimary'])
            if values['is_primary']:
                NotificationService._clear_primary(church_id, provider.provider_type, keep_id=provider.id)

        provider.update(**values)
        return provider

    @staticmethod
    def delete_provider(church_id: int, provider_id: int) -> None:
        NotificationService.get_provider(church_id, provider_id).delete()

    @staticmethod
    def primary_provider(church_id: int, provider_type: ProviderType) -> Optional[CommunicationProvider]:
        """Primary active provider, or any active one of the type."""
        query = CommunicationProvider.query.filter_by(
            church_id=church_id, provider_type=provider_type, is_active=True
        )
        return query.filter_by(is_primary=True).first() or query.order_by(CommunicationProvider.id).first()

    # ---- transports ---------------------------------------------------------

    @staticmethod
    def _send_twilio(credentials: Dict, recipient: str, message: str, subject: Optional[str]) -> Dict:
        response = requests.post(
            TWILIO_URL.format(sid=credentials['accountSid']),
            data={'To': recipient, 'From': credentials['fromNumber'], 'Body': message},
            auth=(credentials['accountSid'], credentials['authToken']),
            timeout=current_app.config['PROVIDER_REQUEST_TIMEOUT']
        )
        if response.status_code >= 400:
            return {'success': False, 'message': f'Twilio returned {response.status_code}', 'providerMessageId': None}
        return {'success': True, 'message': 'SMS sent', 'providerMessageId': response.json().get('sid')}

    @staticmethod
    def _send_sendgrid(credentials: Dict, recipient: str, message: str, subject: Optional[str]) -> Dict:
        response = requests.post(
            SENDGRID_URL,
            json={
                'personalizations': [{'to': [{'email': recipient}]}],
                'from': {'email': credentials['fromEmail']},
                'subject': subject or 'ChurchConnect',
                'content': [{'type': 'text/plain', 'value': message}],
            },
            headers={'Authorization': f"Bearer {credentials['apiKey']}"},
            timeout=current_app.config['PROVIDER_REQUEST_TIMEOUT']
        )
        if response.status_code >= 400:
            return {'success': False, 'message': f'SendGrid returned {response.status_code}', 'providerMessageId': None}
        return {'success': True, 'message': 'Email sent', 'providerMessageId': response.headers.get('X-Message-Id')}

    @staticmethod
    def _send_webhook(credentials: Dict, recipient: str, message: str, subject: Optional[str]) -> Dict:
        headers = {}
        if credentials.get('secret'):
            headers['X-Webhook-Secret'] = credentials['secret']
        response = requests.post(
            credentials['url'],
            json={'recipient': recipient, 'message': message, 'subject': subject},
            headers=headers,
            timeout=current_app.config['PROVIDER_REQUEST_TIMEOUT']
        )
        if response.status_code >= 400:
            return {'success': False, 'message': f'Webhook returned {response.status_code}', 'providerMessageId': None}
        try:
            message_id = response.json().get('id')
        except ValueError:
            message_id = None
        return {'success': True, 'message': 'Message delivered to webhook', 'providerMessageId': message_id}

    @staticmethod
    def _send_console(credentials: Dict, recipient: str, message: str, subject: Optional[str]) -> Dict:
        current_app.logger.info('Console message to %s: %s', recipient, message)
        return {
            'success': True,
            'message': 'Message written to log',
            'providerMessageId': f'console-{int(utcnow().timestamp() * 1000)}',
        }

    @staticmethod
    def send(provider: CommunicationProvider, recipient: str, message: str,
             subject: Optional[str] = None, member_id: Optional[int] = None) -> Dict:
        """Send through one provider and log the delivery."""
        transports = {
            'twilio': NotificationService._send_twilio,
            'sendgrid': NotificationService._send_sendgrid,
            'webhook': NotificationService._send_webhook,
            'console': NotificationService._send_console,
        }
        credentials = decrypt_credentials(provider.encrypted_credentials)

        try:
            result = transports[provider.provider_name](credentials, recipient, message, subject)
        except (requests.RequestException, KeyError) as error:
            current_app.logger.warning('Provider %s failed: %s', provider.id, error)
            result = {'success': False, 'message': f'Delivery failed: {error}', 'providerMessageId': None}

        delivery = MessageDelivery(
            church_id=provider.church_id,
            provider_id=provider.id,
            member_id=member_id,
            recipient=recipient,
            subject=subject,
            message=message,
            status=DeliveryStatus.SENT if result['success'] else DeliveryStatus.FAILED,
            provider_message_id=result['providerMessageId'],
            error_message=None if result['success'] else result['message']
        )
        db.session.add(delivery)
        db.session.commit()
        return result

    @staticmethod
    def send_to_member(church_id: int, member, provider_type: ProviderType,
                       message: str, subject: Optional[str] = None) -> Dict:
        recipient = member.phone if provider_type == ProviderType.SMS else member.email
        if not recipient:
            return {'success': False, 'message': f'Member has no {provider_type.value} contact', 'providerMessageId': None}

        provider = NotificationService.primary_provider(church_id, provider_type)
        if provider is None:
            return {'success': False, 'message': f'No active {provider_type.value} provider configured', 'providerMessageId': None}

        return NotificationService.send(provider, recipient, message, subject, member_id=member.id)

    @staticmethod
    def test_provider(church_id: int, provider_id: int, recipient: Optional[str]) -> Dict:
        provider = NotificationService.get_provider(church_id, provider_id)
        if not recipient:
            raise ValidationError("recipient is required")

        result = NotificationService.send(
            provider, recipient,
            'This is a test message from ChurchConnect.',
            subject='ChurchConnect provider test'
        )
        provider.update(
            test_status='success' if result['success'] else 'failed',
            test_message=result['message'],
            last_tested_at=utcnow()
        )
        return {'success': result['success'], 'message': result['message'], 'provider': NotificationService.serialize_provider(provider)}

    @staticmethod
    def deliveries(church_id: int, limit: int = 50) -> List[MessageDelivery]:
        return MessageDelivery.for_church(church_id).order_by(
            MessageDelivery.created_at.desc()
        ).limit(limit).all()
