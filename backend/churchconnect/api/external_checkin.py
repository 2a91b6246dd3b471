"""Public self check-in pages reached through an event's URL token."""
from flask import Blueprint, current_app, request, jsonify
from churchconnect import limiter
from churchconnect.services.external_checkin_service import ExternalCheckInService
from churchconnect.utils.errors import ValidationError
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

external_checkin_bp = Blueprint('external_checkin', __name__)

@external_checkin_bp.route('/external-checkin/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="External check-in service is running")

@external_checkin_bp.route('/external-checkin/event/<event_url>', methods=['GET'])
def public_event(event_url):
    return jsonify(ExternalCheckInService.public_event(event_url))

@external_checkin_bp.route('/external-checkin/checkin/<event_url>', methods=['POST'])
@limiter.limit(lambda: current_app.config['EXTERNAL_CHECKIN_RATE_LIMIT'])
def submit_checkin(event_url):
    """Check in with the event PIN."""
    data = require_json(request.get_json(silent=True))
    return jsonify(ExternalCheckInService.submit(event_url, data.get('pin'), data.get('memberId')))

def _members_for_request():
    data = require_json(request.get_json(silent=True))
    event_url = data.get('eventUrl')
    if not event_url:
        raise ValidationError("eventUrl is required")
    return jsonify(ExternalCheckInService.members(event_url, data.get('search')))

@external_checkin_bp.route('/external-checkin/members', methods=['POST'])
def members():
    return _members_for_request()

@external_checkin_bp.route('/external-checkin/search', methods=['POST'])
def search_members():
    return _members_for_request()
