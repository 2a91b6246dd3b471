"""Endpoints reachable with a kiosk capability token."""
from flask import Blueprint, request, jsonify
from churchconnect.services.kiosk_service import KioskService
from churchconnect.utils.decorators import kiosk_session_required, current_kiosk
from churchconnect.utils.helpers import success_response, parse_id, parse_id_list
from churchconnect.utils.validators import require_json

kiosk_bp = Blueprint('kiosk', __name__)

@kiosk_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Kiosk service is running")

@kiosk_bp.route('/session', methods=['GET'])
@kiosk_session_required
def session_state():
    """Live session state with the server-computed time remaining."""
    kiosk = current_kiosk()
    return jsonify({
        'churchName': kiosk.church.name,
        'brandColor': kiosk.church.brand_color,
        'logoUrl': kiosk.church.logo_url,
        'activeSession': KioskService.session_state(kiosk.session),
    })

@kiosk_bp.route('/members', methods=['GET'])
@kiosk_session_required
def members():
    return jsonify(KioskService.search_members(current_kiosk().session, request.args.get('search')))

@kiosk_bp.route('/checkin', methods=['POST'])
@kiosk_session_required
def checkin():
    data = require_json(request.get_json(silent=True))
    return jsonify(KioskService.check_in(
        current_kiosk().session,
        parse_id(data.get('memberId'), 'memberId'),
        parse_id(data.get('eventId'), 'eventId')
    )), 201

@kiosk_bp.route('/family-checkin', methods=['POST'])
@kiosk_session_required
def family_checkin():
    """Parent plus selected children; all children when childrenIds is absent."""
    data = require_json(request.get_json(silent=True))
    children_ids = data.get('childrenIds')
    return jsonify(KioskService.family_check_in(
        current_kiosk().session,
        parse_id(data.get('parentId'), 'parentId'),
        parse_id_list(children_ids, 'childrenIds') if children_ids is not None else None,
        parse_id(data.get('eventId'), 'eventId')
    ))
