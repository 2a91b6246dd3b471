"""Event management and per-event external check-in control."""
from flask import Blueprint, request, jsonify
from churchconnect.services.event_service import EventService
from churchconnect.services.external_checkin_service import ExternalCheckInService
from churchconnect.utils.decorators import (
    admin_required, church_context_required, staff_required, current_context,
    CHECK_IN, VIEW_REPORTS
)
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

events_bp = Blueprint('events', __name__)

@events_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Events service is running")

@events_bp.route('', methods=['GET'])
@staff_required
def list_events():
    events = EventService.list_events(current_context().church_id)
    return jsonify([event.to_dict() for event in events])

@events_bp.route('/active', methods=['GET'])
@staff_required
def active_events():
    events = EventService.list_events(current_context().church_id, active_only=True)
    return jsonify([event.to_dict() for event in events])

@events_bp.route('', methods=['POST'])
@admin_required
def create_event():
    data = require_json(request.get_json(silent=True))
    context = current_context()
    event = EventService.create_event(context.church_id, context.user.id, data)
    return jsonify(event.to_dict()), 201

@events_bp.route('/attendance-counts', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def attendance_counts():
    return jsonify(EventService.attendance_counts(current_context().church_id))

@events_bp.route('/<int:event_id>', methods=['GET'])
@staff_required
def get_event(event_id):
    return jsonify(EventService.get_event(current_context().church_id, event_id).to_dict())

@events_bp.route('/<int:event_id>', methods=['PUT'])
@admin_required
def update_event(event_id):
    data = require_json(request.get_json(silent=True))
    event = EventService.update_event(current_context().church_id, event_id, data)
    return jsonify(event.to_dict())

@events_bp.route('/<int:event_id>', methods=['DELETE'])
@admin_required
def delete_event(event_id):
    EventService.delete_event(current_context().church_id, event_id)
    return jsonify({'success': True, 'message': 'Event deleted successfully'})

@events_bp.route('/<int:event_id>/attendance-stats', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def attendance_stats(event_id):
    return jsonify(EventService.attendance_stats(current_context().church_id, event_id))

@events_bp.route('/<int:event_id>/external-checkin/toggle', methods=['POST'])
@admin_required
def toggle_external_checkin(event_id):
    """Enable with a fresh URL and PIN, or disable and clear both."""
    data = require_json(request.get_json(silent=True))
    return jsonify(ExternalCheckInService.toggle(
        current_context().church_id, event_id, data.get('enabled')
    ))

@events_bp.route('/<int:event_id>/external-checkin', methods=['GET'])
@church_context_required(CHECK_IN)
def external_checkin_details(event_id):
    return jsonify(ExternalCheckInService.admin_details(current_context().church_id, event_id))
