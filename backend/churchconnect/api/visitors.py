"""Visitor registry and follow-up funnel endpoints."""
from flask import Blueprint, request, jsonify
from churchconnect.services.visitor_service import VisitorService
from churchconnect.utils.decorators import (
    church_context_required, requires_feature, current_context,
    CHECK_IN, MANAGE_MEMBERS, VIEW_MEMBERS
)
from churchconnect.utils.helpers import success_response, parse_id
from churchconnect.utils.validators import require_json

visitors_bp = Blueprint('visitors', __name__)

@visitors_bp.route('/visitors/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Visitors service is running")

@visitors_bp.route('/visitors', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
@requires_feature('visitor_management')
def list_visitors():
    visitors = VisitorService.list_visitors(current_context().church_id, request.args.get('status'))
    return jsonify([visitor.to_dict() for visitor in visitors])

@visitors_bp.route('/visitors', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('visitor_management')
def create_visitor():
    data = require_json(request.get_json(silent=True))
    visitor = VisitorService.create_visitor(current_context().church_id, data)
    return jsonify(visitor.to_dict()), 201

@visitors_bp.route('/visitors/<int:visitor_id>', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
@requires_feature('visitor_management')
def get_visitor(visitor_id):
    visitor = VisitorService.get_visitor(current_context().church_id, visitor_id)
    return jsonify(visitor.to_dict())

@visitors_bp.route('/visitors/<int:visitor_id>', methods=['PATCH'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('visitor_management')
def update_visitor(visitor_id):
    """Edit a visitor or advance its follow-up status."""
    data = require_json(request.get_json(silent=True))
    visitor = VisitorService.update_visitor(current_context().church_id, visitor_id, data)
    return jsonify(visitor.to_dict())

@visitors_bp.route('/visitor-checkin', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('visitor_management')
def visitor_checkin():
    """Register a first-time guest and mark them present."""
    data = require_json(request.get_json(silent=True))
    data['eventId'] = parse_id(data.get('eventId'), 'eventId')
    result = VisitorService.check_in_visitor(current_context().church_id, data)
    return jsonify(result), 201
