"""Follow-up queue for members who stopped attending."""
from flask import Blueprint, request, jsonify
from churchconnect.services.follow_up_service import FollowUpService
from churchconnect.utils.decorators import (
    church_context_required, requires_feature, current_context, MANAGE_MEMBERS, VIEW_MEMBERS
)
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

follow_up_bp = Blueprint('follow_up', __name__)

@follow_up_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Follow-up service is running")

@follow_up_bp.route('', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
@requires_feature('follow_up_queue')
def follow_up_queue():
    records = FollowUpService.queue(current_context().church_id)
    return jsonify([record.to_dict() for record in records])

@follow_up_bp.route('/update-absences', methods=['POST'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('follow_up_queue')
def update_absences():
    """Recompute who needs a follow-up from attendance gaps."""
    return jsonify(FollowUpService.update_absences(current_context().church_id))

@follow_up_bp.route('/<int:member_id>', methods=['POST'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('follow_up_queue')
def mark_contacted(member_id):
    data = require_json(request.get_json(silent=True))
    return jsonify(FollowUpService.mark_contacted(current_context().church, member_id, data.get('method')))
