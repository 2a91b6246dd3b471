"""Member registry endpoints."""
from flask import Blueprint, request, jsonify
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.services.member_service import MemberService
from churchconnect.utils.decorators import (
    church_context_required, admin_required, requires_feature, current_context,
    MANAGE_MEMBERS, VIEW_MEMBERS, CHECK_IN
)
from churchconnect.utils.errors import ValidationError
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

members_bp = Blueprint('members', __name__)

@members_bp.route('/members/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Members service is running")

@members_bp.route('/members', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
def list_members():
    """List members with optional search and filters."""
    members = MemberService.list_members(
        current_context().church_id,
        search=request.args.get('search'),
        gender=request.args.get('gender'),
        age_group=request.args.get('ageGroup'),
        is_current_member=request.args.get('isCurrentMember')
    )
    return jsonify([member.to_dict() for member in members])

@members_bp.route('/members', methods=['POST'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('member_management')
def create_member():
    data = require_json(request.get_json(silent=True))
    member = MemberService.create_member(current_context().church, data)
    return jsonify(member.to_dict()), 201

@members_bp.route('/members/<int:member_id>', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
def get_member(member_id):
    member = MemberService.get_member(current_context().church_id, member_id)
    return jsonify(member.to_dict(include_children=True))

@members_bp.route('/members/<int:member_id>', methods=['PUT'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('member_management')
def update_member(member_id):
    data = require_json(request.get_json(silent=True))
    member = MemberService.update_member(current_context().church_id, member_id, data)
    return jsonify(member.to_dict())

@members_bp.route('/members/<int:member_id>', methods=['DELETE'])
@admin_required
def delete_member(member_id):
    MemberService.delete_member(current_context().church_id, member_id)
    return jsonify({'success': True, 'message': 'Member deleted successfully'})

@members_bp.route('/members/<int:member_id>/children', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
def member_children(member_id):
    children = MemberService.children(current_context().church_id, member_id)
    return jsonify([child.to_dict() for child in children])

@members_bp.route('/members/<int:member_id>/attendance', methods=['GET'])
@church_context_required(VIEW_MEMBERS)
def member_attendance(member_id):
    """Most recent attendance of one member."""
    limit = request.args.get('limit', 10, type=int)
    if limit < 1:
        raise ValidationError("limit must be positive")

    records = AttendanceService.member_history(current_context().church_id, member_id, limit)
    return jsonify([record.to_dict() for record in records])

@members_bp.route('/members/bulk-upload', methods=['POST'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('bulk_upload')
def bulk_upload():
    """Create members from an uploaded CSV/Excel file or a JSON list."""
    church = current_context().church

    if 'file' in request.files:
        df = MemberService.read_import_file(request.files['file'])
        rows = MemberService.dataframe_to_rows(df)
    else:
        data = require_json(request.get_json(silent=True))
        rows = data.get('members')
        if not isinstance(rows, list):
            raise ValidationError("members must be a list")

    result = MemberService.create_members_bulk(church, rows)
    return jsonify({
        'success': result['created'] > 0,
        'message': f"Successfully uploaded {result['created']} of {result['total']} members",
        **result,
    })

@members_bp.route('/fingerprint/enroll', methods=['POST'])
@church_context_required(MANAGE_MEMBERS)
@requires_feature('biometric_checkin')
def enroll_fingerprint():
    data = require_json(request.get_json(silent=True))
    return jsonify(MemberService.enroll_fingerprint(
        current_context().church_id, data.get('memberId'), data.get('fingerprintId')
    ))
