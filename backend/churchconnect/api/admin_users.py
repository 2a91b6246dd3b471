"""Staff accounts of the current church."""
from flask import Blueprint, request, jsonify
from churchconnect.services.user_service import UserService
from churchconnect.utils.decorators import admin_required, staff_required, current_context
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

admin_users_bp = Blueprint('admin_users', __name__)

@admin_users_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="User admin service is running")

@admin_users_bp.route('', methods=['GET'])
@staff_required
def list_users():
    users = UserService.list_users(current_context().church_id)
    return jsonify([user.to_dict() for user in users])

@admin_users_bp.route('', methods=['POST'])
@admin_required
def create_user():
    data = require_json(request.get_json(silent=True))
    user = UserService.create_user(current_context().church_id, data)
    return jsonify(user.to_dict()), 201

@admin_users_bp.route('/<int:user_id>', methods=['GET'])
@staff_required
def get_user(user_id):
    return jsonify(UserService.get_user(current_context().church_id, user_id).to_dict())

@admin_users_bp.route('/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    data = require_json(request.get_json(silent=True))
    context = current_context()
    user = UserService.update_user(context.church_id, user_id, data, context.user)
    return jsonify(user.to_dict())

@admin_users_bp.route('/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    context = current_context()
    UserService.delete_user(context.church_id, user_id, context.user)
    return jsonify({'success': True, 'message': 'User deleted successfully'})
