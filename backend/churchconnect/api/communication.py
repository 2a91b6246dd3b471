"""SMS and email provider configuration."""
from flask import Blueprint, request, jsonify
from churchconnect.services.notification_service import NotificationService
from churchconnect.utils.decorators import church_context_required, current_context, MANAGE_PROVIDERS
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

communication_bp = Blueprint('communication', __name__)

@communication_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Communication service is running")

@communication_bp.route('', methods=['GET'])
@church_context_required(MANAGE_PROVIDERS)
def list_providers():
    providers = NotificationService.list_providers(current_context().church_id)
    return jsonify([NotificationService.serialize_provider(provider) for provider in providers])

@communication_bp.route('', methods=['POST'])
@church_context_required(MANAGE_PROVIDERS)
def create_provider():
    data = require_json(request.get_json(silent=True))
    context = current_context()
    provider = NotificationService.create_provider(context.church_id, context.user.id, data)
    return jsonify(NotificationService.serialize_provider(provider)), 201

@communication_bp.route('/deliveries', methods=['GET'])
@church_context_required(MANAGE_PROVIDERS)
def list_deliveries():
    limit = min(request.args.get('limit', 50, type=int), 200)
    deliveries = NotificationService.deliveries(current_context().church_id, limit)
    return jsonify([delivery.to_dict() for delivery in deliveries])

@communication_bp.route('/<int:provider_id>', methods=['GET'])
@church_context_required(MANAGE_PROVIDERS)
def get_provider(provider_id):
    provider = NotificationService.get_provider(current_context().church_id, provider_id)
    return jsonify(NotificationService.serialize_provider(provider))

@communication_bp.route('/<int:provider_id>', methods=['PUT'])
@church_context_required(MANAGE_PROVIDERS)
def update_provider(provider_id):
    data = require_json(request.get_json(silent=True))
    provider = NotificationService.update_provider(current_context().church_id, provider_id, data)
    return jsonify(NotificationService.serialize_provider(provider))

@communication_bp.route('/<int:provider_id>', methods=['DELETE'])
@church_context_required(MANAGE_PROVIDERS)
def delete_provider(provider_id):
    NotificationService.delete_provider(current_context().church_id, provider_id)
    return jsonify({'success': True, 'message': 'Provider deleted'})

@communication_bp.route('/<int:provider_id>/test', methods=['POST'])
@church_context_required(MANAGE_PROVIDERS)
def test_provider(provider_id):
    """Send a test message and record the outcome on the provider."""
    data = require_json(request.get_json(silent=True))
    return jsonify(NotificationService.test_provider(
        current_context().church_id, provider_id, data.get('recipient')
    ))
