"""Staff token refresh and identity."""
from flask import Blueprint, jsonify
from churchconnect.services.auth_service import AuthService
from churchconnect.utils.decorators import staff_required, current_context
from churchconnect.utils.helpers import success_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/refresh", methods=["POST"])
@staff_required
def refresh():
    """Re-issue a staff token with the current role and church."""
    context = current_context()
    return jsonify({
        "token": AuthService.create_user_token(context.user),
        "user": AuthService.user_summary(context.user),
    })

@auth_bp.route("/me", methods=["GET"])
@staff_required
def me():
    context = current_context()
    return jsonify({
        "user": AuthService.user_summary(context.user),
        "church": AuthService.church_summary(context.church),
        "capabilities": sorted(context.capabilities),
    })
