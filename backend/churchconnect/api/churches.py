"""Church registration, settings, kiosk control and plan features."""
from flask import Blueprint, request, jsonify
from churchconnect import limiter
from churchconnect.services.auth_service import AuthService
from churchconnect.services.church_service import ChurchService
from churchconnect.services.feature_service import FeatureService
from churchconnect.services.kiosk_service import KioskService
from churchconnect.utils.decorators import (
    admin_required, staff_required, requires_feature, current_context
)
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

churches_bp = Blueprint('churches', __name__)

@churches_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Church service is running")

@churches_bp.route('/register', methods=['POST'])
@limiter.limit("10 per hour")
def register():
    """Create a church on the trial plan together with its admin."""
    data = require_json(request.get_json(silent=True))
    church, admin, token = AuthService.register_church(data)

    return jsonify({
        'church': AuthService.church_summary(church),
        'user': AuthService.user_summary(admin),
        'token': token,
    }), 201

@churches_bp.route('/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    data = require_json(request.get_json(silent=True))
    church, user, token = AuthService.login(data.get('email'), data.get('password'))

    return jsonify({
        'church': AuthService.church_summary(church),
        'user': AuthService.user_summary(user),
        'token': token,
    })

@churches_bp.route('/check-subdomain', methods=['POST'])
def check_subdomain():
    data = require_json(request.get_json(silent=True))
    return jsonify(AuthService.check_subdomain(data.get('subdomain')))

@churches_bp.route('/me', methods=['GET'])
@staff_required
def me():
    """Church summary for the signed-in user."""
    context = current_context()
    church = AuthService.church_summary(context.church)
    church['memberCount'] = context.church.member_count()
    church['kioskModeEnabled'] = context.church.kiosk_mode_enabled

    return jsonify({
        'church': church,
        'user': AuthService.user_summary(context.user),
    })

@churches_bp.route('/settings', methods=['PUT'])
@admin_required
def update_settings():
    data = require_json(request.get_json(silent=True))
    church = ChurchService.update_settings(current_context().church, data)
    return jsonify(AuthService.church_summary(church))

# Kiosk

@churches_bp.route('/kiosk-settings', methods=['GET'])
@staff_required
def get_kiosk_settings():
    return jsonify(KioskService.get_settings(current_context().church))

@churches_bp.route('/kiosk-settings', methods=['PATCH'])
@admin_required
def update_kiosk_settings():
    data = require_json(request.get_json(silent=True))
    return jsonify(KioskService.update_settings(current_context().church, data))

@churches_bp.route('/kiosk-session/start', methods=['POST'])
@admin_required
def start_kiosk_session():
    context = current_context()
    return jsonify(KioskService.start_session(context.church, context.user))

@churches_bp.route('/kiosk-session/extend', methods=['POST'])
@admin_required
def extend_kiosk_session():
    context = current_context()
    return jsonify(KioskService.extend_session(context.church, context.user))

@churches_bp.route('/kiosk-session/end', methods=['POST'])
@admin_required
def end_kiosk_session():
    return jsonify(KioskService.end_session(current_context().church))

# Branding

@churches_bp.route('/branding', methods=['GET'])
@staff_required
def get_branding():
    return jsonify(ChurchService.branding(current_context().church))

@churches_bp.route('/branding', methods=['PUT'])
@admin_required
@requires_feature('custom_branding')
def update_branding():
    data = require_json(request.get_json(silent=True))
    return jsonify(ChurchService.update_branding(current_context().church, data))

@churches_bp.route('/upload-branding', methods=['POST'])
@admin_required
@requires_feature('custom_branding')
def upload_branding():
    """Multipart upload of `logo` and/or `banner` images."""
    branding = ChurchService.upload_branding(current_context().church, request.files)
    return jsonify({'success': True, **branding})

# Plan

@churches_bp.route('/features', methods=['GET'])
@staff_required
def features():
    church = current_context().church
    return jsonify({
        'subscriptionTier': church.subscription_tier.value,
        'isTrialActive': church.is_trial_active(),
        'features': FeatureService.feature_map(church),
    })

@churches_bp.route('/usage', methods=['GET'])
@staff_required
def usage():
    return jsonify(FeatureService.usage_summary(current_context().church))
