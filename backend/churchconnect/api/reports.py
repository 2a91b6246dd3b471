"""Attendance analytics, named reports and saved report configs."""
from flask import Blueprint, request, jsonify
from churchconnect.services.feature_service import FeatureService
from churchconnect.services.report_service import ReportService, FULL_ANALYTICS_REPORTS
from churchconnect.utils.decorators import (
    admin_required, church_context_required, requires_feature, current_context, VIEW_REPORTS
)
from churchconnect.utils.errors import FeatureNotAvailableError
from churchconnect.utils.helpers import success_response
from churchconnect.utils.validators import require_json

reports_bp = Blueprint('reports', __name__)

@reports_bp.route('/reports/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Reports service is running")

@reports_bp.route('/attendance/history', methods=['GET'])
@church_context_required(VIEW_REPORTS)
@requires_feature('history_tracking')
def attendance_history():
    """Attendance rows with member/visitor details, newest first."""
    return jsonify(ReportService.attendance_history(current_context().church_id, request.args))

@reports_bp.route('/attendance/date-range', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def attendance_date_range():
    return jsonify(ReportService.attendance_date_range(current_context().church_id))

@reports_bp.route('/attendance/stats-range', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def attendance_stats_range():
    return jsonify(ReportService.attendance_stats_range(
        current_context().church_id,
        request.args.get('startDate'),
        request.args.get('endDate')
    ))

@reports_bp.route('/reports/<report_type>', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def generate_report(report_type):
    """Run one of the named reports with query-string parameters."""
    context = current_context()
    feature = 'full_analytics' if report_type in FULL_ANALYTICS_REPORTS else 'basic_reports'
    if not FeatureService.church_has_feature(context.church, feature):
        raise FeatureNotAvailableError(
            "This report requires a higher subscription plan", feature=feature
        )
    return jsonify(ReportService.generate(context.church_id, report_type, request.args))

# Saved configs and run history

@reports_bp.route('/admin/report-configs', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def list_report_configs():
    configs = ReportService.list_configs(current_context().church_id)
    return jsonify([config.to_dict() for config in configs])

@reports_bp.route('/admin/report-configs', methods=['POST'])
@admin_required
def create_report_config():
    data = require_json(request.get_json(silent=True))
    context = current_context()
    config = ReportService.create_config(context.church_id, context.user.id, data)
    return jsonify(config.to_dict()), 201

@reports_bp.route('/admin/report-runs', methods=['GET'])
@church_context_required(VIEW_REPORTS)
def list_report_runs():
    runs = ReportService.list_runs(current_context().church_id)
    return jsonify([run.to_dict() for run in runs])

@reports_bp.route('/admin/report-runs', methods=['POST'])
@church_context_required(VIEW_REPORTS)
def create_report_run():
    data = require_json(request.get_json(silent=True))
    context = current_context()
    run = ReportService.record_run(context.church, context.user.id, data)
    return jsonify(run.to_dict()), 201
