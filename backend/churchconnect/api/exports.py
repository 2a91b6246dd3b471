"""CSV downloads of attendance, members and visitors."""
import io
from flask import Blueprint, request, send_file
from churchconnect.services.report_service import ReportService
from churchconnect.utils.decorators import church_context_required, current_context, EXPORT
from churchconnect.utils.helpers import success_response, today

exports_bp = Blueprint('exports', __name__)

def _csv_download(df, kind: str):
    """Send a DataFrame as an attachment named <kind>_export_<date>.csv."""
    output = io.BytesIO(df.to_csv(index=False).encode('utf-8'))
    output.seek(0)
    return send_file(
        output,
        mimetype='text/csv',
        as_attachment=True,
        download_name=f'{kind}_export_{today().isoformat()}.csv'
    )

@exports_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Export service is running")

@exports_bp.route('/attendance', methods=['GET'])
@church_context_required(EXPORT)
def export_attendance():
    df = ReportService.attendance_export_frame(
        current_context().church_id,
        request.args.get('startDate'),
        request.args.get('endDate')
    )
    return _csv_download(df, 'attendance')

@exports_bp.route('/members', methods=['GET'])
@church_context_required(EXPORT)
def export_members():
    return _csv_download(ReportService.members_export_frame(current_context().church_id), 'members')

@exports_bp.route('/visitors', methods=['GET'])
@church_context_required(EXPORT)
def export_visitors():
    return _csv_download(ReportService.visitors_export_frame(current_context().church_id), 'visitors')
