"""Staff check-in channels and daily attendance views."""
from flask import Blueprint, request, jsonify
from churchconnect.models import CheckInMethod
from churchconnect.services.attendance_service import AttendanceService
from churchconnect.utils.decorators import (
    admin_required, church_context_required, staff_required, requires_feature,
    current_context, CHECK_IN
)
from churchconnect.utils.helpers import (
    success_response, parse_date, parse_id, parse_id_list, today
)
from churchconnect.utils.validators import require_json

attendance_bp = Blueprint('attendance', __name__)

@attendance_bp.route('/attendance/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message="Attendance service is running")

@attendance_bp.route('/attendance', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('basic_checkin')
def manual_checkin():
    """Mark a member or visitor present; repeats return 409."""
    data = require_json(request.get_json(silent=True))
    attendance_date = data.get('attendanceDate')

    record = AttendanceService.record_check_in(
        current_context().church_id,
        CheckInMethod.MANUAL,
        member_id=parse_id(data.get('memberId'), 'memberId'),
        visitor_id=parse_id(data.get('visitorId'), 'visitorId'),
        event_id=parse_id(data.get('eventId'), 'eventId'),
        attendance_date=parse_date(attendance_date, 'attendanceDate') if attendance_date else None
    )
    return jsonify(record.to_dict()), 201

@attendance_bp.route('/fingerprint/scan', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('biometric_checkin')
def fingerprint_scan():
    data = require_json(request.get_json(silent=True))
    return jsonify(AttendanceService.fingerprint_scan(
        current_context().church_id,
        data.get('fingerprintId'),
        parse_id(data.get('eventId'), 'eventId')
    ))

@attendance_bp.route('/attendance/family-checkin', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('family_checkin')
def family_checkin():
    """Check in a parent together with all of their children."""
    data = require_json(request.get_json(silent=True))
    return jsonify(AttendanceService.family_check_in(
        current_context().church_id,
        parse_id(data.get('parentId'), 'parentId'),
        event_id=parse_id(data.get('eventId'), 'eventId')
    ))

@attendance_bp.route('/attendance/selective-family-checkin', methods=['POST'])
@church_context_required(CHECK_IN)
@requires_feature('family_checkin')
def selective_family_checkin():
    """Check in a parent and only the selected children."""
    data = require_json(request.get_json(silent=True))
    return jsonify(AttendanceService.family_check_in(
        current_context().church_id,
        parse_id(data.get('parentId'), 'parentId'),
        children_ids=parse_id_list(data.get('childrenIds'), 'childrenIds'),
        event_id=parse_id(data.get('eventId'), 'eventId')
    ))

@attendance_bp.route('/attendance/today', methods=['GET'])
@staff_required
def attendance_today():
    records = AttendanceService.records_for_date(current_context().church_id, today())
    return jsonify([record.to_dict() for record in records])

@attendance_bp.route('/attendance/stats', methods=['GET'])
@staff_required
def attendance_stats():
    """Demographic counts for one day (default today)."""
    day = request.args.get('date')
    attendance_date = parse_date(day) if day else today()
    stats = AttendanceService.stats_for_date(current_context().church_id, attendance_date)
    stats['date'] = attendance_date.isoformat()
    return jsonify(stats)

@attendance_bp.route('/attendance/<int:record_id>', methods=['DELETE'])
@admin_required
def delete_attendance(record_id):
    AttendanceService.delete_record(current_context().church_id, record_id)
    return jsonify({'success': True, 'message': 'Attendance record deleted'})
