# backend/rollcall/api/attendance.py
"""Attendance API endpoints for students."""
from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address

from rollcall import limiter
from rollcall.services import get_services
from rollcall.services.attendance_validator import Accepted, RejectionReason
from rollcall.services.qr_service import QRService
from rollcall.utils.helpers import error_response, success_response
from rollcall.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

REJECTION_STATUS = {
    RejectionReason.SESSION_NOT_FOUND: 404,
    RejectionReason.SESSION_ENDED: 409,
    RejectionReason.TOKEN_EXPIRED: 410,
    RejectionReason.INVALID_NAME: 400,
    RejectionReason.DUPLICATE_ATTENDANCE: 409,
}


def _checkin_limit():
    return current_app.config['CHECKIN_RATE_LIMIT']


def _checkin_key():
    """Rate-limit key: client address plus student name."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    student_name = data.get('studentName')
    if not isinstance(student_name, str):
        student_name = ''
    return f"{get_remote_address()}:{student_name.strip()}"


def _submit(session_id: str, token: str, student_name: str):
    services = get_services()
    result = services.validator.validate(session_id, token, student_name)

    if isinstance(result, Accepted):
        services.lifecycle.publish(session_id)
        return success_response(
            data=result.to_dict(),
            message=f"{result.entry.name} checked in",
            status_code=201
        )

    return error_response(
        result.message,
        REJECTION_STATUS[result.reason],
        data=result.to_dict()
    )


@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')


@attendance_bp.route('/checkin', methods=['POST'])
@limiter.limit(_checkin_limit, key_func=_checkin_key)
def check_in():
    """Submit a check-in of ``{sessionId, token, studentName}``."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    validation = Validator.validate_required_fields(data, ['sessionId', 'token'])
    if not validation['is_valid']:
        return error_response(validation['errors'][0], 400)

    if not isinstance(data['sessionId'], str) or not isinstance(data['token'], str):
        return error_response("sessionId and token must be strings", 400)

    return _submit(data['sessionId'], data['token'], data.get('studentName', ''))


@attendance_bp.route('/scan', methods=['POST'])
@limiter.limit(_checkin_limit, key_func=_checkin_key)
def scan():
    """Check in with the raw string decoded from a QR code.

    Data that does not decode to a check-in payload is not an error;
    the response simply carries no event.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    payload = QRService.parse_checkin_payload(data.get('qr_data'), data.get('studentName'))
    if payload is None:
        return success_response(data={'event': None}, message="No check-in data found")

    return _submit(payload.session_id, payload.token, payload.student_name or '')
