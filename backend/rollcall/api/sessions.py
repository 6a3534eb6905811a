# backend/rollcall/api/sessions.py
"""Session management API endpoints for the teacher view."""
import json
from datetime import timedelta

from flask import Blueprint, Response, current_app, request, stream_with_context

from rollcall import limiter
from rollcall.models.session import utcnow
from rollcall.services import get_services
from rollcall.services.qr_service import QRService
from rollcall.utils.helpers import error_response, success_response
from rollcall.utils.validators import InvalidNameError

sessions_bp = Blueprint('sessions', __name__)

# a century; keeps the cleanup cutoff within the datetime range
MAX_AGE_HOURS_LIMIT = 24 * 365 * 100


def _checkin_url(session) -> str:
    base_url = current_app.config.get('PUBLIC_BASE_URL') or request.host_url
    return QRService.build_checkin_url(base_url, session.id, session.current_token)


def _session_data(session) -> dict:
    data = session.to_dict()
    data['checkin_url'] = _checkin_url(session) if session.is_active else None
    return data


@sessions_bp.route('/health', methods=['GET'])
@limiter.exempt
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')


@sessions_bp.route('/', methods=['POST'])
def create_session():
    """Start a new attendance session."""
    data = request.get_json(silent=True) or {}

    try:
        session = get_services().lifecycle.start_session(data.get('name', ''))
    except InvalidNameError as e:
        return error_response(str(e), 400)

    return success_response(
        data=_session_data(session),
        message=f"Session '{session.name}' created",
        status_code=201
    )


@sessions_bp.route('/', methods=['GET'])
@limiter.exempt
def list_sessions():
    """List sessions, optionally only the active ones."""
    active_only = request.args.get('active', '').lower() in ('1', 'true', 'yes')
    sessions = get_services().store.list_sessions(active_only=active_only)

    return success_response(data={
        'sessions': [_session_data(session) for session in sessions],
        'total': len(sessions)
    })


@sessions_bp.route('/export', methods=['GET'])
def export_sessions():
    """Dump every session, token history included."""
    return success_response(data=get_services().store.export_data())


@sessions_bp.route('/cleanup', methods=['POST'])
def cleanup_sessions():
    """Remove sessions older than ``max_age_hours``."""
    data = request.get_json(silent=True) or {}
    max_age_hours = data.get('max_age_hours', current_app.config['SESSION_MAX_AGE_HOURS'])

    if isinstance(max_age_hours, bool) or not isinstance(max_age_hours, (int, float)):
        return error_response("max_age_hours must be a non-negative number", 400)
    if not 0 <= max_age_hours <= MAX_AGE_HOURS_LIMIT:
        return error_response(f"max_age_hours must be between 0 and {MAX_AGE_HOURS_LIMIT}", 400)

    removed = get_services().lifecycle.cleanup(timedelta(hours=max_age_hours))

    return success_response(
        data={'removed': removed},
        message=f"Removed {len(removed)} session(s)"
    )


@sessions_bp.route('/<session_id>', methods=['GET'])
@limiter.exempt
def get_session(session_id):
    """Current snapshot of a session."""
    services = get_services()
    session = services.store.get(session_id)
    if session is None:
        return error_response("Session not found", 404)

    # a polling display keeps the rotation alive
    services.lifecycle.touch(session_id)

    return success_response(data=_session_data(session))


@sessions_bp.route('/<session_id>/attendees', methods=['GET'])
@limiter.exempt
def get_attendees(session_id):
    """Attendee list in arrival order."""
    session = get_services().store.get(session_id)
    if session is None:
        return error_response("Session not found", 404)

    return success_response(data={
        'session_id': session.id,
        'attendees': [entry.to_dict() for entry in session.attendees],
        'total': session.attendee_count
    })


@sessions_bp.route('/<session_id>/rotate', methods=['POST'])
def rotate_token(session_id):
    """Rotate the token right away."""
    services = get_services()
    token = services.lifecycle.rotate_now(session_id)

    if token is None:
        if services.store.get(session_id) is None:
            return error_response("Session not found", 404)
        return error_response("Session has ended", 409)

    return success_response(
        data={'session_id': session_id, 'token': token},
        message="Token rotated"
    )


@sessions_bp.route('/<session_id>/end', methods=['POST'])
def end_session(session_id):
    """End the session. Ending twice is not an error."""
    services = get_services()
    session = services.lifecycle.end_session(session_id)
    if session is None:
        return error_response("Session not found", 404)

    return success_response(
        data={
            'session': _session_data(session),
            'statistics': services.store.statistics(session_id)
        },
        message=f"Session '{session.name}' ended"
    )


@sessions_bp.route('/<session_id>/qr', methods=['GET'])
@limiter.exempt
def get_qr_code(session_id):
    """QR image for the current token."""
    services = get_services()
    session = services.store.get(session_id)
    if session is None:
        return error_response("Session not found", 404)
    if not session.is_active:
        return error_response("Session has ended", 409)

    services.lifecycle.touch(session_id)

    checkin_url = _checkin_url(session)
    qr_image = QRService.render_qr_image(
        checkin_url,
        box_size=current_app.config['QR_BOX_SIZE'],
        border=current_app.config['QR_BORDER']
    )

    return success_response(data={
        'session_id': session.id,
        'token': session.current_token,
        'checkin_url': checkin_url,
        'qr_image': qr_image,
        'rotation_interval': current_app.config['TOKEN_ROTATION_INTERVAL']
    })


@sessions_bp.route('/<session_id>/events', methods=['GET'])
@limiter.exempt
def stream_events(session_id):
    """Server-Sent Events stream of session snapshots for the teacher view."""
    services = get_services()
    session = services.lifecycle.attach_viewer(session_id)
    if session is None:
        return error_response("Session not found", 404)

    keepalive = current_app.config['SSE_KEEPALIVE_SECONDS']

    def _frame(snapshot):
        payload = {
            'session': _session_data(snapshot),
            'attendees': [entry.to_dict() for entry in snapshot.attendees],
            'timestamp': utcnow().isoformat()
        }
        return f"event: session\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"

    @stream_with_context
    def generate():
        version = services.event_bus.get_version(session_id)
        snapshot = services.store.get(session_id)
        if snapshot is None:
            return
        yield _frame(snapshot)

        while snapshot.is_active:
            next_version = services.event_bus.wait_for_change(session_id, version, timeout=keepalive)
            if next_version == version:
                yield ": keepalive\n\n"
                continue
            version = next_version
            snapshot = services.store.get(session_id)
            if snapshot is None:
                return
            yield _frame(snapshot)

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
    }
    response = Response(generate(), mimetype="text/event-stream", headers=headers)
    response.call_on_close(lambda: services.lifecycle.detach_viewer(session_id))
    return response
