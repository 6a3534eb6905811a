"""Test QR rendering and check-in payload parsing."""
import base64
import json

from rollcall.services.qr_service import CheckinPayload, QRService


def test_build_checkin_url():
    url = QRService.build_checkin_url('http://example.com/', 'session_abc', 'tok-1_x')
    assert url == 'http://example.com/attend?session=session_abc&token=tok-1_x'


def test_render_qr_image():
    image = QRService.render_qr_image('http://example.com/attend?session=s&token=t', box_size=2)
    assert image.startswith('data:image/png;base64,')

    png = base64.b64decode(image.split(',', 1)[1])
    assert png[:8] == b'\x89PNG\r\n\x1a\n'


def test_parse_url_payload():
    url = QRService.build_checkin_url('http://example.com', 'session_abc', 'tok')
    payload = QRService.parse_checkin_payload(url, 'Alice')

    assert payload == CheckinPayload(session_id='session_abc', token='tok', student_name='Alice')


def test_parse_json_payload():
    raw = json.dumps({'sessionId': 'session_abc', 'token': 'tok', 'studentName': 'Bob'})
    payload = QRService.parse_checkin_payload(raw)

    assert payload.session_id == 'session_abc'
    assert payload.token == 'tok'
    assert payload.student_name == 'Bob'


def test_parse_snake_case_json():
    raw = json.dumps({'session_id': 'session_abc', 'token': 'tok', 'student_name': 'Bob'})
    assert QRService.parse_checkin_payload(raw).student_name == 'Bob'


def test_explicit_name_wins():
    raw = json.dumps({'sessionId': 'session_abc', 'token': 'tok', 'studentName': 'Bob'})
    assert QRService.parse_checkin_payload(raw, 'Carol').student_name == 'Carol'


def test_nothing_decoded():
    """Missing or unusable data is simply no event."""
    assert QRService.parse_checkin_payload(None) is None
    assert QRService.parse_checkin_payload('') is None
    assert QRService.parse_checkin_payload('   ') is None
    assert QRService.parse_checkin_payload('hello world') is None
    assert QRService.parse_checkin_payload('[1, 2, 3]') is None
    assert QRService.parse_checkin_payload('{"sessionId": "s"}') is None
    assert QRService.parse_checkin_payload('http://example.com/attend?session=s') is None
    assert QRService.parse_checkin_payload({'sessionId': 's', 'token': 't'}) is None
