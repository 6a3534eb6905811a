"""Test session endpoints."""
import json


def create_session(client, name='CS101'):
    response = client.post('/api/sessions/', json={'name': name})
    assert response.status_code == 201
    return json.loads(response.data)['data']


def test_health_check(client):
    """Test app and blueprint health endpoints."""
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'

    response = client.get('/api/sessions/health')
    assert response.status_code == 200
    assert json.loads(response.data)['message'] == 'Session service is running'


def test_create_session(client):
    """Test successful session creation."""
    data = create_session(client, '  CS101 ')

    assert data['name'] == 'CS101'
    assert data['is_active'] is True
    assert data['attendee_count'] == 0
    assert data['id'].startswith('session_')
    assert data['checkin_url'] == (
        f"http://testserver/attend?session={data['id']}&token={data['current_token']}"
    )


def test_create_session_validation(client, services):
    """An empty course name allocates nothing."""
    response = client.post('/api/sessions/', json={'name': '   '})
    assert response.status_code == 400
    assert json.loads(response.data)['error'] is True

    response = client.post('/api/sessions/', json={})
    assert response.status_code == 400
    assert len(services.store) == 0


def test_get_session(client):
    created = create_session(client)

    response = client.get(f"/api/sessions/{created['id']}")
    assert response.status_code == 200
    assert json.loads(response.data)['data']['current_token'] == created['current_token']

    response = client.get('/api/sessions/session_missing')
    assert response.status_code == 404


def test_list_sessions(client):
    first = create_session(client, 'CS101')
    create_session(client, 'CS102')
    client.post(f"/api/sessions/{first['id']}/end")

    data = json.loads(client.get('/api/sessions/').data)['data']
    assert data['total'] == 2

    data = json.loads(client.get('/api/sessions/?active=true').data)['data']
    assert [s['name'] for s in data['sessions']] == ['CS102']


def test_rotate_token(client):
    created = create_session(client)

    response = client.post(f"/api/sessions/{created['id']}/rotate")
    assert response.status_code == 200
    token = json.loads(response.data)['data']['token']
    assert token != created['current_token']

    session = json.loads(client.get(f"/api/sessions/{created['id']}").data)['data']
    assert session['current_token'] == token
    assert session['rotation_count'] == 1


def test_rotate_unknown_or_ended(client):
    assert client.post('/api/sessions/session_missing/rotate').status_code == 404

    created = create_session(client)
    client.post(f"/api/sessions/{created['id']}/end")
    assert client.post(f"/api/sessions/{created['id']}/rotate").status_code == 409


def test_end_session(client):
    """Ending returns the final snapshot and statistics, twice over."""
    created = create_session(client)

    response = client.post(f"/api/sessions/{created['id']}/end")
    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['session']['is_active'] is False
    assert data['session']['checkin_url'] is None
    assert data['statistics']['attendee_count'] == 0

    again = json.loads(client.post(f"/api/sessions/{created['id']}/end").data)['data']
    assert again['session'] == data['session']

    assert client.post('/api/sessions/session_missing/end').status_code == 404


def test_qr_code(client):
    created = create_session(client)

    response = client.get(f"/api/sessions/{created['id']}/qr")
    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['token'] == created['current_token']
    assert data['qr_image'].startswith('data:image/png;base64,')
    assert data['checkin_url'].endswith(f"token={created['current_token']}")

    client.post(f"/api/sessions/{created['id']}/end")
    assert client.get(f"/api/sessions/{created['id']}/qr").status_code == 409
    assert client.get('/api/sessions/session_missing/qr').status_code == 404


def test_attendees(client):
    created = create_session(client)
    client.post('/api/attendance/checkin', json={
        'sessionId': created['id'],
        'token': created['current_token'],
        'studentName': 'Alice'
    })

    response = client.get(f"/api/sessions/{created['id']}/attendees")
    data = json.loads(response.data)['data']
    assert data['total'] == 1
    assert data['attendees'][0]['name'] == 'Alice'

    assert client.get('/api/sessions/session_missing/attendees').status_code == 404


def test_export(client):
    created = create_session(client)
    client.post(f"/api/sessions/{created['id']}/rotate")

    data = json.loads(client.get('/api/sessions/export').data)['data']
    assert len(data['sessions']) == 1
    assert len(data['sessions'][0]['token_history']) == 2


def test_cleanup(client):
    created = create_session(client)

    response = client.post('/api/sessions/cleanup', json={'max_age_hours': 1})
    assert json.loads(response.data)['data']['removed'] == []

    response = client.post('/api/sessions/cleanup', json={'max_age_hours': -1})
    assert response.status_code == 400

    response = client.post('/api/sessions/cleanup', json={'max_age_hours': 'soon'})
    assert response.status_code == 400

    for bad in (True, 1e12):
        response = client.post('/api/sessions/cleanup', json={'max_age_hours': bad})
        assert response.status_code == 400
        assert json.loads(response.data)['error'] is True

    response = client.post('/api/sessions/cleanup', json={'max_age_hours': 24 * 365})
    assert response.status_code == 200

    assert client.get(f"/api/sessions/{created['id']}").status_code == 200


def test_polling_display_keeps_rotation_going(client, services):
    """Fetching the QR code or the session counts as showing it."""
    created = create_session(client)
    lifecycle = services.lifecycle
    assert not lifecycle.is_rotating(created['id'])

    lifecycle.rotation_enabled = True
    assert client.get(f"/api/sessions/{created['id']}/qr").status_code == 200
    assert lifecycle.is_rotating(created['id'])

    lifecycle.shutdown()
    assert not lifecycle.is_rotating(created['id'])
    assert client.get(f"/api/sessions/{created['id']}").status_code == 200
    assert lifecycle.is_rotating(created['id'])


def test_event_stream(client, services):
    """The stream starts with a snapshot and releases its viewer on close."""
    created = create_session(client)

    response = client.get(f"/api/sessions/{created['id']}/events")
    assert response.status_code == 200
    assert response.mimetype == 'text/event-stream'
    assert services.lifecycle.viewer_count(created['id']) == 1

    first = next(iter(response.response))
    if isinstance(first, bytes):
        first = first.decode('utf-8')
    assert first.startswith('event: session\ndata: ')
    payload = json.loads(first.split('data: ', 1)[1])
    assert payload['session']['id'] == created['id']
    assert payload['attendees'] == []

    response.close()
    assert services.lifecycle.viewer_count(created['id']) == 0


def test_event_stream_unknown_session(client):
    assert client.get('/api/sessions/session_missing/events').status_code == 404


def test_unknown_route(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert json.loads(response.data)['error'] is True
