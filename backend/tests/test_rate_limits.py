"""Test rate limiting of display and check-in endpoints."""
import json

import pytest

from config.testing import TestingConfig
from rollcall import create_app


@pytest.fixture
def limited_app(monkeypatch):
    """App with rate limiting switched on and small limits."""
    monkeypatch.setattr(TestingConfig, 'RATELIMIT_ENABLED', True)
    monkeypatch.setattr(TestingConfig, 'RATELIMIT_DEFAULT', '5 per hour')
    monkeypatch.setattr(TestingConfig, 'CHECKIN_RATE_LIMIT', '3 per minute')
    app = create_app('testing')
    yield app
    app.extensions['rollcall'].lifecycle.shutdown()


@pytest.fixture
def limited_client(limited_app):
    return limited_app.test_client()


@pytest.fixture
def session(limited_client):
    response = limited_client.post('/api/sessions/', json={'name': 'CS101'})
    assert response.status_code == 201
    return json.loads(response.data)['data']


def check_in(client, session, name):
    return client.post('/api/attendance/checkin', json={
        'sessionId': session['id'],
        'token': session['current_token'],
        'studentName': name
    })


def test_display_polling_is_not_limited(limited_client, session):
    """A display refreshing every rotation never runs into the default limit."""
    for _ in range(20):
        assert limited_client.get(f"/api/sessions/{session['id']}/qr").status_code == 200

    # more than any configured default allowance
    for _ in range(600):
        assert limited_client.get(f"/api/sessions/{session['id']}").status_code == 200
        assert limited_client.get(f"/api/sessions/{session['id']}/attendees").status_code == 200


def test_shared_address_does_not_lock_out_class(limited_client, session):
    """Students behind one address each get their own check-in allowance."""
    names = ['Gina', 'Hank', 'Ivy', 'Jack', 'Kara', 'Liam']
    statuses = [check_in(limited_client, session, name).status_code for name in names]
    assert statuses == [201] * len(names)


def test_repeated_checkins_by_one_student_are_limited(limited_client, session):
    statuses = [check_in(limited_client, session, 'Alice').status_code for _ in range(4)]
    assert statuses == [201, 409, 409, 429]

    response = check_in(limited_client, session, 'Alice')
    assert response.status_code == 429
    assert json.loads(response.data)['error'] is True

    assert check_in(limited_client, session, 'Bob').status_code == 201
