from fastapi.testclient import TestClient

from app.db.init_db import init_db
from app.main import app
from app.services.push_service import PushResult, get_push_adapter
from tests.helpers import RecordingPushAdapter, register_and_login


def test_test_push_reports_outcome_without_recording():
    init_db(drop_all=True)
    push = RecordingPushAdapter(PushResult(delivered=False, error='unauthorized'))
    app.dependency_overrides[get_push_adapter] = lambda: push
    with TestClient(app) as client:
        user_id, headers = register_and_login(client, 'Budi', fcm_token='device-token-1')

        response = client.post('/api/v1/test/notification', json={'title': 'Ping'}, headers=headers)

        assert response.status_code == 200
        assert response.json() == {'user_id': user_id, 'delivered': False, 'protocol': None, 'error': 'unauthorized'}
        assert push.sent[0]['title'] == 'Ping'
        assert client.get('/api/v1/notifications', headers=headers).json() == []


def test_test_push_requires_registered_token():
    init_db(drop_all=True)
    app.dependency_overrides[get_push_adapter] = lambda: RecordingPushAdapter()
    with TestClient(app) as client:
        _, headers = register_and_login(client, 'Budi')
        _, target_headers = register_and_login(client, 'Citra', fcm_token='device-token-2')
        target_id = client.get('/api/v1/users/me', headers=target_headers).json()['id']

        assert client.post('/api/v1/test/notification', json={}, headers=headers).status_code == 400
        sent = client.post(f"/api/v1/test/notification/{target_id}", json={}, headers=headers)
        assert sent.status_code == 200
        assert sent.json()['delivered'] is True
        assert client.post('/api/v1/test/notification/unknown', json={}, headers=headers).status_code == 404


def test_token_status_reports_unconfigured_protocols():
    init_db(drop_all=True)
    with TestClient(app) as client:
        _, headers = register_and_login(client, 'Budi')
        status = client.get('/api/v1/test/fcm-token', headers=headers).json()
        assert status['has_fcm_token'] is False
        assert status['fcm_token_preview'] is None
        assert status['primary_configured'] is False
        assert status['legacy_configured'] is False


def test_health_reports_push_configuration():
    init_db(drop_all=True)
    with TestClient(app) as client:
        response = client.get('/api/v1/health')
        assert response.status_code == 200
        assert response.json() == {'status': 'ok', 'push': {'v1': False, 'legacy': False}}
