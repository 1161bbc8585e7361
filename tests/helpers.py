from typing import Optional
from uuid import uuid4

from app.services.push_service import PushDeliveryAdapter, PushMessage, PushResult


def register_and_login(client, name: str = 'Tester', fcm_token: Optional[str] = None) -> tuple[str, dict]:
    """Create a fresh account and return its id with bearer headers."""
    email = f"{uuid4()}@b.com"
    register = client.post(
        '/api/v1/auth/register',
        json={'email': email, 'password': 'secret123', 'name': name},
    )
    assert register.status_code == 201
    login = client.post('/api/v1/auth/login', json={'email': email, 'password': 'secret123'})
    assert login.status_code == 200
    headers = {'Authorization': f"Bearer {login.json()['access_token']}"}
    if fcm_token:
        saved = client.post('/api/v1/users/me/fcm-token', json={'fcm_token': fcm_token}, headers=headers)
        assert saved.status_code == 200
    return register.json()['id'], headers


def create_product(client, headers: dict, **overrides) -> dict:
    payload = {
        'name': 'Used bicycle',
        'category': 'sports',
        'condition': 'good',
        'description': 'Blue city bike, recently serviced',
        'location': 'Bandung',
        'price': '750000',
        'whatsapp_number': '628123456789',
        'image_urls': ['products/bike-1.jpg', 'products/bike-2.jpg'],
    }
    payload.update(overrides)
    response = client.post('/api/v1/products', json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class RecordingSender:
    def __init__(self, protocol: str, error: Optional[Exception] = None) -> None:
        self.protocol = protocol
        self.error = error
        self.calls: list[tuple[str, PushMessage]] = []

    def send(self, token: str, message: PushMessage) -> None:
        self.calls.append((token, message))
        if self.error is not None:
            raise self.error


class RecordingPushAdapter:
    """Stands in for the push adapter in API tests; records every send."""

    primary_configured = True
    legacy_configured = False

    def __init__(self, result: Optional[PushResult] = None) -> None:
        self.result = result if result is not None else PushResult(delivered=True, protocol='v1')
        self.sent: list[dict] = []

    def send(self, recipient_id, title, body, data=None) -> PushResult:
        self.sent.append({'recipient_id': recipient_id, 'title': title, 'body': body, 'data': dict(data or {})})
        return self.result


def static_adapter(tokens: dict, primary=None, legacy=None) -> PushDeliveryAdapter:
    return PushDeliveryAdapter(tokens.get, primary=primary, legacy=legacy)
