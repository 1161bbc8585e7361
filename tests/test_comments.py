from fastapi.testclient import TestClient

from app.db.init_db import init_db
from app.main import app
from app.services.push_service import get_push_adapter
from tests.helpers import RecordingPushAdapter, RecordingSender, create_product, register_and_login, static_adapter


def _comment(client, product_id: str, headers: dict, content: str, parent_comment_id: str = None) -> dict:
    payload = {'content': content}
    if parent_comment_id:
        payload['parent_comment_id'] = parent_comment_id
    response = client.post(f"/api/v1/products/{product_id}/comments", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_comment_and_reply_notify_the_right_people():
    init_db(drop_all=True)
    push = RecordingPushAdapter()
    app.dependency_overrides[get_push_adapter] = lambda: push
    with TestClient(app) as client:
        owner_id, owner_headers = register_and_login(client, 'Seller')
        buyer_id, buyer_headers = register_and_login(client, 'Budi')
        _, third_headers = register_and_login(client, 'Citra')
        product = create_product(client, owner_headers)

        question = _comment(client, product['id'], buyer_headers, 'Is it still available?')
        owner_feed = client.get('/api/v1/notifications', headers=owner_headers).json()
        assert [item['type'] for item in owner_feed] == ['comment']
        assert owner_feed[0]['body'] == 'Budi commented on your post'
        assert owner_feed[0]['comment_text'] == 'Is it still available?'
        assert owner_feed[0]['actor_id'] == buyer_id

        answer = _comment(client, product['id'], owner_headers, 'Yes it is', question['id'])
        buyer_feed = client.get('/api/v1/notifications', headers=buyer_headers).json()
        assert [item['type'] for item in buyer_feed] == ['reply']
        assert buyer_feed[0]['comment_id'] == answer['id']
        assert len(client.get('/api/v1/notifications', headers=owner_headers).json()) == 1

        _comment(client, product['id'], third_headers, 'Me too', question['id'])
        buyer_feed = client.get('/api/v1/notifications', headers=buyer_headers).json()
        assert [item['body'] for item in buyer_feed] == [
            'Citra replied to your comment',
            'Seller replied to your comment',
        ]
        assert len(client.get('/api/v1/notifications', headers=owner_headers).json()) == 1

        _comment(client, product['id'], owner_headers, 'Price is negotiable')
        assert len(client.get('/api/v1/notifications', headers=owner_headers).json()) == 1

        assert [entry['recipient_id'] for entry in push.sent] == [owner_id, buyer_id, buyer_id]


def test_comment_threads_group_replies():
    init_db(drop_all=True)
    app.dependency_overrides[get_push_adapter] = lambda: RecordingPushAdapter()
    with TestClient(app) as client:
        _, owner_headers = register_and_login(client, 'Seller')
        _, buyer_headers = register_and_login(client, 'Budi')
        product = create_product(client, owner_headers)
        question = _comment(client, product['id'], buyer_headers, 'Still available?')
        _comment(client, product['id'], owner_headers, 'Yes', question['id'])

        threads = client.get(f"/api/v1/products/{product['id']}/comments").json()

        assert len(threads) == 1
        assert threads[0]['user_name'] == 'Budi'
        assert [reply['content'] for reply in threads[0]['replies']] == ['Yes']


def test_reply_parent_must_belong_to_product():
    init_db(drop_all=True)
    app.dependency_overrides[get_push_adapter] = lambda: RecordingPushAdapter()
    with TestClient(app) as client:
        _, owner_headers = register_and_login(client, 'Seller')
        first = create_product(client, owner_headers)
        second = create_product(client, owner_headers, name='Lamp')
        comment = _comment(client, first['id'], owner_headers, 'Note')

        response = client.post(
            f"/api/v1/products/{second['id']}/comments",
            json={'content': 'Wrong thread', 'parent_comment_id': comment['id']},
            headers=owner_headers,
        )
        assert response.status_code == 404


def test_comment_content_is_validated():
    init_db(drop_all=True)
    with TestClient(app) as client:
        _, headers = register_and_login(client, 'Seller')
        product = create_product(client, headers)
        url = f"/api/v1/products/{product['id']}/comments"
        assert client.post(url, json={'content': ''}, headers=headers).status_code == 422
        assert client.post(url, json={'content': 'x' * 1001}, headers=headers).status_code == 422


def test_only_author_can_edit_or_delete_comment():
    init_db(drop_all=True)
    app.dependency_overrides[get_push_adapter] = lambda: RecordingPushAdapter()
    with TestClient(app) as client:
        _, owner_headers = register_and_login(client, 'Seller')
        _, buyer_headers = register_and_login(client, 'Budi')
        product = create_product(client, owner_headers)
        question = _comment(client, product['id'], buyer_headers, 'Still available?')
        _comment(client, product['id'], owner_headers, 'Yes', question['id'])
        url = f"/api/v1/comments/{question['id']}"

        assert client.put(url, json={'content': 'Hacked'}, headers=owner_headers).status_code == 403
        edited = client.put(url, json={'content': 'Is it available today?'}, headers=buyer_headers)
        assert edited.status_code == 200
        assert edited.json()['content'] == 'Is it available today?'

        assert client.delete(url, headers=buyer_headers).status_code == 200
        assert client.get(f"/api/v1/products/{product['id']}/comments").json() == []
        assert client.delete(url, headers=buyer_headers).status_code == 404


def test_nested_replies_are_listed_and_deleted_with_their_thread():
    init_db(drop_all=True)
    app.dependency_overrides[get_push_adapter] = lambda: RecordingPushAdapter()
    with TestClient(app) as client:
        _, owner_headers = register_and_login(client, 'Seller')
        _, buyer_headers = register_and_login(client, 'Budi')
        product = create_product(client, owner_headers)
        question = _comment(client, product['id'], buyer_headers, 'Still available?')
        answer = _comment(client, product['id'], owner_headers, 'Yes', question['id'])
        _comment(client, product['id'], buyer_headers, 'Great, can I see it today?', answer['id'])

        threads = client.get(f"/api/v1/products/{product['id']}/comments").json()
        assert len(threads) == 1
        assert [reply['content'] for reply in threads[0]['replies']] == ['Yes', 'Great, can I see it today?']

        assert client.delete(f"/api/v1/comments/{question['id']}", headers=buyer_headers).status_code == 200
        assert client.get(f"/api/v1/products/{product['id']}/comments").json() == []
        assert client.delete(f"/api/v1/comments/{answer['id']}", headers=owner_headers).status_code == 404


def test_comment_survives_a_crashing_push_sender():
    init_db(drop_all=True)
    with TestClient(app) as client:
        owner_id, owner_headers = register_and_login(client, 'Seller', fcm_token='device-token-1')
        _, buyer_headers = register_and_login(client, 'Budi')
        product = create_product(client, owner_headers)
        crashing = RecordingSender('v1', RuntimeError('sdk internal failure'))
        app.dependency_overrides[get_push_adapter] = lambda: static_adapter(
            {owner_id: 'device-token-1'}, primary=crashing
        )

        response = client.post(
            f"/api/v1/products/{product['id']}/comments",
            json={'content': 'Can you ship?'},
            headers=buyer_headers,
        )

        assert response.status_code == 201
        assert len(crashing.calls) == 1
        assert client.get('/api/v1/notifications/unread-count', headers=owner_headers).json() == {'count': 1}
