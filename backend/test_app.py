"""
Tests for the ratings API and its storage backends.

Run with: pytest backend/test_app.py -v
"""

import base64
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.app import app, get_ground_ids, get_ratings_store
from backend.ratings import GitHubRatingsStore, LocalRatingsStore, RatingsStoreError

VALID_BODY = {
    'ground_id': 'way/1',
    'pitch': 4,
    'pavilion': '3.5',
    'bar': 5,
    'atmosphere': 4,
    'value': 2,
    'name': 'N' * 100,
    'comment': 'Lovely tea',
}


@pytest.fixture
def ratings_path(tmp_path):
    return tmp_path / 'ratings.json'


@pytest.fixture
def client(ratings_path):
    app.dependency_overrides[get_ratings_store] = lambda: LocalRatingsStore(ratings_path)
    app.dependency_overrides[get_ground_ids] = lambda: {'way/1', 'node/2'}
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'ok'}


def test_submit_rating(client, ratings_path):
    response = client.post('/api/ratings', json=VALID_BODY, headers={'User-Agent': 'U' * 200})
    assert response.status_code == 200
    assert response.json() == {'ok': True}

    [entry] = json.loads(ratings_path.read_text())
    assert entry['ground_id'] == 'way/1'
    assert entry['pavilion'] == 3.5
    assert isinstance(entry['pitch'], float)
    assert entry['name'] == 'N' * 80
    assert entry['comment'] == 'Lovely tea'
    assert len(entry['ua']) == 120
    assert entry['created_at'].endswith('Z')


def test_ratings_are_appended(client, ratings_path):
    client.post('/api/ratings', json=VALID_BODY)
    client.post('/api/ratings', json=dict(VALID_BODY, ground_id='node/2'))
    assert [e['ground_id'] for e in json.loads(ratings_path.read_text())] == ['way/1', 'node/2']


@pytest.mark.parametrize('field', ['ground_id', 'pitch', 'value'])
def test_missing_field(client, field):
    body = dict(VALID_BODY)
    del body[field]
    response = client.post('/api/ratings', json=body)
    assert response.status_code == 400
    assert response.json()['detail'] == f"Missing field: {field}"


def test_null_field_is_missing(client):
    response = client.post('/api/ratings', json=dict(VALID_BODY, bar=None))
    assert response.status_code == 400
    assert response.json()['detail'] == 'Missing field: bar'


@pytest.mark.parametrize('value', ['great', True, [1]])
def test_invalid_rating(client, value):
    response = client.post('/api/ratings', json=dict(VALID_BODY, atmosphere=value))
    assert response.status_code == 400
    assert response.json()['detail'] == 'Invalid value for field: atmosphere'


@pytest.mark.parametrize('field, value', [('pitch', 'nan'), ('pavilion', 'inf'), ('value', '-Infinity')])
def test_non_finite_rating(client, ratings_path, field, value):
    response = client.post('/api/ratings', json=dict(VALID_BODY, **{field: value}))
    assert response.status_code == 400
    assert response.json()['detail'] == f"Invalid value for field: {field}"
    assert not ratings_path.exists()


def test_unknown_ground(client, ratings_path):
    response = client.post('/api/ratings', json=dict(VALID_BODY, ground_id='way/999'))
    assert response.status_code == 404
    assert response.json()['detail'] == 'Unknown ground_id'
    assert not ratings_path.exists()


def test_unconfigured_store(client):
    app.dependency_overrides[get_ratings_store] = lambda: None
    response = client.post('/api/ratings', json=VALID_BODY)
    assert response.status_code == 500
    assert response.json()['detail'] == 'Server not configured'


def test_backend_failure_is_bad_gateway(client):
    store = MagicMock()
    store.append.side_effect = RatingsStoreError('GitHub commit failed', 409, 'sha mismatch ' + 'x' * 500)
    app.dependency_overrides[get_ratings_store] = lambda: store

    response = client.post('/api/ratings', json=VALID_BODY)

    assert response.status_code == 502
    detail = response.json()['detail']
    assert '409' in detail
    assert 'sha mismatch' in detail
    assert 'x' * 201 not in detail


# --- GitHub backend --------------------------------------------------------

def github_response(status, payload=None, text=''):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = text
    return response


def github_session(get_response, put_response=None):
    session = MagicMock()
    session.headers = {}
    session.get.return_value = get_response
    session.put.return_value = put_response or github_response(201, {})
    return session


def test_github_store_puts_with_sha():
    existing = [{'ground_id': 'way/1', 'pitch': 3.0}]
    content = base64.b64encode(json.dumps(existing).encode('utf-8')).decode('ascii')
    session = github_session(github_response(200, {'content': content, 'sha': 'abc123'}))
    store = GitHubRatingsStore(token='t', repo='owner/grounds', session=session)

    store.append({'ground_id': 'node/2', 'created_at': '2024-01-01T00:00:00Z'})

    url = session.put.call_args[0][0]
    assert url == 'https://api.github.com/repos/owner/grounds/contents/data/ratings.json'
    body = session.put.call_args[1]['json']
    assert body['sha'] == 'abc123'
    assert body['branch'] == 'main'
    written = json.loads(base64.b64decode(body['content']))
    assert [r['ground_id'] for r in written] == ['way/1', 'node/2']
    assert session.headers['Authorization'] == 'Bearer t'


def test_github_store_creates_missing_file():
    session = github_session(github_response(404))
    store = GitHubRatingsStore(token='t', repo='owner/grounds', session=session)
    store.append({'ground_id': 'way/1', 'created_at': 'now'})
    assert 'sha' not in session.put.call_args[1]['json']


def test_github_store_rejected_commit():
    content = base64.b64encode(b'[]').decode('ascii')
    session = github_session(github_response(200, {'content': content, 'sha': 'old'}),
                             github_response(409, text='conflict'))
    store = GitHubRatingsStore(token='t', repo='owner/grounds', session=session)
    with pytest.raises(RatingsStoreError) as excinfo:
        store.append({'ground_id': 'way/1', 'created_at': 'now'})
    assert excinfo.value.status == 409
    assert excinfo.value.body == 'conflict'


def test_corrupt_ratings_document_is_left_alone(client, ratings_path):
    original = '[{"ground_id": "way/1", "pitch": 4.0}, {"ground_id": "no'
    ratings_path.write_text(original)

    response = client.post('/api/ratings', json=VALID_BODY)

    assert response.status_code == 502
    assert 'not valid JSON' in response.json()['detail']
    assert ratings_path.read_text() == original


def test_non_array_ratings_document_is_rejected(tmp_path):
    path = tmp_path / 'ratings.json'
    path.write_text('{"ratings": []}')
    with pytest.raises(RatingsStoreError, match='not a JSON array'):
        LocalRatingsStore(path).append({'ground_id': 'way/1'})
    assert path.read_text() == '{"ratings": []}'


@pytest.mark.parametrize('payload', [
    None,
    {'content': '!!not base64!!', 'sha': 'abc'},
    {'content': base64.b64encode(b'\xff\xfe').decode('ascii'), 'sha': 'abc'},
    {'content': base64.b64encode(b'[{"ground_id": ').decode('ascii'), 'sha': 'abc'},
])
def test_github_store_unreadable_document(payload):
    get_response = github_response(200, payload, text='garbled')
    if payload is None:
        get_response.json.side_effect = ValueError('No JSON')
    session = github_session(get_response)
    store = GitHubRatingsStore(token='t', repo='owner/grounds', session=session)

    with pytest.raises(RatingsStoreError):
        store.append({'ground_id': 'way/1', 'created_at': 'now'})
    session.put.assert_not_called()
