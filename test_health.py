"""
test_health.py — health check, CORS, the error envelope and comments.
Run: pytest test_health.py -v
"""
import pytest
from sqlalchemy.exc import OperationalError

from loyaltyhub import create_app, db


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def test_health_json(client):
    """Standard JSON response for load balancers."""
    resp = client.get('/api/health')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['status'] in ('ok', 'warning')
    assert data['details']['db'] == 'ok'
    assert 'disk_free_percent' in data['details']


def test_health_db_down(client, monkeypatch):
    def unreachable(*args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('password authentication failed for "admin"'))

    monkeypatch.setattr(db.session, 'execute', unreachable)
    resp = client.get('/api/health')
    assert resp.status_code == 503
    data = resp.get_json()
    assert data['success'] is False
    assert data['details']['db'] == 'error'
    assert 'password' not in resp.get_data(as_text=True)


def test_cors_headers(client):
    resp = client.get('/api/health', headers={'Origin': 'https://app.example.com'})
    assert resp.headers.get('Access-Control-Allow-Origin') in ('*', 'https://app.example.com')

    preflight = client.options('/api/loyalty_programs', headers={
        'Origin': 'https://app.example.com',
        'Access-Control-Request-Method': 'POST',
    })
    assert preflight.status_code == 200
    assert 'Access-Control-Allow-Origin' in preflight.headers


def test_unknown_endpoint(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.get_json() == {'success': False, 'message': 'Endpoint not found'}


def test_method_not_allowed(client):
    resp = client.patch('/api/health')
    assert resp.status_code == 405
    assert resp.get_json()['message'] == 'Method not allowed'


def test_malformed_json_is_rejected(client):
    resp = client.post('/api/comments', data='["not", "an", "object"]',
                       content_type='application/json')
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Request body must be a JSON object'


def test_unhandled_error_hides_details():
    app = create_app('testing')

    @app.route('/api/boom')
    def boom():
        raise RuntimeError('secret connection string postgres://admin:pw@db')

    with app.app_context():
        resp = app.test_client().get('/api/boom')
    assert resp.status_code == 500
    assert resp.get_json() == {'success': False, 'message': 'Internal server error'}


def test_comments(client):
    assert client.post('/api/comments', json={'comment': '   '}).status_code == 400
    assert client.post('/api/comments', json={'comment': 'x' * 5001}).status_code == 400

    client.post('/api/comments', json={'comment': 'First'})
    resp = client.post('/api/comments', json={'comment': 'Second'})
    assert resp.status_code == 201

    rows = client.get('/api/comments').get_json()['comments']
    assert {c['comment'] for c in rows} == {'First', 'Second'}
    assert 'updated_at' not in rows[0]
