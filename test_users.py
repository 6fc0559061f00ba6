"""
test_users.py — registration, login, password storage and the business profile.
Run: pytest test_users.py -v
"""
import hashlib

import pytest

from loyaltyhub import create_app, db
from loyaltyhub.auth import service as auth_service
from loyaltyhub.auth.models import RoleEnum, User
from loyaltyhub.businesses import service as business_service
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.transactions.models import Transaction, TransactionType


@pytest.fixture(scope='function')
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def register(client, **body):
    body.setdefault('email', 'ada@example.com')
    body.setdefault('password', 'secret123')
    return client.post('/api/users/register', json=body)


def login(client, email='ada@example.com', password='secret123'):
    return client.post('/api/users/login', json={'email': email, 'password': password})


# ── Registration ──────────────────────────────────────────────────

def test_register_customer_creates_customer_row(client):
    resp = register(client, firstName='Ada', lastName='Lovelace')
    assert resp.status_code == 201
    user = resp.get_json()['user']
    assert user['role'] == 'customer'
    assert 'password_hash' not in user
    assert user['customer_id'] is not None

    customer = Customer.query.filter_by(user_id=user['id']).one()
    assert customer.first_name == 'Ada'


def test_register_manager_creates_owned_business(client):
    resp = register(client, email='owner@example.com', role='manager', businessName='Bean There')
    assert resp.status_code == 201
    user = resp.get_json()['user']

    business = db.session.get(Business, user['business_id'])
    assert business.name == 'Bean There'
    assert business.owner_id == user['id']
    assert business_service.get_business_by_owner(user['id']).id == business.id


def test_register_staff_requires_business_name(client):
    resp = register(client, role='staff')
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Business name is required for business accounts']
    assert Business.query.count() == 0


def test_register_rejects_admin_role(client):
    assert register(client, role='admin').status_code == 400


def test_register_missing_credentials(client):
    resp = client.post('/api/users/register', json={})
    assert resp.status_code == 400
    errors = resp.get_json()['errors']
    assert 'Email is required' in errors
    assert 'Password is required' in errors


def test_register_names_the_missing_credential(client):
    resp = client.post('/api/users/register', json={'email': 'ada@example.com'})
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Password is required']


def test_register_rejects_non_string_password(client):
    resp = register(client, password=1234567)
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Password must be a string']
    assert User.query.count() == 0


def test_register_rejects_non_string_business_name(client):
    resp = register(client, role='manager', business_name=42)
    assert resp.status_code == 400
    assert 'Business name must be a string' in resp.get_json()['errors']
    assert Business.query.count() == 0


def test_register_customer_links_business(client):
    db.session.add(Business(id='B1', name='Biz One'))
    db.session.commit()
    resp = register(client, businessId='B1', first_name='Ada')
    assert resp.status_code == 201
    user = resp.get_json()['user']
    assert db.session.get(Customer, user['customer_id']).business_id == 'B1'
    assert user['business_id'] is None

    missing = register(client, email='bo@example.com', business_id='nope')
    assert missing.status_code == 404
    assert User.query.count() == 1


def test_register_duplicate_email_conflicts(client):
    register(client)
    resp = register(client, email='  ADA@example.com ')
    assert resp.status_code == 409
    assert User.query.count() == 1


def test_password_is_salted_slow_hash(client):
    register(client)
    register(client, email='bo@example.com')
    hashes = [u.password_hash for u in User.query.all()]
    assert all(h.startswith('scrypt:') for h in hashes)
    assert hashes[0] != hashes[1]
    assert hashlib.sha256(b'secret123').hexdigest() not in hashes


# ── Login / session ───────────────────────────────────────────────

def test_login_and_me(client):
    register(client)
    assert client.get('/api/users/me').status_code == 401

    resp = login(client)
    assert resp.status_code == 200
    assert resp.get_json()['user']['email'] == 'ada@example.com'

    me = client.get('/api/users/me').get_json()['user']
    assert me['email'] == 'ada@example.com'

    client.post('/api/users/logout')
    assert client.get('/api/users/me').status_code == 401


def test_login_wrong_password(client):
    register(client)
    resp = login(client, password='wrong-one')
    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Invalid credentials'


def test_login_non_string_password(client):
    register(client)
    resp = client.post('/api/users/login', json={'email': 'ada@example.com', 'password': 123456})
    assert resp.status_code == 400
    assert auth_service.verify_password(123456, db.session.query(User.password_hash).scalar()) is False


def test_login_missing_fields(client):
    resp = client.post('/api/users/login', json={'email': 'ada@example.com'})
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Password is required']


def test_legacy_sha256_hash_upgraded_on_login(client):
    legacy = hashlib.sha256(b'oldpass1').hexdigest()
    db.session.add(User(id='U1', email='legacy@example.com', password_hash=legacy,
                        role=RoleEnum.customer))
    db.session.commit()

    assert login(client, 'legacy@example.com', 'nope').status_code == 401
    assert login(client, 'legacy@example.com', 'oldpass1').status_code == 200

    upgraded = db.session.get(User, 'U1').password_hash
    assert upgraded.startswith('scrypt:')
    assert login(client, 'legacy@example.com', 'oldpass1').status_code == 200


def test_change_password(client):
    register(client)
    login(client)

    bad = client.post('/api/users/change_password',
                      json={'currentPassword': 'nope', 'newPassword': 'another1'})
    assert bad.status_code == 401

    ok = client.post('/api/users/change_password',
                     json={'current_password': 'secret123', 'new_password': 'another1'})
    assert ok.status_code == 200
    assert auth_service.authenticate_user('ada@example.com', 'another1') is not None


def test_change_password_rejects_non_string(client):
    register(client)
    login(client)
    resp = client.post('/api/users/change_password',
                       json={'current_password': 'secret123', 'new_password': 12345678})
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['New password must be a string']


def test_change_password_requires_login(client):
    resp = client.post('/api/users/change_password',
                       json={'current_password': 'a', 'new_password': 'b'})
    assert resp.status_code == 401


def test_update_profile(client):
    register(client, first_name='Ada')
    login(client)
    resp = client.put('/api/users/me', json={'lastName': 'Byron', 'role': 'admin'})
    assert resp.status_code == 200
    user = resp.get_json()['user']
    assert user['last_name'] == 'Byron'
    assert user['role'] == 'customer'


# ── Businesses ────────────────────────────────────────────────────

def test_business_profile_and_stats(client):
    owner = register(client, email='owner@example.com', role='manager',
                     business_name='Bean There').get_json()['user']
    business_id = owner['business_id']
    db.session.add(Customer(id='C1', business_id=business_id, total_points=0))
    db.session.add_all([
        Transaction(business_id=business_id, customer_id='C1', points_earned=30,
                    type=TransactionType.purchase),
        Transaction(business_id=business_id, customer_id='C1', points_earned=-20,
                    type=TransactionType.reward_redemption),
    ])
    db.session.commit()

    assert client.get(f'/api/businesses/{business_id}').get_json()['business']['name'] == 'Bean There'
    assert client.get(f'/api/businesses/{business_id}/stats').status_code == 401

    login(client, 'owner@example.com')
    stats = client.get(f'/api/businesses/{business_id}/stats').get_json()['stats']
    assert stats['customer_count'] == 1
    assert stats['total_transactions'] == 2
    assert stats['total_points_issued'] == 30
    assert stats['total_points_redeemed'] == 20

    resp = client.put(f'/api/businesses/{business_id}', json={'phone': '555-0100', 'owner_id': 'x'})
    assert resp.status_code == 200
    assert resp.get_json()['business']['phone'] == '555-0100'
    assert resp.get_json()['business']['owner_id'] == owner['id']

    staff = client.get(f'/api/businesses/{business_id}/staff').get_json()['staff']
    assert [s['email'] for s in staff] == ['owner@example.com']


def test_business_routes_block_other_members(client):
    register(client, email='a@example.com', role='manager', business_name='A')
    other = register(client, email='b@example.com', role='manager',
                     business_name='B').get_json()['user']
    login(client, 'a@example.com')
    assert client.put(f"/api/businesses/{other['business_id']}", json={'phone': '1'}).status_code == 403


def test_unknown_business_404(client):
    assert client.get('/api/businesses/missing').status_code == 404
