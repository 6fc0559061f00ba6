"""
test_loyalty_programs.py — loyalty programs and cards API.
Run: pytest test_loyalty_programs.py -v
"""
import pytest

from loyaltyhub import create_app, db
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.programs.models import LoyaltyCard, LoyaltyProgram
from loyaltyhub.programs import service as programs_service


# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture(scope='function')
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        db.session.add(Business(id='B1', name='Biz One'))
        db.session.add(Business(id='B2', name='Biz Two'))
        db.session.add(Customer(id='C1', business_id='B1', first_name='Ada', email='ada@example.com'))
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


TIERS = [{'name': 'Bronze', 'min_points': 0},
         {'name': 'Silver', 'min_points': 100},
         {'name': 'Gold', 'min_points': 300}]


def make_program(client, business_id='B1', **extra):
    body = {'business_id': business_id, 'name': 'Coffee Club', 'type': 'points'}
    body.update(extra)
    return client.post('/api/loyalty_programs', json=body)


# ── Programs ──────────────────────────────────────────────────────

def test_create_program(client):
    resp = make_program(client, points_per_purchase=2, tiers=TIERS)
    assert resp.status_code == 201
    data = resp.get_json()
    assert data['success'] is True
    assert data['program']['name'] == 'Coffee Club'
    assert data['program']['points_per_purchase'] == 2
    assert data['program']['tiers'][1]['name'] == 'Silver'


def test_missing_fields_are_all_named(client):
    resp = client.post('/api/loyalty_programs', json={})
    assert resp.status_code == 400
    data = resp.get_json()
    assert data['success'] is False
    assert 'Program name is required' in data['errors']
    assert 'Business ID is required' in data['errors']


def test_camel_case_business_id_accepted(client):
    resp = client.post('/api/loyalty_programs', json={'businessId': 'B1', 'name': 'Club'})
    assert resp.status_code == 201
    assert resp.get_json()['program']['business_id'] == 'B1'


def test_second_program_conflicts_with_existing_attached(client):
    first = make_program(client).get_json()['program']
    resp = make_program(client, name='Another Club')
    assert resp.status_code == 409
    data = resp.get_json()
    assert data['success'] is False
    assert data['program']['id'] == first['id']
    assert LoyaltyProgram.query.filter_by(business_id='B1').count() == 1


def test_other_business_can_still_create(client):
    make_program(client)
    assert make_program(client, business_id='B2').status_code == 201


def test_invalid_type_rejected(client):
    resp = make_program(client, type='lottery')
    assert resp.status_code == 400
    assert any('Program type' in e for e in resp.get_json()['errors'])


def test_get_programs_requires_business_id(client):
    resp = client.get('/api/loyalty_programs')
    assert resp.status_code == 400


def test_get_programs_empty_list(client):
    resp = client.get('/api/loyalty_programs?business_id=B2')
    assert resp.status_code == 200
    assert resp.get_json() == {'success': True, 'programs': []}


def test_partial_update_keeps_other_fields(client):
    program = make_program(client, description='Original', points_per_purchase=3).get_json()['program']
    resp = client.put(f"/api/loyalty_programs?id={program['id']}", json={'name': 'Renamed'})
    assert resp.status_code == 200
    updated = resp.get_json()['program']
    assert updated['name'] == 'Renamed'
    assert updated['description'] == 'Original'
    assert updated['points_per_purchase'] == 3


def test_update_missing_program_404(client):
    resp = client.put('/api/loyalty_programs?id=nope', json={'name': 'X'})
    assert resp.status_code == 404


def test_delete_program(client):
    program = make_program(client).get_json()['program']
    assert client.delete(f"/api/loyalty_programs?id={program['id']}").status_code == 200
    assert client.delete(f"/api/loyalty_programs?id={program['id']}").status_code == 404


# ── Cards / points ────────────────────────────────────────────────

def test_issue_points_creates_card_lazily(client):
    program = make_program(client, tiers=TIERS).get_json()['program']
    resp = client.post('/api/loyalty_cards/issue_points',
                       json={'customer_id': 'C1', 'program_id': program['id'], 'points': 40})
    assert resp.status_code == 200
    card = resp.get_json()['card']
    assert card['points_balance'] == 40
    assert card['tier'] == 'Bronze'
    assert db.session.get(Customer, 'C1').total_points == 40


def test_issue_points_moves_tier(client):
    program = make_program(client, tiers=TIERS).get_json()['program']
    programs_service.issue_points('C1', program['id'], 90)
    card = programs_service.issue_points('C1', program['id'], 250)
    assert card.points_balance == 340
    assert card.tier == 'Gold'
    assert LoyaltyCard.query.filter_by(customer_id='C1').count() == 1


def test_issue_points_validation(client):
    resp = client.post('/api/loyalty_cards/issue_points', json={'customer_id': 'C1'})
    assert resp.status_code == 400
    errors = resp.get_json()['errors']
    assert 'Program ID is required' in errors
    assert 'Points are required' in errors


def test_issue_points_unknown_customer_404(client):
    program = make_program(client).get_json()['program']
    resp = client.post('/api/loyalty_cards/issue_points',
                       json={'customer_id': 'ghost', 'program_id': program['id'], 'points': 5})
    assert resp.status_code == 404


def test_create_card_duplicate_conflicts(client):
    resp = client.post('/api/loyalty_cards', json={'customer_id': 'C1', 'business_id': 'B1'})
    assert resp.status_code == 201
    card = resp.get_json()['card']
    assert card['card_number'].startswith('CARD-')

    dup = client.post('/api/loyalty_cards', json={'customer_id': 'C1', 'business_id': 'B1'})
    assert dup.status_code == 409
    assert dup.get_json()['card']['id'] == card['id']


def test_list_cards_by_customer_and_business(client):
    client.post('/api/loyalty_cards', json={'customer_id': 'C1', 'business_id': 'B1'})

    by_customer = client.get('/api/loyalty_cards?customer_id=C1').get_json()['cards']
    assert by_customer[0]['business_name'] == 'Biz One'

    by_business = client.get('/api/loyalty_cards?business_id=B1').get_json()['cards']
    assert by_business[0]['first_name'] == 'Ada'

    assert client.get('/api/loyalty_cards').status_code == 400


def test_issue_points_adopts_card_created_without_program(client):
    card = client.post('/api/loyalty_cards', json={'customer_id': 'C1', 'business_id': 'B1'}).get_json()['card']
    assert card['program_id'] is None

    program = make_program(client).get_json()['program']
    issued = programs_service.issue_points('C1', program['id'], 10)
    assert issued.id == card['id']
    assert issued.program_id == program['id']
    assert issued.points_balance == 10
    assert LoyaltyCard.query.filter_by(customer_id='C1', business_id='B1').count() == 1


def test_create_card_attaches_business_program(client):
    program = make_program(client).get_json()['program']
    card = client.post('/api/loyalty_cards', json={'customer_id': 'C1', 'business_id': 'B1'}).get_json()['card']
    assert card['program_id'] == program['id']

    programs_service.issue_points('C1', program['id'], 5)
    assert LoyaltyCard.query.filter_by(customer_id='C1').count() == 1


def test_create_card_checks_business_and_program(client):
    other = make_program(client, business_id='B2').get_json()['program']
    resp = client.post('/api/loyalty_cards',
                       json={'customer_id': 'C1', 'business_id': 'B1', 'program_id': other['id']})
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Program does not belong to this business'

    assert client.post('/api/loyalty_cards',
                       json={'customer_id': 'C1', 'business_id': 'nope'}).status_code == 404
    assert client.post('/api/loyalty_cards',
                       json={'customer_id': 'ghost', 'business_id': 'B1'}).status_code == 404
    assert LoyaltyCard.query.count() == 0


def test_create_program_unknown_business_404(client):
    resp = make_program(client, business_id='NOPE')
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Business not found'
    assert LoyaltyProgram.query.count() == 0
