"""
test_rewards.py — reward catalogue, eligibility and spending points.
Run: pytest test_rewards.py -v
"""
from datetime import timedelta

import pytest

from loyaltyhub import create_app, db
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import ConflictError
from loyaltyhub.programs import service as programs_service
from loyaltyhub.programs.models import LoyaltyProgram
from loyaltyhub.redemptions import service as codes
from loyaltyhub.redemptions.models import RedemptionCode
from loyaltyhub.rewards import service as rewards_service
from loyaltyhub.rewards.models import Reward
from loyaltyhub.transactions.models import Transaction, TransactionType
from loyaltyhub.utils.model_helpers import utcnow


@pytest.fixture(scope='function')
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        db.session.add_all([
            Business(id='B1', name='Biz One'),
            Customer(id='C1', business_id='B1', first_name='Ada', total_points=80),
            LoyaltyProgram(id='P1', business_id='B1', name='Coffee Club'),
            Reward(id='R1', business_id='B1', name='Free coffee', points_required=50),
        ])
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


# ── Catalogue ─────────────────────────────────────────────────────

def test_create_and_list(client):
    resp = client.post('/api/rewards', json={'businessId': 'B1', 'name': ' Muffin ',
                                             'pointsRequired': 30, 'programId': 'P1'})
    assert resp.status_code == 201
    assert resp.get_json()['reward']['name'] == 'Muffin'

    rows = client.get('/api/rewards?business_id=B1').get_json()['rewards']
    assert [r['name'] for r in rows] == ['Muffin', 'Free coffee']

    by_program = client.get('/api/rewards?program_id=P1').get_json()['rewards']
    assert [r['name'] for r in by_program] == ['Muffin']


def test_create_validation(client):
    resp = client.post('/api/rewards', json={'points_required': -5})
    assert resp.status_code == 400
    errors = resp.get_json()['errors']
    assert 'Business ID is required' in errors
    assert 'Reward name is required' in errors
    assert 'Points required must be at least 0' in errors


def test_create_unknown_program_404(client):
    resp = client.post('/api/rewards', json={'business_id': 'B1', 'name': 'X',
                                             'points_required': 1, 'program_id': 'nope'})
    assert resp.status_code == 404


def test_create_unknown_business_404(client):
    resp = client.post('/api/rewards', json={'business_id': 'nope', 'name': 'X', 'points_required': 1})
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Business not found'
    assert Reward.query.count() == 1


def test_program_must_belong_to_business(client):
    db.session.add_all([Business(id='B2', name='Biz Two'),
                        LoyaltyProgram(id='P2', business_id='B2', name='Tea Club')])
    db.session.commit()

    resp = client.post('/api/rewards', json={'business_id': 'B1', 'name': 'X',
                                             'points_required': 1, 'program_id': 'P2'})
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Program does not belong to this business']

    resp = client.put('/api/rewards?id=R1', json={'program_id': 'P2'})
    assert resp.status_code == 400
    assert db.session.get(Reward, 'R1').program_id is None


def test_inactive_hidden_unless_asked(client):
    client.put('/api/rewards?id=R1', json={'is_active': False})
    assert client.get('/api/rewards?business_id=B1').get_json()['rewards'] == []
    rows = client.get('/api/rewards?business_id=B1&include_inactive=true').get_json()['rewards']
    assert len(rows) == 1


def test_partial_update(client):
    resp = client.put('/api/rewards?id=R1', json={'description': 'Any size'})
    reward = resp.get_json()['reward']
    assert reward['description'] == 'Any size'
    assert reward['points_required'] == 50
    assert client.put('/api/rewards?id=nope', json={'name': 'x'}).status_code == 404


def test_delete_unlinks_codes(client):
    code = codes.generate_code('B1', reward_id='R1')
    assert client.delete('/api/rewards?id=R1').status_code == 200
    assert db.session.get(Reward, 'R1') is None
    assert db.session.get(RedemptionCode, code.id).reward_id is None
    assert client.delete('/api/rewards?id=R1').status_code == 404


# ── Eligibility / redeem ──────────────────────────────────────────

def test_eligibility_from_customer_total(client):
    data = client.get('/api/rewards/eligibility?customer_id=C1&reward_id=R1').get_json()
    assert data['eligible'] is True
    assert data['current_points'] == 80
    assert data['points_needed'] == 0


def test_eligibility_uses_program_card(client):
    reward = rewards_service.create_reward({'business_id': 'B1', 'program_id': 'P1',
                                            'name': 'Mug', 'points_required': 30})
    result = rewards_service.check_reward_eligibility('C1', reward.id)
    assert result['eligible'] is False
    assert result['points_needed'] == 30

    programs_service.issue_points('C1', 'P1', 35)
    assert rewards_service.check_reward_eligibility('C1', reward.id)['eligible'] is True


def test_eligibility_respects_validity_window(client):
    reward = db.session.get(Reward, 'R1')
    reward.valid_until = utcnow() - timedelta(days=1)
    db.session.commit()
    assert rewards_service.check_reward_eligibility('C1', 'R1')['eligible'] is False


def test_eligibility_requires_ids(client):
    resp = client.get('/api/rewards/eligibility?customer_id=C1')
    assert resp.status_code == 400
    assert resp.get_json()['errors'] == ['Reward ID is required']


def test_redeem_deducts_points(client):
    resp = client.post('/api/rewards/redeem', json={'customer_id': 'C1', 'reward_id': 'R1'})
    assert resp.status_code == 200
    assert resp.get_json()['transaction']['points_earned'] == -50
    assert db.session.get(Customer, 'C1').total_points == 30

    tx = Transaction.query.one()
    assert tx.type == TransactionType.reward_redemption


def test_redeem_without_enough_points(client):
    client.post('/api/rewards/redeem', json={'customer_id': 'C1', 'reward_id': 'R1'})
    resp = client.post('/api/rewards/redeem', json={'customer_id': 'C1', 'reward_id': 'R1'})
    assert resp.status_code == 409
    data = resp.get_json()
    assert data['current_points'] == 30
    assert data['points_needed'] == 20
    assert Transaction.query.count() == 1


def test_redeem_card_reward_updates_card(client):
    reward = rewards_service.create_reward({'business_id': 'B1', 'program_id': 'P1',
                                            'name': 'Mug', 'points_required': 30})
    programs_service.issue_points('C1', 'P1', 40)
    rewards_service.redeem_reward('C1', reward.id)

    card = programs_service.get_customer_card('C1', 'P1')
    assert card.points_balance == 10
    assert db.session.get(Customer, 'C1').total_points == 90


def test_redeem_unavailable_reward(client):
    reward = db.session.get(Reward, 'R1')
    reward.is_active = False
    db.session.commit()
    with pytest.raises(ConflictError) as exc:
        rewards_service.redeem_reward('C1', 'R1')
    assert exc.value.message == 'Reward is not currently available'
