"""
test_cli.py — the flask maintenance commands (init-db, seeding, code batches).
Run: pytest test_cli.py -v
"""
from datetime import timedelta

import pytest

from loyaltyhub import create_app, db
from loyaltyhub.auth.models import RoleEnum, User
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.programs.models import LoyaltyCard, LoyaltyProgram
from loyaltyhub.qrcodes.models import QRCode
from loyaltyhub.redemptions.models import CodeStatus, RedemptionCode
from loyaltyhub.rewards.models import Reward
from loyaltyhub.utils.model_helpers import utcnow


@pytest.fixture(scope='function')
def runner():
    # Tables are left to each test: init-db is one of the commands under test
    app = create_app('testing')
    with app.app_context():
        yield app.test_cli_runner()
        db.session.remove()
        db.drop_all()


def test_init_db_creates_tables_once(runner):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'created table users' in result.output
    assert 'created table redemption_codes' in result.output

    again = runner.invoke(args=['init-db'])
    assert again.exit_code == 0
    assert 'Schema already up to date.' in again.output


def test_seed_admin(runner):
    db.create_all()
    args = ['seed-admin', '--email', 'Root@Example.com', '--first-name', 'Root',
            '--password', 'secret123']
    result = runner.invoke(args=args)
    assert result.exit_code == 0
    assert 'Admin user "root@example.com" created (1 admin(s) in total).' in result.output

    admin = User.query.filter_by(email='root@example.com').one()
    assert admin.role == RoleEnum.admin
    assert admin.password_hash.startswith('scrypt:')

    again = runner.invoke(args=args)
    assert 'already exists' in again.output
    assert User.query.count() == 1


def test_seed_demo_is_repeatable(runner):
    result = runner.invoke(args=['seed-demo', '--password', 'secret123'])
    assert result.exit_code == 0, result.output
    assert 'Demo seed complete.' in result.output

    business = Business.query.one()
    member = Customer.query.filter_by(email='member@demo-coffee.test').one()
    assert member.business_id == business.id
    assert LoyaltyProgram.query.filter_by(business_id=business.id).count() == 1
    assert Reward.query.count() == 3
    assert LoyaltyCard.query.filter_by(customer_id=member.id).one().points_balance == 150
    assert QRCode.query.count() == 1
    assert RedemptionCode.query.count() == 5

    again = runner.invoke(args=['seed-demo', '--password', 'secret123'])
    assert again.exit_code == 0
    assert 'Demo data already present.' in again.output
    assert Business.query.count() == 1
    assert LoyaltyProgram.query.count() == 1
    assert RedemptionCode.query.count() == 5


def test_generate_codes_prints_each_code(runner):
    db.create_all()
    db.session.add(Business(id='B1', name='Biz One'))
    db.session.commit()

    result = runner.invoke(args=['generate-codes', '--business-id', 'B1', '--count', '4',
                                 '--value', '10'])
    assert result.exit_code == 0
    assert '4 codes generated.' in result.output

    rows = RedemptionCode.query.filter_by(business_id='B1').all()
    assert len(rows) == 4
    printed = result.output.split()
    assert all(row.code in printed for row in rows)
    assert all(float(row.value_amount) == 10 for row in rows)


def test_generate_codes_reports_bad_input(runner):
    db.create_all()
    db.session.add(Business(id='B1', name='Biz One'))
    db.session.commit()

    fraction = runner.invoke(args=['generate-codes', '--business-id', 'B1', '--value', '2.5'])
    assert fraction.exit_code != 0
    assert 'whole number' in fraction.output

    missing = runner.invoke(args=['generate-codes', '--business-id', 'nope'])
    assert missing.exit_code != 0
    assert 'Business not found' in missing.output
    assert RedemptionCode.query.count() == 0


def test_expire_codes(runner):
    db.create_all()
    db.session.add_all([
        Business(id='B1', name='Biz One'),
        RedemptionCode(id='OLD', code='OLDCODE001', business_id='B1', status=CodeStatus.active,
                       expires_at=utcnow() - timedelta(days=1)),
        RedemptionCode(id='NEW', code='NEWCODE001', business_id='B1', status=CodeStatus.active,
                       expires_at=utcnow() + timedelta(days=1)),
    ])
    db.session.commit()

    result = runner.invoke(args=['expire-codes'])
    assert result.exit_code == 0
    assert '1 code(s) expired.' in result.output
    assert db.session.get(RedemptionCode, 'OLD').status == CodeStatus.expired
    assert db.session.get(RedemptionCode, 'NEW').status == CodeStatus.active
