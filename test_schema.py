"""
test_schema.py — idempotent schema bootstrap.
Run: pytest test_schema.py -v
"""
import pytest
from sqlalchemy import inspect

from loyaltyhub import create_app, db
from loyaltyhub.schema import bootstrap_schema


@pytest.fixture(scope='function')
def app():
    # No create_all here: bootstrap_schema is what's under test
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


def test_first_run_creates_every_table(app):
    actions = bootstrap_schema()
    for table in ('users', 'businesses', 'customers', 'loyalty_programs', 'loyalty_cards',
                  'rewards', 'transactions', 'redemption_codes', 'qr_codes',
                  'qr_code_scans', 'settings', 'comments'):
        assert f'created table {table}' in actions
    assert 'qr_code_scans' in inspect(db.engine).get_table_names()


def test_second_run_is_a_no_op(app):
    bootstrap_schema()
    assert bootstrap_schema() == []


def test_existing_tables_are_left_alone(app):
    db.create_all()
    assert bootstrap_schema() == []
