"""
loyaltyhub/schema.py
--------------------
Idempotent schema bootstrap. Safe to run on every deploy.

1. db.create_all() creates whatever tables are missing.
2. PostgreSQL only: databases first built by the Node services lack some
   foreign keys and the newer redemption_codes columns. Each is added only
   when the catalog says it is absent.

Returns the list of actions taken, so a second run returns [].
"""
import logging

from sqlalchemy import inspect, text

from loyaltyhub import db

logger = logging.getLogger(__name__)

# (constraint, table, column, referenced table)
LEGACY_FOREIGN_KEYS = (
    ('users_business_id_fkey',     'users',      'business_id', 'businesses'),
    ('businesses_owner_id_fkey',   'businesses', 'owner_id',    'users'),
    ('customers_user_id_fkey',     'customers',  'user_id',     'users'),
    ('customers_business_id_fkey', 'customers',  'business_id', 'businesses'),
    ('qr_codes_business_id_fkey',  'qr_codes',   'business_id', 'businesses'),
)

# Columns the status-only redemption_codes table of older deployments lacks
REDEMPTION_CODE_COLUMNS = (
    ('status',       "VARCHAR(20) NOT NULL DEFAULT 'active'"),
    ('is_used',      'BOOLEAN NOT NULL DEFAULT FALSE'),
    ('value_type',   "VARCHAR(20) NOT NULL DEFAULT 'points'"),
    ('value_amount', 'NUMERIC(12,2) NOT NULL DEFAULT 0'),
    ('used_by',      'VARCHAR(36) REFERENCES customers(id)'),
    ('used_at',      'TIMESTAMP'),
    ('expires_at',   'TIMESTAMP'),
    ('updated_at',   'TIMESTAMP NOT NULL DEFAULT NOW()'),
)


def _import_models():
    # Importing registers every table with db.metadata
    import loyaltyhub.auth.models           # noqa: F401
    import loyaltyhub.businesses.models     # noqa: F401
    import loyaltyhub.customers.models      # noqa: F401
    import loyaltyhub.programs.models       # noqa: F401
    import loyaltyhub.rewards.models        # noqa: F401
    import loyaltyhub.transactions.models   # noqa: F401
    import loyaltyhub.redemptions.models    # noqa: F401
    import loyaltyhub.qrcodes.models        # noqa: F401
    import loyaltyhub.settings.models       # noqa: F401
    import loyaltyhub.comments.models       # noqa: F401


def bootstrap_schema() -> list:
    """Must run inside an app context."""
    _import_models()
    actions = []

    before = set(inspect(db.engine).get_table_names())
    db.create_all()
    after = set(inspect(db.engine).get_table_names())
    actions.extend(f'created table {name}' for name in sorted(after - before))

    if db.engine.dialect.name == 'postgresql':
        actions.extend(_patch_postgres())

    for action in actions:
        logger.info("Schema: %s", action)
    if not actions:
        logger.info("Schema up to date")
    return actions


def _patch_postgres() -> list:
    actions = []
    with db.engine.begin() as conn:
        inspector = inspect(conn)

        columns = {c['name'] for c in inspector.get_columns('redemption_codes')}
        for name, ddl in REDEMPTION_CODE_COLUMNS:
            if name not in columns:
                conn.execute(text(f'ALTER TABLE redemption_codes ADD COLUMN {name} {ddl}'))
                actions.append(f'added column redemption_codes.{name}')

        for name, table, column, target in LEGACY_FOREIGN_KEYS:
            exists = conn.execute(
                text('SELECT 1 FROM pg_constraint WHERE conname = :name'), {'name': name}
            ).first()
            if exists is None:
                conn.execute(text(
                    f'ALTER TABLE {table} ADD CONSTRAINT {name} '
                    f'FOREIGN KEY ({column}) REFERENCES {target}(id)'
                ))
                actions.append(f'added constraint {name}')
    return actions
