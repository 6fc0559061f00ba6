"""
loyaltyhub/repository.py
------------------------
Table accessor layer: one Repository per model.

    programs.find_by_id(id)
    programs.find_all({'business_id': bid}, limit=20, order_by='name', direction='asc')
    programs.create({...}) / programs.update(id, {...}) / programs.remove(id)

Identifiers (filter keys, data keys, order_by) must be mapped columns of the
model; anything else raises UnknownColumnError before any SQL is built.
Values always travel as bound parameters.

Transient failures (dropped connection, timeout, network) are retried up to
DB_RETRY_ATTEMPTS times. The attempt counter lives on the call stack, so
concurrent requests never share retry state.
"""
import logging
import time

from flask import current_app, has_app_context
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError

from loyaltyhub import db
from loyaltyhub.errors import NotFoundError, UnknownColumnError, ValidationError
from loyaltyhub.utils.model_helpers import utcnow

logger = logging.getLogger(__name__)

MAX_LIMIT = 500
TRANSIENT_MARKERS = ('connection', 'timeout', 'network')


# ── Retry ─────────────────────────────────────────────────────────

def is_transient_error(exc: BaseException) -> bool:
    """True for errors worth retrying on a fresh connection."""
    if isinstance(exc, (OperationalError, DisconnectionError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def with_retry(operation, attempts=None, backoff=0.1):
    """
    Run `operation()` and retry it on transient database errors.

    The session is rolled back before each retry so the next attempt
    checks out a fresh connection. Non-transient errors propagate at once.
    """
    if attempts is None:
        attempts = current_app.config.get('DB_RETRY_ATTEMPTS', 3) if has_app_context() else 3
    attempts = max(1, int(attempts))

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt >= attempts or not is_transient_error(exc):
                raise
            logger.warning("Transient database error (attempt %d/%d): %s", attempt, attempts, exc)
            db.session.rollback()
            if backoff:
                time.sleep(backoff * attempt)


# ── Repository ────────────────────────────────────────────────────

class Repository:
    """Typed accessor for one model."""

    def __init__(self, model):
        self.model = model
        self.table = model.__tablename__
        mapper = sa_inspect(model)
        # column name → mapped attribute name (they differ for qr_codes.metadata)
        self.columns = {attr.columns[0].name: attr.key for attr in mapper.column_attrs}
        self.has_created_at = 'created_at' in self.columns
        self.has_updated_at = 'updated_at' in self.columns

    def __repr__(self):
        return f'<Repository {self.table}>'

    # ── identifier checks ─────────────────────────────────────────
    def attribute(self, column: str) -> str:
        try:
            return self.columns[column]
        except KeyError:
            raise UnknownColumnError(self.table, column) from None

    def _clean(self, data: dict, protected=('id',)) -> dict:
        """Map column names to attributes; reject unknown ones."""
        clean = {}
        for column, value in (data or {}).items():
            attr = self.attribute(column)
            if column in protected:
                continue
            clean[attr] = value
        return clean

    def _filtered(self, filters: dict):
        query = self.model.query
        for column, value in (filters or {}).items():
            column_attr = getattr(self.model, self.attribute(column))
            if value is None:
                query = query.filter(column_attr.is_(None))
            else:
                query = query.filter(column_attr == value)
        return query

    # ── reads ─────────────────────────────────────────────────────
    def find_by_id(self, id):
        if id is None or id == '':
            return None
        return with_retry(lambda: db.session.get(self.model, id))

    def get_or_404(self, id, message=None):
        row = self.find_by_id(id)
        if row is None:
            raise NotFoundError(message or f'{self.model.__name__} not found')
        return row

    def find_one(self, filters: dict):
        return with_retry(lambda: self._filtered(filters).first())

    def find_all(self, filters=None, limit=100, offset=0, order_by='created_at', direction='desc'):
        limit, offset = clamp_page(limit, offset)
        direction = str(direction).lower()
        if direction not in ('asc', 'desc'):
            raise ValidationError(errors=['Sort direction must be asc or desc'])
        column_attr = getattr(self.model, self.attribute(order_by))
        ordering = column_attr.asc() if direction == 'asc' else column_attr.desc()

        query = self._filtered(filters).order_by(ordering).limit(limit).offset(offset)
        return with_retry(query.all)

    def count(self, filters=None) -> int:
        return with_retry(self._filtered(filters).count)

    # ── writes ────────────────────────────────────────────────────
    def create(self, data: dict, commit=True):
        values = self._clean(data, protected=())
        if not values:
            raise ValidationError('No data provided for creation')
        now = utcnow()
        if self.has_created_at:
            values.setdefault('created_at', now)
        if self.has_updated_at:
            values.setdefault('updated_at', now)

        # None means "use the column default"
        row = self.model(**{k: v for k, v in values.items() if v is not None})
        db.session.add(row)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return row

    def update(self, id, data: dict, commit=True):
        values = self._clean(data, protected=('id', 'created_at'))
        if not values:
            raise ValidationError('No data provided for update')
        row = self.find_by_id(id)
        if row is None:
            return None
        for attr, value in values.items():
            setattr(row, attr, value)
        if self.has_updated_at:
            row.updated_at = utcnow()
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return row

    def remove(self, id, commit=True) -> bool:
        row = self.find_by_id(id)
        if row is None:
            return False
        db.session.delete(row)
        if commit:
            db.session.commit()
        return True


def clamp_page(limit, offset):
    """Coerce pagination params: limit 1..MAX_LIMIT, offset >= 0."""
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = 100
    try:
        offset = int(offset)
    except (TypeError, ValueError):
        offset = 0
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


# ── Per-entity repositories ───────────────────────────────────────

from loyaltyhub.auth.models import User                                 # noqa: E402
from loyaltyhub.businesses.models import Business                       # noqa: E402
from loyaltyhub.customers.models import Customer                        # noqa: E402
from loyaltyhub.programs.models import LoyaltyProgram, LoyaltyCard      # noqa: E402
from loyaltyhub.rewards.models import Reward                            # noqa: E402
from loyaltyhub.transactions.models import Transaction                  # noqa: E402
from loyaltyhub.redemptions.models import RedemptionCode                # noqa: E402
from loyaltyhub.qrcodes.models import QRCode                            # noqa: E402
from loyaltyhub.settings.models import Setting                          # noqa: E402
from loyaltyhub.comments.models import Comment                          # noqa: E402

users            = Repository(User)
businesses       = Repository(Business)
customers        = Repository(Customer)
programs         = Repository(LoyaltyProgram)
cards            = Repository(LoyaltyCard)
rewards          = Repository(Reward)
transactions     = Repository(Transaction)
redemption_codes = Repository(RedemptionCode)
qr_codes         = Repository(QRCode)
settings         = Repository(Setting)
comments         = Repository(Comment)
