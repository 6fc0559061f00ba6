"""
loyaltyhub/redemptions/service.py
---------------------------------
Generate, validate and redeem single-use redemption codes.

Redeem algorithm
────────────────
1. Lock the code row with SELECT … FOR UPDATE. A concurrent redeem of the
   same code blocks here until the first transaction commits, then sees
   status = redeemed and fails.
2. Re-run the validation checks under the lock.
3. Lock the customer row, mark the code redeemed, credit points
   (value_type == points) and record a reward_redemption transaction
   when a reward is attached.
4. Commit once. Either every write lands or none does.

validate_code() takes no locks and never writes: it answers "would this
redeem right now?" for the checkout screen.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from flask import current_app, has_app_context
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import ConflictError, NotFoundError, ValidationError
from loyaltyhub.redemptions.models import (
    CodeStatus, RedemptionCode, TERMINAL_STATUSES, ValueType,
)
from loyaltyhub.repository import with_retry
from loyaltyhub.rewards.models import Reward
from loyaltyhub.transactions.models import Transaction, TransactionType
from loyaltyhub.utils.model_helpers import utcnow

logger = logging.getLogger(__name__)

# No 0/O or 1/I: codes get read aloud and typed in by hand
ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
MAX_GENERATE_ATTEMPTS = 5
SORTABLE = ('created_at', 'updated_at', 'expires_at', 'used_at', 'code', 'value_amount', 'status')


@dataclass
class ValidationResult:
    valid: bool
    message: str
    code: Optional[RedemptionCode] = None
    reason: Optional[str] = None        # not_found | used | expired | cancelled

    def to_dict(self) -> dict:
        return {
            'valid': self.valid,
            'message': self.message,
            'code': self.code.to_dict() if self.code is not None else None,
        }


@dataclass
class RedemptionResult:
    success: bool
    message: str
    redemption: Optional[RedemptionCode] = None
    reason: Optional[str] = None        # as above, plus wrong_business | wrong_customer


def _setting(name, default):
    return current_app.config.get(name, default) if has_app_context() else default


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


def make_code(length=None) -> str:
    length = length or _setting('REDEMPTION_CODE_LENGTH', 10)
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def _code_exists(code) -> bool:
    return db.session.query(RedemptionCode.id).filter(RedemptionCode.code == code).first() is not None


def _unique_code() -> str:
    for _ in range(MAX_GENERATE_ATTEMPTS):
        code = make_code()
        if not _code_exists(code):
            return code
    raise ConflictError('Could not generate a unique code, please retry')


def _expiry(expiry_days):
    if expiry_days is None:
        expiry_days = _setting('REDEMPTION_CODE_EXPIRY_DAYS', 30)
    return utcnow() + timedelta(days=expiry_days)


def _check_targets(business_id, reward_id, customer_id):
    repo.businesses.get_or_404(business_id, 'Business not found')
    if reward_id:
        reward = repo.rewards.get_or_404(reward_id, 'Reward not found')
        if reward.business_id != business_id:
            raise ValidationError(errors=['Reward does not belong to this business'])
    if customer_id:
        repo.customers.get_or_404(customer_id, 'Customer not found')


def _check_value(value_type, value_amount):
    """Points are credited as whole numbers, so a points code can't carry a fraction."""
    if value_type == ValueType.points and value_amount and value_amount != int(value_amount):
        raise ValidationError(errors=['Value amount must be a whole number for points codes'])


# ── Generation ────────────────────────────────────────────────────

def generate_code(business_id, value_type=ValueType.points, value_amount=0, reward_id=None,
                  expiry_days=None, customer_id=None, code=None, expires_at=None) -> RedemptionCode:
    """
    Create one active code. `code` lets a business pick a vanity code;
    otherwise a random one is drawn. `expires_at` overrides `expiry_days`.
    """
    _check_value(value_type, value_amount)
    _check_targets(business_id, reward_id, customer_id)

    if code:
        code = normalize_code(code)
        if _code_exists(code):
            raise ConflictError('Code already exists')
    else:
        code = _unique_code()

    row = RedemptionCode(
        code=code,
        business_id=business_id,
        reward_id=reward_id,
        customer_id=customer_id,
        value_type=ValueType(value_type),
        value_amount=value_amount or 0,
        status=CodeStatus.active,
        is_used=False,
        expires_at=expires_at or _expiry(expiry_days),
    )
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race for the same code string
        db.session.rollback()
        raise ConflictError('Code already exists')

    logger.info("Redemption code %s generated for business %s", row.code, business_id)
    return row


def bulk_generate_codes(business_id, count, value_type=ValueType.points, value_amount=0,
                        reward_id=None, expiry_days=None, customer_id=None) -> list:
    """`count` fresh codes sharing one value and expiry, written in one commit."""
    limit = _setting('REDEMPTION_CODE_BULK_LIMIT', 500)
    if not isinstance(count, int) or count < 1 or count > limit:
        raise ValidationError(errors=[f'Count must be between 1 and {limit}'])
    _check_value(value_type, value_amount)
    _check_targets(business_id, reward_id, customer_id)

    codes = set()
    for _ in range(MAX_GENERATE_ATTEMPTS):
        while len(codes) < count:
            codes.add(make_code())
        taken = {c for (c,) in db.session.query(RedemptionCode.code)
                 .filter(RedemptionCode.code.in_(codes)).all()}
        if not taken:
            break
        codes -= taken
    else:
        raise ConflictError('Could not generate unique codes, please retry')

    expires_at = _expiry(expiry_days)
    rows = [RedemptionCode(code=c, business_id=business_id, reward_id=reward_id,
                           customer_id=customer_id, value_type=ValueType(value_type),
                           value_amount=value_amount or 0, status=CodeStatus.active,
                           is_used=False, expires_at=expires_at)
            for c in sorted(codes)]
    db.session.add_all(rows)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Could not generate unique codes, please retry')

    logger.info("Generated %d redemption codes for business %s", len(rows), business_id)
    return rows


# ── Validation / redemption ───────────────────────────────────────

def _rejection(row, now=None):
    """(reason, message) when `row` can't be redeemed, else (None, None)."""
    if row is None:
        return 'not_found', 'Invalid code'
    if row.status == CodeStatus.redeemed or row.is_used:
        return 'used', 'Code has already been redeemed'
    if row.status == CodeStatus.cancelled:
        return 'cancelled', 'Code has been cancelled'
    if row.status == CodeStatus.expired or row.is_past_expiry(now):
        return 'expired', 'Code has expired'
    return None, None


def find_by_code(code, lock=False):
    query = RedemptionCode.query.filter(RedemptionCode.code == normalize_code(code))
    if lock:
        query = query.with_for_update()
    return query.first()


def validate_code(code) -> ValidationResult:
    row = with_retry(lambda: find_by_code(code))
    reason, message = _rejection(row)
    if reason:
        return ValidationResult(False, message, reason=reason)
    return ValidationResult(True, 'Code is valid', code=row)


def redeem_code(code, customer_id, business_id=None) -> RedemptionResult:
    row = find_by_code(code, lock=True)

    reason, message = _rejection(row)
    if reason is None and business_id and row.business_id != business_id:
        reason, message = 'wrong_business', 'Code is not valid for this business'
    if reason is None and row.customer_id and row.customer_id != customer_id:
        reason, message = 'wrong_customer', 'Code is assigned to another customer'
    if reason:
        db.session.rollback()    # release the row lock
        return RedemptionResult(False, message, reason=reason)

    customer = (db.session.query(Customer)
                .filter(Customer.id == customer_id)
                .with_for_update()
                .first())
    if customer is None:
        raise NotFoundError('Customer not found')

    now = utcnow()
    row.status = CodeStatus.redeemed
    row.is_used = True
    row.used_by = customer.id
    row.used_at = now
    row.updated_at = now

    if row.value_type == ValueType.points:
        customer.total_points = (customer.total_points or 0) + int(row.value_amount or 0)
        customer.updated_at = now

    if row.reward_id:
        db.session.add(Transaction(
            business_id=row.business_id,
            customer_id=customer.id,
            amount=0,
            points_earned=int(row.value_amount or 0),
            date=now,
            type=TransactionType.reward_redemption,
            notes=f'Redemption code: {row.code}',
        ))

    db.session.commit()
    logger.info("Code %s redeemed by customer %s", row.code, customer.id)
    return RedemptionResult(True, 'Code redeemed successfully', redemption=row)


def update_status(code, status, customer_id=None) -> RedemptionCode:
    """
    Move a code along its lifecycle. Redeeming goes through redeem_code()
    so the customer's balance moves with it.
    """
    try:
        target = CodeStatus(status)
    except ValueError:
        raise ValidationError(
            errors=[f"Status must be one of: {', '.join(s.value for s in CodeStatus)}"]) from None

    row = find_by_code(code, lock=True)
    if row is None:
        raise NotFoundError('Redemption code not found')
    if row.status in TERMINAL_STATUSES:
        raise ConflictError(f'Code is already {row.status.value}', code=row.to_dict())
    if target == CodeStatus.active:
        db.session.rollback()    # nothing to change; release the row lock
        return row

    if target == CodeStatus.redeemed:
        if not customer_id:
            raise ValidationError(errors=['Customer ID is required to redeem a code'])
        result = redeem_code(row.code, customer_id)
        if not result.success:
            raise ConflictError(result.message)
        return result.redemption

    row.status = target
    row.updated_at = utcnow()
    db.session.commit()
    logger.info("Code %s marked %s", row.code, target.value)
    return row


# ── Listing / housekeeping ────────────────────────────────────────

def get_business_codes(business_id, limit=20, offset=0, is_used=None, is_expired=None,
                       sort_by='created_at', sort_direction='desc'):
    """Paginated listing for the business dashboard. Returns (codes, total)."""
    if sort_by not in SORTABLE:
        raise ValidationError(errors=[f"Sort field must be one of: {', '.join(SORTABLE)}"])
    limit, offset = repo.clamp_page(limit, offset)
    now = utcnow()

    query = RedemptionCode.query.filter(RedemptionCode.business_id == business_id)
    if is_used is not None:
        query = query.filter(RedemptionCode.is_used.is_(bool(is_used)))
    past_expiry = and_(RedemptionCode.expires_at.isnot(None), RedemptionCode.expires_at < now)
    if is_expired is True:
        query = query.filter(or_(RedemptionCode.status == CodeStatus.expired,
                                 and_(RedemptionCode.status == CodeStatus.active, past_expiry)))
    elif is_expired is False:
        query = query.filter(RedemptionCode.status != CodeStatus.expired,
                             or_(RedemptionCode.status != CodeStatus.active, ~past_expiry))

    column = getattr(RedemptionCode, sort_by)
    ordering = column.asc() if str(sort_direction).lower() == 'asc' else column.desc()

    total = with_retry(query.count)
    codes = with_retry(query.order_by(ordering).limit(limit).offset(offset).all)
    return codes, total


FILTERABLE = ('business_id', 'customer_id', 'reward_id', 'status', 'code')


def find_codes(filters: dict, limit=100, offset=0) -> list:
    """
    Filter on any of FILTERABLE, newest first, with the reward's name and
    price attached. Values are bound, never spliced into SQL.
    """
    clean = {k: v for k, v in filters.items() if k in FILTERABLE and v not in (None, '')}
    if not clean:
        raise ValidationError(
            'At least one filter parameter is required '
            '(business_id, customer_id, reward_id, status, or code)')
    if 'code' in clean:
        clean['code'] = normalize_code(clean['code'])
    if 'status' in clean and clean['status'] not in [s.value for s in CodeStatus]:
        raise ValidationError(errors=['Invalid status'])
    limit, offset = repo.clamp_page(limit, offset)

    query = (db.session.query(RedemptionCode, Reward.name, Reward.points_required, Reward.description)
             .outerjoin(Reward, RedemptionCode.reward_id == Reward.id))
    for column, value in clean.items():
        query = query.filter(getattr(RedemptionCode, repo.redemption_codes.attribute(column)) == value)
    rows = with_retry(query.order_by(RedemptionCode.created_at.desc())
                      .limit(limit).offset(offset).all)
    return [dict(row.to_dict(), reward_name=name, points_required=points,
                 reward_description=description)
            for row, name, points, description in rows]


def delete_code(code_id, business_id=None) -> None:
    row = repo.redemption_codes.find_by_id(code_id)
    if row is None or (business_id and row.business_id != business_id):
        raise NotFoundError('Redemption code not found')
    db.session.delete(row)
    db.session.commit()
    logger.info("Redemption code %s deleted", row.code)


def expire_stale_codes(now=None) -> int:
    """Rewrite status for active codes past expires_at. Returns the number changed."""
    now = now or utcnow()
    changed = (RedemptionCode.query
               .filter(RedemptionCode.status == CodeStatus.active,
                       RedemptionCode.expires_at.isnot(None),
                       RedemptionCode.expires_at < now)
               .update({RedemptionCode.status: CodeStatus.expired,
                        RedemptionCode.updated_at: now},
                       synchronize_session=False))
    db.session.commit()
    if changed:
        logger.info("Expired %d stale redemption codes", changed)
    return changed
