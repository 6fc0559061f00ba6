"""
loyaltyhub/auth/service.py
--------------------------
Accounts: password hashing, registration, login, profile.

Passwords are stored as Werkzeug hashes (scrypt, random per-user salt).
Accounts migrated from the Node service still carry a bare SHA-256 hex
digest; those verify once and are rehashed on the spot.
"""
import hashlib
import hmac
import logging
import re

from flask import current_app, has_app_context, session
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.auth.models import BUSINESS_ROLES, RoleEnum, User
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

LEGACY_SHA256 = re.compile(r'^[0-9a-f]{64}$')
REGISTRABLE_ROLES = (RoleEnum.customer, RoleEnum.manager, RoleEnum.staff)
PROFILE_FIELDS = ('first_name', 'last_name')


def _setting(name, default):
    return current_app.config.get(name, default) if has_app_context() else default


# ── Passwords ─────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return generate_password_hash(password, method=_setting('PASSWORD_HASH_METHOD', 'scrypt'))


def is_legacy_hash(stored) -> bool:
    return bool(stored) and LEGACY_SHA256.match(stored) is not None


def verify_password(password, stored) -> bool:
    if not stored or not isinstance(password, str):
        return False
    if is_legacy_hash(stored):
        digest = hashlib.sha256(password.encode('utf-8')).hexdigest()
        return hmac.compare_digest(digest, stored)
    return check_password_hash(stored, password)


def _check_password_strength(password, errors):
    minimum = _setting('PASSWORD_MIN_LENGTH', 6)
    if isinstance(password, str) and password and len(password) < minimum:
        errors.append(f'Password must be at least {minimum} characters')


def normalize_email(email) -> str:
    return str(email or '').strip().lower()


def _check_text_fields(fields: dict, errors):
    """Fields that must be strings when present: JSON lets clients send numbers."""
    for label, value in fields.items():
        if value is not None and not isinstance(value, str):
            errors.append(f'{label} must be a string')


# ── Users ─────────────────────────────────────────────────────────

def get_user_by_email(email):
    return repo.users.find_one({'email': normalize_email(email)})


def get_users_by_role(role):
    return repo.users.find_all({'role': RoleEnum(role).value}, order_by='email', direction='asc')


def get_business_staff(business_id):
    return (User.query
            .filter(User.business_id == business_id, User.role.in_(BUSINESS_ROLES))
            .order_by(User.email)
            .all())


def update_user(user_id, values: dict) -> User:
    values = {k: v for k, v in values.items() if k in PROFILE_FIELDS and v is not None}
    if not values:
        return repo.users.get_or_404(user_id, 'User not found')
    user = repo.users.update(user_id, values)
    if user is None:
        raise NotFoundError('User not found')
    return user


def current_user():
    user_id = session.get('user_id')
    return repo.users.find_by_id(user_id) if user_id else None


def user_profile(user: User) -> dict:
    customer = Customer.query.filter_by(user_id=user.id).first()
    return {
        'id': user.id,
        'email': user.email,
        'role': RoleEnum(user.role).value,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'business_id': user.business_id,
        'customer_id': customer.id if customer else None,
        'display_name': user.display_name,
    }


# ── Registration / login ──────────────────────────────────────────

def register_user(email, password, role='customer', first_name=None, last_name=None,
                  business_name=None, phone=None, address=None, business_id=None) -> User:
    """
    Create the account and whatever hangs off it in one transaction:

        manager/staff → Business, then User (manager becomes the owner)
        customer      → User, then Customer (linked to `business_id` when given)
    """
    errors = []
    _check_text_fields({'Email': email, 'Password': password, 'First name': first_name,
                        'Last name': last_name, 'Business name': business_name}, errors)
    if errors:
        raise ValidationError(errors=errors)

    email = normalize_email(email)
    if not email:
        errors.append('Email is required')
    if not password:
        errors.append('Password is required')
    _check_password_strength(password, errors)
    if role not in [r.value for r in REGISTRABLE_ROLES]:
        errors.append(f"Role must be one of: {', '.join(r.value for r in REGISTRABLE_ROLES)}")
    elif RoleEnum(role) in BUSINESS_ROLES and not (business_name and business_name.strip()):
        errors.append('Business name is required for business accounts')
    if errors:
        raise ValidationError(errors=errors)
    role = RoleEnum(role)

    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError('User with this email already exists')
    if role == RoleEnum.customer and business_id:
        repo.businesses.get_or_404(business_id, 'Business not found')

    try:
        business = None
        if role in BUSINESS_ROLES:
            business = Business(name=business_name.strip(), email=email, phone=phone, address=address)
            db.session.add(business)
            db.session.flush()

        user = User(email=email, first_name=first_name, last_name=last_name, role=role,
                    business_id=business.id if business else None)
        user.set_password(password, method=_setting('PASSWORD_HASH_METHOD', 'scrypt'))
        db.session.add(user)
        db.session.flush()

        if role == RoleEnum.customer:
            db.session.add(Customer(user_id=user.id, business_id=business_id or None,
                                    first_name=first_name, last_name=last_name,
                                    email=email, phone=phone, address=address))
        elif role == RoleEnum.manager:
            business.owner_id = user.id

        db.session.commit()
    except IntegrityError:
        # The unique index on email caught a concurrent registration
        db.session.rollback()
        raise ConflictError('User with this email already exists')

    logger.info("Registered %s account %s", role.value, email)
    return user


def authenticate_user(email, password):
    """The matching user, or None. Upgrades legacy SHA-256 hashes in place."""
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", normalize_email(email))
        return None

    if is_legacy_hash(user.password_hash):
        user.set_password(password, method=_setting('PASSWORD_HASH_METHOD', 'scrypt'))
        db.session.commit()
        logger.info("Upgraded legacy password hash for %s", user.email)
    return user


def change_password(user_id, current_password, new_password) -> None:
    errors = []
    _check_text_fields({'Current password': current_password, 'New password': new_password}, errors)
    if errors:
        raise ValidationError(errors=errors)
    if not current_password or not new_password:
        errors.append('Current password and new password are required')
    _check_password_strength(new_password, errors)
    if errors:
        raise ValidationError(errors=errors)

    user = repo.users.get_or_404(user_id, 'User not found')
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError('Current password is incorrect')
    user.set_password(new_password, method=_setting('PASSWORD_HASH_METHOD', 'scrypt'))
    db.session.commit()
    logger.info("Password changed for %s", user.email)
