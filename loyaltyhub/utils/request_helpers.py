"""
loyaltyhub/utils/request_helpers.py
-----------------------------------
Small helpers shared by every blueprint: reading JSON bodies and query
strings, coercing scalars, and building the response envelope.
"""
from datetime import datetime, date

from flask import jsonify, request

from loyaltyhub.errors import ValidationError
from loyaltyhub.utils.model_helpers import to_naive_utc

# camelCase spellings the original frontend sends → column names
FIELD_ALIASES = {
    'businessId':    'business_id',
    'customerId':    'customer_id',
    'programId':     'program_id',
    'rewardId':      'reward_id',
    'codeType':      'code_type',
    'linkUrl':       'link_url',
    'uniqueScanner': 'unique_scanner',
    'firstName':     'first_name',
    'lastName':      'last_name',
    'businessName':  'business_name',
    'phoneNumber':   'phone',
    'valueType':     'value_type',
    'valueAmount':   'value_amount',
    'expiryDays':    'expiry_days',
    'expiresAt':     'expires_at',
    'pointsRequired': 'points_required',
    'pointsEarned':  'points_earned',
    'isActive':      'is_active',
    'settingsKey':   'settings_key',
    'settingsValue': 'settings_value',
    'staffId':       'staff_id',
    'receiptNumber': 'receipt_number',
    'currentPassword': 'current_password',
    'newPassword':   'new_password',
    'sortBy':        'sort_by',
    'sortDirection': 'sort_direction',
    'totalPoints':   'total_points',
}


def normalize_keys(data: dict) -> dict:
    """Rename camelCase aliases; an explicit snake_case key always wins."""
    out = {}
    for key, value in data.items():
        target = FIELD_ALIASES.get(key, key)
        if target != key and target in data:
            continue
        out[target] = value
    return out


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return normalize_keys(data)


def query_args() -> dict:
    return normalize_keys(request.args.to_dict())


def success(status=200, **payload):
    body = {'success': True}
    body.update(payload)
    return jsonify(body), status


# ── Coercion ──────────────────────────────────────────────────────

def parse_bool(value, default=None):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('1', 'true', 'yes', 'on'):
        return True
    if text in ('0', 'false', 'no', 'off'):
        return False
    return default


def parse_int(value, field, errors, minimum=None):
    """Append a message to `errors` and return None when value isn't an int."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        errors.append(f'{field} must be a whole number')
        return None
    try:
        number = int(value)
        if isinstance(value, float) and value != number:
            raise ValueError
    except (TypeError, ValueError):
        errors.append(f'{field} must be a whole number')
        return None
    if minimum is not None and number < minimum:
        errors.append(f'{field} must be at least {minimum}')
        return None
    return number


def parse_number(value, field, errors, minimum=None):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        errors.append(f'{field} must be a number')
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f'{field} must be a number')
        return None
    if minimum is not None and number < minimum:
        errors.append(f'{field} must be at least {minimum}')
        return None
    return number


def parse_datetime(value, field, errors):
    """ISO-8601 string → naive UTC datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    try:
        text = str(value).replace('Z', '+00:00')
        return to_naive_utc(datetime.fromisoformat(text))
    except ValueError:
        errors.append(f'{field} must be an ISO-8601 date/time')
        return None


def parse_date(value, field, errors):
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        errors.append(f'{field} must be a YYYY-MM-DD date')
        return None


def require_fields(data: dict, required) -> list:
    """
    required: iterable of (field, message). Returns one message per field
    that is absent, None, or a blank string.
    """
    errors = []
    for field, message in required:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(message)
    return errors


def failure(status, message, **payload):
    """Error envelope for refusals that aren't exceptions (a redeem that didn't go through)."""
    body = {'success': False, 'message': message}
    body.update(payload)
    return jsonify(body), status
