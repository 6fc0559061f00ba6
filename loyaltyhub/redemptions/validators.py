"""
loyaltyhub/redemptions/validators.py
------------------------------------
Payload checks for code generation. Returns (errors, values).
"""
import re

from loyaltyhub.redemptions.models import ValueType
from loyaltyhub.utils.request_helpers import parse_datetime, parse_int, parse_number, require_fields

CODE_PATTERN = re.compile(r'^[A-Za-z0-9]{4,20}$')


def validate_generate(data: dict, bulk: bool = False):
    required = [('business_id', 'Business ID is required')]
    if bulk:
        required.append(('count', 'Count is required'))
    errors = require_fields(data, required)

    values = {
        'business_id':  data.get('business_id'),
        'reward_id':    data.get('reward_id') or None,
        'customer_id':  data.get('customer_id') or None,
        'value_amount': parse_number(data.get('value_amount'), 'Value amount', errors, minimum=0) or 0,
        'expiry_days':  parse_int(data.get('expiry_days'), 'Expiry days', errors, minimum=1),
    }

    value_type = data.get('value_type') or ValueType.points.value
    if value_type not in [v.value for v in ValueType]:
        errors.append(f"Value type must be one of: {', '.join(v.value for v in ValueType)}")
    values['value_type'] = value_type
    amount = values['value_amount']
    if value_type == ValueType.points.value and amount != int(amount):
        errors.append('Value amount must be a whole number for points codes')

    if bulk:
        values['count'] = parse_int(data.get('count'), 'Count', errors, minimum=1)
    else:
        values['expires_at'] = parse_datetime(data.get('expires_at'), 'Expires at', errors)
        if data.get('code'):
            if not CODE_PATTERN.match(str(data['code']).strip()):
                errors.append('Code must be 4-20 letters or digits')
            values['code'] = data['code']

    return errors, values
