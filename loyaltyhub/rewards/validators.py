"""
loyaltyhub/rewards/validators.py
--------------------------------
Reward payload validation. Returns (errors, values) like the program validators.
"""
from loyaltyhub.utils.request_helpers import parse_bool, parse_datetime, parse_int, require_fields


def validate_reward(data: dict, partial: bool = False):
    errors = [] if partial else require_fields(data, [
        ('business_id', 'Business ID is required'),
        ('name', 'Reward name is required'),
        ('points_required', 'Points required is required'),
    ])
    values = {
        'points_required':  parse_int(data.get('points_required'), 'Points required', errors, minimum=0),
        'redemption_limit': parse_int(data.get('redemption_limit'), 'Redemption limit', errors, minimum=1),
        'valid_from':       parse_datetime(data.get('valid_from'), 'Valid from', errors),
        'valid_until':      parse_datetime(data.get('valid_until'), 'Valid until', errors),
        'is_active':        parse_bool(data.get('is_active')),
    }
    if values['valid_from'] and values['valid_until'] and values['valid_until'] < values['valid_from']:
        errors.append('Valid until must be after valid from')

    for field in ('name', 'description', 'image_url', 'program_id'):
        if data.get(field) is not None:
            values[field] = data[field].strip() if isinstance(data[field], str) else data[field]
    if partial and values.get('name') == '':
        errors.append('Reward name cannot be empty')
    if not partial:
        values['business_id'] = data.get('business_id')

    return errors, {k: v for k, v in values.items() if v is not None}
