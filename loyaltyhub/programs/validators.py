"""
loyaltyhub/programs/validators.py
---------------------------------
Validation for loyalty program and loyalty card payloads.
Each function returns (errors, values): a list of messages (empty when
valid) and the payload coerced to column types.
"""
from loyaltyhub.programs.models import ProgramType
from loyaltyhub.utils.request_helpers import (
    parse_bool, parse_date, parse_int, parse_number, require_fields,
)


def validate_program(data: dict, partial: bool = False):
    """
    partial=True is the PUT path: nothing is required and absent fields
    stay absent (the caller keeps the stored value).
    """
    errors = [] if partial else require_fields(data, [
        ('name', 'Program name is required'),
        ('business_id', 'Business ID is required'),
    ])
    values = {}

    if data.get('name') is not None:
        name = str(data['name']).strip()
        if partial and not name:
            errors.append('Program name cannot be empty')
        elif len(name) > 255:
            errors.append('Program name must be 255 characters or fewer')
        values['name'] = name

    if data.get('type') is not None:
        if data['type'] not in [t.value for t in ProgramType]:
            errors.append(f"Program type must be one of: {', '.join(t.value for t in ProgramType)}")
        else:
            values['type'] = data['type']

    values['points_per_purchase'] = parse_number(
        data.get('points_per_purchase'), 'Points per purchase', errors, minimum=0)
    values['points_per_referral'] = parse_int(
        data.get('points_per_referral'), 'Points per referral', errors, minimum=0)
    values['points_expiry_days'] = parse_int(
        data.get('points_expiry_days'), 'Points expiry days', errors, minimum=1)
    values['start_date'] = parse_date(data.get('start_date'), 'Start date', errors)
    values['end_date'] = parse_date(data.get('end_date'), 'End date', errors)
    values['is_active'] = parse_bool(data.get('is_active'))

    if values['start_date'] and values['end_date'] and values['end_date'] < values['start_date']:
        errors.append('End date must be on or after the start date')

    tiers = data.get('tiers')
    if tiers is not None:
        if not isinstance(tiers, list) or not all(isinstance(t, dict) and t.get('name') for t in tiers):
            errors.append('Tiers must be a list of {name, min_points} objects')
        else:
            values['tiers'] = tiers

    rules = data.get('rules')
    if rules is not None:
        if not isinstance(rules, (dict, list)):
            errors.append('Rules must be a JSON object')
        else:
            values['rules'] = rules

    if data.get('description') is not None:
        values['description'] = data['description']

    # PUT: None means "keep the stored value"
    values = {k: v for k, v in values.items() if v is not None}
    return errors, values


def validate_card(data: dict):
    errors = require_fields(data, [
        ('customer_id', 'Customer ID is required'),
        ('business_id', 'Business ID is required'),
    ])
    values = {
        'points_balance': parse_int(data.get('points_balance'), 'Points balance', errors, minimum=0),
        'punch_count':    parse_int(data.get('punch_count'), 'Punch count', errors, minimum=0),
        'is_active':      parse_bool(data.get('is_active')),
    }
    for field in ('customer_id', 'business_id', 'program_id', 'card_number', 'tier'):
        if data.get(field) is not None:
            values[field] = data[field]
    return errors, {k: v for k, v in values.items() if v is not None}


def validate_issue_points(data: dict):
    errors = require_fields(data, [
        ('customer_id', 'Customer ID is required'),
        ('program_id', 'Program ID is required'),
        ('points', 'Points are required'),
    ])
    points = parse_int(data.get('points'), 'Points', errors, minimum=1)
    return errors, points
