from loyaltyhub.utils.request_helpers import parse_date, parse_int, require_fields

TEXT_FIELDS = ('first_name', 'last_name', 'email', 'phone', 'address', 'notes')


def validate_customer(data: dict, partial: bool = False):
    """Returns (errors, values). `partial` is the PUT form: nothing is required."""
    errors = []
    if not partial:
        errors = require_fields(data, [
            ('business_id', 'Business ID is required'),
            ('first_name', 'First name is required'),
            ('last_name', 'Last name is required'),
        ])

    values = {}
    for field in TEXT_FIELDS:
        if field not in data or data[field] is None:
            continue
        if not isinstance(data[field], str):
            errors.append(f"{field.replace('_', ' ').capitalize()} must be a string")
            continue
        values[field] = data[field].strip()
    if values.get('email'):
        values['email'] = values['email'].lower()

    if data.get('birthday') is not None:
        values['birthday'] = parse_date(data['birthday'], 'Birthday', errors)
    if data.get('total_points') is not None:
        values['total_points'] = parse_int(data['total_points'], 'Total points', errors, minimum=0)
    if not partial and data.get('business_id'):
        values['business_id'] = data['business_id']
    return errors, {k: v for k, v in values.items() if v is not None}
