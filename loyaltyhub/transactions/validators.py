from loyaltyhub.transactions.models import TransactionType
from loyaltyhub.utils.request_helpers import parse_datetime, parse_int, parse_number, require_fields


def validate_transaction(data: dict):
    """Returns (errors, values) for POST /api/transactions."""
    errors = require_fields(data, [
        ('business_id', 'Business ID is required'),
        ('customer_id', 'Customer ID is required'),
    ])
    values = {
        'amount':        parse_number(data.get('amount'), 'Amount', errors, minimum=0),
        'points_earned': parse_int(data.get('points_earned'), 'Points earned', errors, minimum=0),
        'date':          parse_datetime(data.get('date'), 'Date', errors),
    }

    tx_type = data.get('type') or TransactionType.purchase.value
    if tx_type not in [t.value for t in TransactionType]:
        errors.append(f"Type must be one of: {', '.join(t.value for t in TransactionType)}")
    values['type'] = tx_type

    for field in ('business_id', 'customer_id', 'program_id', 'staff_id', 'notes', 'receipt_number'):
        if data.get(field) is not None:
            values[field] = data[field]
    return errors, {k: v for k, v in values.items() if v is not None}
