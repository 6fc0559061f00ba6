"""
loyaltyhub/transactions/routes.py
---------------------------------
/api/transactions
"""
from flask import session

from loyaltyhub.errors import ValidationError
from loyaltyhub.transactions import service, transactions
from loyaltyhub.transactions.models import TransactionType
from loyaltyhub.transactions.validators import validate_transaction
from loyaltyhub.utils.request_helpers import json_body, query_args, success


@transactions.route('/transactions', methods=['GET'])
def list_transactions():
    args = query_args()
    if not args.get('business_id') and not args.get('customer_id'):
        raise ValidationError(errors=['Business ID or Customer ID is required'])
    if args.get('type') and args['type'] not in [t.value for t in TransactionType]:
        raise ValidationError(errors=['Invalid transaction type'])

    rows, total = service.list_transactions(
        business_id=args.get('business_id'),
        customer_id=args.get('customer_id'),
        type=args.get('type'),
        limit=args.get('limit', 50),
        offset=args.get('offset', 0),
        sort_by=args.get('sort_by', 'date'),
        direction=args.get('sort_direction', 'desc'),
    )
    return success(transactions=[t.to_dict() for t in rows], total=total)


@transactions.route('/transactions/<transaction_id>', methods=['GET'])
def get_transaction(transaction_id):
    return success(transaction=service.get_transaction(transaction_id).to_dict())


@transactions.route('/transactions', methods=['POST'])
def create_transaction():
    errors, values = validate_transaction(json_body())
    if errors:
        raise ValidationError(errors=errors)
    tx = service.record_transaction(values, staff_id=session.get('user_id'))
    return success(201, message='Transaction recorded successfully', transaction=tx.to_dict())
