"""
loyaltyhub/customers/routes.py
------------------------------
/api/customers
"""
from flask import current_app

from loyaltyhub.customers import customers
from loyaltyhub.customers import service
from loyaltyhub.customers.validators import validate_customer
from loyaltyhub.errors import ValidationError
from loyaltyhub.repository import clamp_page
from loyaltyhub.utils.request_helpers import json_body, query_args, success


@customers.route('/customers', methods=['GET'])
def list_customers():
    args = query_args()
    if not args.get('business_id'):
        raise ValidationError(errors=['Business ID is required'])

    limit, offset = clamp_page(args.get('limit', 20), args.get('offset', 0))
    rows, total = service.list_customers(
        args['business_id'],
        search=args.get('search'),
        limit=limit,
        offset=offset,
        sort_by=args.get('sort_by', 'sign_up_date'),
        direction=args.get('sort_direction', 'desc'),
    )
    return success(customers=rows, total=total,
                   page={'limit': limit, 'offset': offset, 'total': total})


@customers.route('/customers/<customer_id>', methods=['GET'])
def get_customer(customer_id):
    return success(**service.get_customer_detail(customer_id))


@customers.route('/customers', methods=['POST'])
def create_customer():
    errors, values = validate_customer(json_body())
    if errors:
        raise ValidationError(errors=errors)

    customer = service.create_customer(values)
    current_app.logger.info("Customer %s enrolled via API", customer.id)
    return success(201, message='Customer created successfully', customer=customer.to_dict())


@customers.route('/customers/<customer_id>', methods=['PUT'])
def update_customer(customer_id):
    errors, values = validate_customer(json_body(), partial=True)
    if errors:
        raise ValidationError(errors=errors)
    customer = service.update_customer(customer_id, values)
    return success(message='Customer updated successfully', customer=customer.to_dict())


@customers.route('/customers/<customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    service.delete_customer(customer_id)
    return success(message='Customer deleted successfully')
