"""
loyaltyhub/redemptions/routes.py
--------------------------------
/api/redemption_codes
"""
from flask import current_app

from loyaltyhub.errors import ValidationError
from loyaltyhub.redemptions import redemptions
from loyaltyhub.redemptions import service
from loyaltyhub.redemptions.validators import validate_generate
from loyaltyhub.utils.request_helpers import (
    failure, json_body, parse_bool, query_args, require_fields, success,
)

# RedemptionResult.reason → HTTP status
REDEEM_FAILURE_STATUS = {
    'not_found': 404,
    'wrong_business': 403,
    'wrong_customer': 403,
    'used': 409,
    'expired': 409,
    'cancelled': 409,
}


@redemptions.route('/redemption_codes', methods=['GET'])
def list_codes():
    args = query_args()
    codes = service.find_codes(args, limit=args.get('limit', 100), offset=args.get('offset', 0))
    return success(redemption_codes=codes)


@redemptions.route('/redemption_codes', methods=['POST'])
def create_code():
    errors, values = validate_generate(json_body())
    if errors:
        raise ValidationError(errors=errors)
    row = service.generate_code(**values)
    return success(201, message='Redemption code created successfully', redemption_code=row.to_dict())


@redemptions.route('/redemption_codes/bulk', methods=['POST'])
def bulk_create():
    errors, values = validate_generate(json_body(), bulk=True)
    if errors:
        raise ValidationError(errors=errors)
    rows = service.bulk_generate_codes(**values)
    return success(201, message=f'{len(rows)} redemption codes created',
                   redemption_codes=[r.to_dict() for r in rows])


@redemptions.route('/redemption_codes', methods=['PUT'])
def update_code():
    data = json_body()
    errors = require_fields(data, [('code', 'Code is required'), ('status', 'Status is required')])
    if errors:
        raise ValidationError(errors=errors)
    row = service.update_status(data['code'], data['status'], customer_id=data.get('customer_id'))
    return success(message='Redemption code updated successfully', redemption_code=row.to_dict())


@redemptions.route('/redemption_codes/validate', methods=['POST'])
def validate():
    data = json_body()
    if not data.get('code'):
        raise ValidationError(errors=['Code is required'])
    result = service.validate_code(data['code'])
    return success(**result.to_dict())


@redemptions.route('/redemption_codes/redeem', methods=['POST'])
def redeem():
    data = json_body()
    errors = require_fields(data, [('code', 'Code is required'),
                                   ('customer_id', 'Customer ID is required')])
    if errors:
        raise ValidationError(errors=errors)

    result = service.redeem_code(data['code'], data['customer_id'], business_id=data.get('business_id'))
    if not result.success:
        current_app.logger.info("Redeem of %s refused: %s", data['code'], result.reason)
        return failure(REDEEM_FAILURE_STATUS.get(result.reason, 400), result.message)
    return success(message=result.message, redemption=result.redemption.to_dict())


@redemptions.route('/redemption_codes/business/<business_id>', methods=['GET'])
def business_codes(business_id):
    args = query_args()
    codes, total = service.get_business_codes(
        business_id,
        limit=args.get('limit', 20),
        offset=args.get('offset', 0),
        is_used=parse_bool(args.get('is_used')),
        is_expired=parse_bool(args.get('is_expired')),
        sort_by=args.get('sort_by', 'created_at'),
        sort_direction=args.get('sort_direction', 'desc'),
    )
    return success(redemption_codes=[c.to_dict() for c in codes], total=total)


@redemptions.route('/redemption_codes', methods=['DELETE'])
def delete_code():
    args = query_args()
    if not args.get('id'):
        raise ValidationError(errors=['Code ID is required'])
    service.delete_code(args['id'], business_id=args.get('business_id'))
    return success(message='Redemption code deleted successfully')
