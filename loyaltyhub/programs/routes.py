"""
loyaltyhub/programs/routes.py
-----------------------------
/api/loyalty_programs and /api/loyalty_cards
"""
from flask import current_app

from loyaltyhub.errors import ValidationError
from loyaltyhub.programs import programs
from loyaltyhub.programs import service
from loyaltyhub.programs.validators import validate_card, validate_issue_points, validate_program
from loyaltyhub.utils.request_helpers import json_body, parse_bool, query_args, success


# ── Loyalty programs ──────────────────────────────────────────────

@programs.route('/loyalty_programs', methods=['GET'])
def list_programs():
    args = query_args()
    business_id = args.get('business_id')
    if not business_id:
        raise ValidationError(errors=['Business ID is required'])

    rows = service.get_business_programs(
        business_id, include_inactive=parse_bool(args.get('include_inactive'), default=True))
    return success(programs=[p.to_dict() for p in rows])


@programs.route('/loyalty_programs', methods=['POST'])
def create_program():
    data = json_body()
    errors, values = validate_program(data)
    if errors:
        raise ValidationError(errors=errors)

    program = service.create_program(data['business_id'], values)
    current_app.logger.info("Program %s created via API", program.id)
    return success(201, message='Loyalty program created successfully', program=program.to_dict())


@programs.route('/loyalty_programs', methods=['PUT'])
def update_program():
    data = json_body()
    program_id = query_args().get('id') or data.get('id')
    if not program_id:
        raise ValidationError(errors=['Program ID is required'])

    errors, values = validate_program(data, partial=True)
    if errors:
        raise ValidationError(errors=errors)

    program = service.update_program(program_id, values)
    return success(message='Loyalty program updated successfully', program=program.to_dict())


@programs.route('/loyalty_programs', methods=['DELETE'])
def delete_program():
    program_id = query_args().get('id')
    if not program_id:
        raise ValidationError(errors=['Program ID is required'])
    service.delete_program(program_id)
    return success(message='Loyalty program deleted successfully')


# ── Loyalty cards ─────────────────────────────────────────────────

@programs.route('/loyalty_cards', methods=['GET'])
def list_cards():
    args = query_args()
    if args.get('customer_id'):
        return success(cards=service.get_customer_cards(args['customer_id']))
    if args.get('business_id'):
        return success(cards=service.get_business_cards(args['business_id']))
    raise ValidationError(errors=['Customer ID or Business ID is required'])


@programs.route('/loyalty_cards', methods=['POST'])
def create_card():
    errors, values = validate_card(json_body())
    if errors:
        raise ValidationError(errors=errors)
    card = service.create_card(values)
    return success(201, message='Loyalty card created successfully', card=card.to_dict())


@programs.route('/loyalty_cards/issue_points', methods=['POST'])
def issue_points():
    data = json_body()
    errors, points = validate_issue_points(data)
    if errors:
        raise ValidationError(errors=errors)
    card = service.issue_points(data['customer_id'], data['program_id'], points)
    return success(message=f'{points} points issued', card=card.to_dict())
