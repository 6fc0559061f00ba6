"""
loyaltyhub/rewards/routes.py
----------------------------
/api/rewards
"""
from flask import session

from loyaltyhub.errors import ValidationError
from loyaltyhub.rewards import rewards
from loyaltyhub.rewards import service
from loyaltyhub.rewards.validators import validate_reward
from loyaltyhub.utils.request_helpers import (
    json_body, parse_bool, query_args, require_fields, success,
)


@rewards.route('/rewards', methods=['GET'])
def list_rewards():
    args = query_args()
    if args.get('program_id') and not args.get('business_id'):
        rows = service.get_program_rewards(args['program_id'])
    elif args.get('business_id'):
        rows = service.get_business_rewards(
            args['business_id'],
            program_id=args.get('program_id'),
            include_inactive=parse_bool(args.get('include_inactive'), default=False),
        )
    else:
        raise ValidationError(errors=['Business ID or Program ID is required'])
    return success(rewards=[r.to_dict() for r in rows])


@rewards.route('/rewards', methods=['POST'])
def create_reward():
    errors, values = validate_reward(json_body())
    if errors:
        raise ValidationError(errors=errors)
    reward = service.create_reward(values)
    return success(201, message='Reward created successfully', reward=reward.to_dict())


@rewards.route('/rewards', methods=['PUT'])
def update_reward():
    data = json_body()
    reward_id = query_args().get('id') or data.get('id')
    if not reward_id:
        raise ValidationError(errors=['Reward ID is required'])
    errors, values = validate_reward(data, partial=True)
    if errors:
        raise ValidationError(errors=errors)
    reward = service.update_reward(reward_id, values)
    return success(message='Reward updated successfully', reward=reward.to_dict())


@rewards.route('/rewards', methods=['DELETE'])
def delete_reward():
    reward_id = query_args().get('id')
    if not reward_id:
        raise ValidationError(errors=['Reward ID is required'])
    service.delete_reward(reward_id)
    return success(message='Reward deleted successfully')


@rewards.route('/rewards/eligibility', methods=['GET'])
def eligibility():
    args = query_args()
    missing = require_fields(args, [
        ('customer_id', 'Customer ID is required'),
        ('reward_id', 'Reward ID is required'),
    ])
    if missing:
        raise ValidationError(errors=missing)
    return success(**service.check_reward_eligibility(args['customer_id'], args['reward_id']))


@rewards.route('/rewards/redeem', methods=['POST'])
def redeem_reward():
    data = json_body()
    errors = require_fields(data, [
        ('customer_id', 'Customer ID is required'),
        ('reward_id', 'Reward ID is required'),
    ])
    if errors:
        raise ValidationError(errors=errors)
    tx = service.redeem_reward(data['customer_id'], data['reward_id'], staff_id=session.get('user_id'))
    return success(message='Reward redeemed successfully', transaction=tx.to_dict())
