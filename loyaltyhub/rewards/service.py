"""
loyaltyhub/rewards/service.py
-----------------------------
Reward catalogue and the eligibility check the customer portal runs
before offering a reward.
"""
import logging

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import ConflictError, NotFoundError, ValidationError
from loyaltyhub.programs import service as programs_service
from loyaltyhub.redemptions.models import RedemptionCode
from loyaltyhub.repository import with_retry
from loyaltyhub.rewards.models import Reward
from loyaltyhub.transactions.models import Transaction, TransactionType
from loyaltyhub.utils.model_helpers import utcnow

logger = logging.getLogger(__name__)


def get_business_rewards(business_id, program_id=None, include_inactive=False):
    query = Reward.query.filter(Reward.business_id == business_id)
    if program_id:
        query = query.filter(Reward.program_id == program_id)
    if not include_inactive:
        query = query.filter(Reward.is_active.is_(True))
    return with_retry(query.order_by(Reward.points_required.asc()).all)


def get_program_rewards(program_id):
    query = Reward.query.filter(Reward.program_id == program_id, Reward.is_active.is_(True))
    return with_retry(query.order_by(Reward.points_required.asc()).all)


def _check_program(program_id, business_id):
    program = repo.programs.get_or_404(program_id, 'Loyalty program not found')
    if program.business_id != business_id:
        raise ValidationError(errors=['Program does not belong to this business'])


def create_reward(values: dict) -> Reward:
    repo.businesses.get_or_404(values.get('business_id'), 'Business not found')
    if values.get('program_id'):
        _check_program(values['program_id'], values['business_id'])
    reward = repo.rewards.create(values)
    logger.info("Reward %s created for business %s", reward.id, reward.business_id)
    return reward


def update_reward(reward_id, values: dict) -> Reward:
    if not values:
        return repo.rewards.get_or_404(reward_id, 'Reward not found')
    if values.get('program_id'):
        current = repo.rewards.get_or_404(reward_id, 'Reward not found')
        _check_program(values['program_id'], current.business_id)
    reward = repo.rewards.update(reward_id, values)
    if reward is None:
        raise NotFoundError('Reward not found')
    return reward


def delete_reward(reward_id) -> None:
    """Codes that pointed at the reward keep their value but lose the link."""
    reward = repo.rewards.get_or_404(reward_id, 'Reward not found')
    RedemptionCode.query.filter(RedemptionCode.reward_id == reward.id) \
        .update({RedemptionCode.reward_id: None}, synchronize_session=False)
    db.session.delete(reward)
    db.session.commit()
    logger.info("Reward %s deleted", reward_id)


def is_available(reward, now=None) -> bool:
    now = now or utcnow()
    return bool(reward.is_active) \
        and (reward.valid_from is None or reward.valid_from <= now) \
        and (reward.valid_until is None or reward.valid_until >= now)


def check_reward_eligibility(customer_id, reward_id) -> dict:
    """
    Compare the customer's balance with the reward's price. The balance is
    the card for the reward's program when there is one, else the
    customer's total_points.
    """
    reward = repo.rewards.get_or_404(reward_id, 'Reward not found')
    customer = repo.customers.get_or_404(customer_id, 'Customer not found')

    current_points = customer.total_points or 0
    if reward.program_id:
        card = programs_service.get_customer_card(customer.id, reward.program_id)
        current_points = card.points_balance if card else 0

    eligible = is_available(reward) and current_points >= reward.points_required

    return {
        'eligible': eligible,
        'reward': reward.to_dict(),
        'current_points': current_points,
        'points_needed': max(0, reward.points_required - current_points),
    }


def redeem_reward(customer_id, reward_id, staff_id=None) -> Transaction:
    """
    Spend points on a reward. The balance rows are locked before the
    check so two concurrent redemptions can't both spend the same points.
    """
    reward = repo.rewards.get_or_404(reward_id, 'Reward not found')
    customer = (db.session.query(Customer)
                .filter(Customer.id == customer_id)
                .with_for_update()
                .first())
    if customer is None:
        raise NotFoundError('Customer not found')

    card = None
    balance = customer.total_points or 0
    if reward.program_id:
        card = programs_service.get_customer_card(customer.id, reward.program_id, lock=True)
        balance = card.points_balance if card else 0

    if not is_available(reward):
        raise ConflictError('Reward is not currently available')
    if balance < reward.points_required:
        raise ConflictError('Not enough points for this reward',
                            current_points=balance,
                            points_needed=reward.points_required - balance)

    cost = reward.points_required
    if card is not None:
        card.points_balance = balance - cost
        if card.program is not None:
            card.tier = card.program.tier_for(card.points_balance)
    customer.total_points = max(0, (customer.total_points or 0) - cost)

    tx = Transaction(
        business_id=reward.business_id,
        customer_id=customer.id,
        program_id=reward.program_id,
        staff_id=staff_id,
        amount=0,
        points_earned=-cost,
        date=utcnow(),
        type=TransactionType.reward_redemption,
        notes=f'Redeemed reward: {reward.name}',
    )
    db.session.add(tx)
    db.session.commit()
    logger.info("Customer %s redeemed reward %s for %d points", customer.id, reward.id, cost)
    return tx
