"""
loyaltyhub/programs/service.py
------------------------------
Loyalty programs and the cards that hold each customer's balance.
"""
import logging
import secrets

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import ConflictError, NotFoundError, ValidationError
from loyaltyhub.programs.models import LoyaltyCard, LoyaltyProgram, ProgramType
from loyaltyhub.repository import with_retry
from loyaltyhub.rewards.models import Reward
from loyaltyhub.transactions.models import Transaction

logger = logging.getLogger(__name__)


# ── Programs ──────────────────────────────────────────────────────

def get_business_programs(business_id, include_inactive=True):
    query = LoyaltyProgram.query.filter(LoyaltyProgram.business_id == business_id)
    if not include_inactive:
        query = query.filter(LoyaltyProgram.is_active.is_(True))
    return with_retry(query.order_by(LoyaltyProgram.name).all)


def create_program(business_id, values: dict) -> LoyaltyProgram:
    """
    Create the business's loyalty program.

    One program per business is a business rule, not a DB constraint.
    Locking the business row (SELECT … FOR UPDATE, a no-op on SQLite)
    serialises concurrent creates so the existence check can't race.
    """
    business = db.session.query(Business).filter(Business.id == business_id).with_for_update().first()
    if business is None:
        raise NotFoundError('Business not found')

    existing = LoyaltyProgram.query.filter_by(business_id=business_id).first()
    if existing is not None:
        raise ConflictError(
            'A loyalty program already exists for this business. Use PUT to update.',
            program=existing.to_dict(),
        )

    program = repo.programs.create(dict(values, business_id=business_id))
    logger.info("Loyalty program %s created for business %s", program.id, business_id)
    return program


def update_program(program_id, values: dict) -> LoyaltyProgram:
    """Partial update: fields missing from `values` keep their stored value."""
    if not values:
        return repo.programs.get_or_404(program_id, 'Loyalty program not found')
    program = repo.programs.update(program_id, values)
    if program is None:
        raise NotFoundError('Loyalty program not found')
    return program


def delete_program(program_id) -> None:
    """Delete a program. Rewards, cards and transactions keep their rows, unlinked."""
    program = repo.programs.get_or_404(program_id, 'Loyalty program not found')
    for model in (Reward, LoyaltyCard, Transaction):
        model.query.filter(model.program_id == program.id) \
            .update({model.program_id: None}, synchronize_session=False)
    db.session.delete(program)
    db.session.commit()
    logger.info("Loyalty program %s deleted", program_id)


# ── Cards ─────────────────────────────────────────────────────────

def get_customer_card(customer_id, program_id, lock=False):
    query = LoyaltyCard.query.filter_by(customer_id=customer_id, program_id=program_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def get_business_card(customer_id, business_id, lock=False):
    query = LoyaltyCard.query.filter_by(customer_id=customer_id, business_id=business_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def issue_points(customer_id, program_id, points: int, commit=True) -> LoyaltyCard:
    """
    Credit `points` to the customer's card for `program_id`, creating the
    card on first use. The customer's total_points moves by the same amount.
    Negative `points` debit, never below zero.
    """
    program = repo.programs.get_or_404(program_id, 'Loyalty program not found')
    customer = (db.session.query(Customer)
                .filter(Customer.id == customer_id)
                .with_for_update()
                .first())
    if customer is None:
        raise NotFoundError('Customer not found')

    card = get_customer_card(customer_id, program_id, lock=True)
    if card is None:
        # One card per customer per business: a card issued without a
        # program (or for a deleted one) is adopted by this program
        card = get_business_card(customer_id, program.business_id, lock=True)
        if card is not None:
            card.program_id = program.id
    if card is None:
        card = LoyaltyCard(
            business_id=program.business_id,
            customer_id=customer_id,
            program_id=program_id,
            card_number=new_card_number(),
            points_balance=max(0, points),
            punch_count=1 if program.type == ProgramType.punchcard else None,
        )
        db.session.add(card)
    else:
        card.points_balance = max(0, (card.points_balance or 0) + points)
        if program.type == ProgramType.punchcard and points > 0:
            card.punch_count = (card.punch_count or 0) + 1

    card.tier = program.tier_for(card.points_balance)
    customer.total_points = max(0, (customer.total_points or 0) + points)

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    logger.info("Issued %d points to customer %s on program %s", points, customer_id, program_id)
    return card


def new_card_number() -> str:
    return f'CARD-{secrets.token_hex(5).upper()}'


def create_card(values: dict) -> LoyaltyCard:
    """
    One card per customer per business. Without an explicit program_id the
    card is attached to the business's program, when it has one.
    """
    repo.businesses.get_or_404(values['business_id'], 'Business not found')
    repo.customers.get_or_404(values['customer_id'], 'Customer not found')

    existing = get_business_card(values['customer_id'], values['business_id'])
    if existing is not None:
        raise ConflictError('A loyalty card already exists for this customer and business',
                            card=existing.to_dict())

    if values.get('program_id'):
        program = repo.programs.get_or_404(values['program_id'], 'Loyalty program not found')
        if program.business_id != values['business_id']:
            raise ValidationError(errors=['Program does not belong to this business'])
    else:
        program = LoyaltyProgram.query.filter_by(business_id=values['business_id']).first()
        if program is not None:
            values['program_id'] = program.id
    if program is not None and 'tier' not in values:
        values['tier'] = program.tier_for(values.get('points_balance') or 0)

    values.setdefault('card_number', new_card_number())
    return repo.cards.create(values)


def get_customer_cards(customer_id) -> list:
    rows = (db.session.query(LoyaltyCard, Business.name, Business.logo_url)
            .join(Business, LoyaltyCard.business_id == Business.id)
            .filter(LoyaltyCard.customer_id == customer_id)
            .order_by(LoyaltyCard.created_at.desc())
            .all())
    return [dict(card.to_dict(), business_name=name, logo_url=logo) for card, name, logo in rows]


def get_business_cards(business_id) -> list:
    rows = (db.session.query(LoyaltyCard, Customer.first_name, Customer.last_name, Customer.email)
            .join(Customer, LoyaltyCard.customer_id == Customer.id)
            .filter(LoyaltyCard.business_id == business_id)
            .order_by(LoyaltyCard.created_at.desc())
            .all())
    return [dict(card.to_dict(), first_name=first, last_name=last, email=email)
            for card, first, last, email in rows]
