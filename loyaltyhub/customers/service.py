"""
loyaltyhub/customers/service.py
-------------------------------
A business's member list: search and paging for the dashboard, the
customer detail page, and manual enrolment / edits / removal.
"""
import logging

from sqlalchemy import func, or_, select

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.auth.models import User
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import ConflictError
from loyaltyhub.programs.models import LoyaltyCard, LoyaltyProgram
from loyaltyhub.redemptions.models import RedemptionCode
from loyaltyhub.repository import with_retry
from loyaltyhub.transactions.models import Transaction

logger = logging.getLogger(__name__)

SORTABLE = ('first_name', 'last_name', 'email', 'sign_up_date', 'total_points')
SEARCHABLE = ('first_name', 'last_name', 'email', 'phone')
RECENT_TRANSACTIONS = 5


def list_customers(business_id, search=None, limit=20, offset=0,
                   sort_by='sign_up_date', direction='desc'):
    """
    Returns (rows, total). Each row is the customer dict plus user_email,
    transaction_count and active_programs_count. `search` matches any of
    SEARCHABLE case-insensitively; unknown sort columns fall back to
    sign_up_date.
    """
    limit, offset = repo.clamp_page(limit, offset)
    if sort_by not in SORTABLE:
        sort_by = 'sign_up_date'

    query = Customer.query.filter(Customer.business_id == business_id)
    if search and str(search).strip():
        term = str(search).strip().lower()
        query = query.filter(or_(*[func.lower(getattr(Customer, col)).contains(term, autoescape=True)
                                   for col in SEARCHABLE]))
    total = with_retry(query.count)

    tx_count = (select(func.count(Transaction.id))
                .where(Transaction.customer_id == Customer.id)
                .scalar_subquery())
    active_cards = (select(func.count(LoyaltyCard.id))
                    .where(LoyaltyCard.customer_id == Customer.id, LoyaltyCard.is_active.is_(True))
                    .scalar_subquery())

    column = getattr(Customer, sort_by)
    ordering = column.asc() if str(direction).lower() == 'asc' else column.desc()
    rows = with_retry(query
                      .outerjoin(User, Customer.user_id == User.id)
                      .add_columns(User.email, tx_count, active_cards)
                      .order_by(ordering, Customer.id)
                      .limit(limit).offset(offset)
                      .all)
    return [dict(customer.to_dict(), user_email=user_email, transaction_count=txs or 0,
                 active_programs_count=cards or 0)
            for customer, user_email, txs, cards in rows], total


def get_customer_detail(customer_id) -> dict:
    """The customer with their cards, latest transactions and lifetime stats."""
    customer = repo.customers.get_or_404(customer_id, 'Customer not found')
    user = repo.users.find_by_id(customer.user_id)

    cards = (db.session.query(LoyaltyCard, LoyaltyProgram.name, LoyaltyProgram.type)
             .outerjoin(LoyaltyProgram, LoyaltyCard.program_id == LoyaltyProgram.id)
             .filter(LoyaltyCard.customer_id == customer.id)
             .order_by(LoyaltyCard.created_at.desc())
             .all())
    recent = (db.session.query(Transaction, LoyaltyProgram.name)
              .outerjoin(LoyaltyProgram, Transaction.program_id == LoyaltyProgram.id)
              .filter(Transaction.customer_id == customer.id)
              .order_by(Transaction.date.desc())
              .limit(RECENT_TRANSACTIONS)
              .all())
    count, spent, earned = (db.session.query(func.count(Transaction.id),
                                              func.coalesce(func.sum(Transaction.amount), 0),
                                              func.coalesce(func.sum(Transaction.points_earned), 0))
                            .filter(Transaction.customer_id == customer.id)
                            .one())

    return {
        'customer': dict(customer.to_dict(), user_email=user.email if user else None),
        'cards': [dict(card.to_dict(), program_name=name, program_type=getattr(kind, 'value', kind))
                  for card, name, kind in cards],
        'recent_transactions': [dict(tx.to_dict(), program_name=name) for tx, name in recent],
        'stats': {
            'total_transactions': count,
            'total_spent': float(spent),
            'total_points_earned': int(earned),
        },
    }


def _email_taken(business_id, email, exclude_id=None) -> bool:
    query = Customer.query.filter(Customer.business_id == business_id,
                                  func.lower(Customer.email) == email.lower())
    if exclude_id:
        query = query.filter(Customer.id != exclude_id)
    return query.first() is not None


def create_customer(values: dict) -> Customer:
    """Enrol a walk-in customer. Emails are unique within a business."""
    repo.businesses.get_or_404(values['business_id'], 'Business not found')
    if values.get('email') and _email_taken(values['business_id'], values['email']):
        raise ConflictError('A customer with this email already exists')

    customer = repo.customers.create(values)
    logger.info("Customer %s created for business %s", customer.id, customer.business_id)
    return customer


def update_customer(customer_id, values: dict) -> Customer:
    """
    Partial update. A new email is copied onto the linked user account so
    the customer keeps logging in with the address the business sees.
    """
    customer = repo.customers.get_or_404(customer_id, 'Customer not found')
    if not values:
        return customer

    email = values.get('email')
    if email and email != (customer.email or '').lower():
        if customer.business_id and _email_taken(customer.business_id, email, exclude_id=customer.id):
            raise ConflictError('A customer with this email already exists')
        if customer.user_id:
            owner = User.query.filter(User.email == email, User.id != customer.user_id).first()
            if owner is not None:
                raise ConflictError('User with this email already exists')
            user = repo.users.find_by_id(customer.user_id)
            if user is not None:
                user.email = email

    customer = repo.customers.update(customer_id, values, commit=False)
    db.session.commit()
    return customer


def delete_customer(customer_id) -> None:
    """
    Remove the customer with their cards and transactions, and the login
    account behind them. Redemption codes stay, unassigned.
    """
    customer = repo.customers.get_or_404(customer_id, 'Customer not found')
    user_id = customer.user_id

    LoyaltyCard.query.filter(LoyaltyCard.customer_id == customer.id).delete(synchronize_session=False)
    Transaction.query.filter(Transaction.customer_id == customer.id).delete(synchronize_session=False)
    for column in (RedemptionCode.customer_id, RedemptionCode.used_by):
        RedemptionCode.query.filter(column == customer.id) \
            .update({column: None}, synchronize_session=False)
    db.session.delete(customer)

    if user_id:
        Transaction.query.filter(Transaction.staff_id == user_id) \
            .update({Transaction.staff_id: None}, synchronize_session=False)
        user = repo.users.find_by_id(user_id)
        if user is not None:
            db.session.delete(user)

    db.session.commit()
    logger.info("Customer %s deleted", customer_id)
