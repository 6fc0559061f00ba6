"""
loyaltyhub/transactions/service.py
----------------------------------
Recording purchases, refunds and reward redemptions.

record_transaction() writes the transaction row and every balance it moves
(the customer's total_points and, with a program, the program card) in a
single commit. A failure anywhere rolls the whole unit back.
"""
import logging
import math
from decimal import Decimal

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import NotFoundError
from loyaltyhub.programs import service as programs_service
from loyaltyhub.transactions.models import Transaction, TransactionType

logger = logging.getLogger(__name__)

SORTABLE = ('date', 'created_at', 'amount', 'points_earned', 'type')


def record_transaction(values: dict, staff_id=None) -> Transaction:
    values = dict(values)
    if staff_id and not values.get('staff_id'):
        values['staff_id'] = staff_id
    tx_type = TransactionType(values.get('type', TransactionType.purchase))

    program = None
    if values.get('program_id'):
        program = repo.programs.get_or_404(values['program_id'], 'Loyalty program not found')

    points = values.get('points_earned')
    if points is None:
        # No explicit points: a purchase earns points_per_purchase per currency unit
        points = 0
        if tx_type == TransactionType.purchase and program is not None:
            amount = Decimal(str(values.get('amount') or 0))
            points = int(math.floor(amount * Decimal(str(program.points_per_purchase or 0))))
        values['points_earned'] = points

    delta = {TransactionType.purchase: points,
             TransactionType.refund: -points}.get(tx_type, 0)

    if delta:
        if program is not None:
            programs_service.issue_points(values['customer_id'], program.id, delta, commit=False)
        else:
            customer = (db.session.query(Customer)
                        .filter(Customer.id == values['customer_id'])
                        .with_for_update()
                        .first())
            if customer is None:
                raise NotFoundError('Customer not found')
            customer.total_points = max(0, (customer.total_points or 0) + delta)
    else:
        repo.customers.get_or_404(values['customer_id'], 'Customer not found')

    tx = repo.transactions.create(values, commit=False)
    db.session.commit()
    logger.info("Transaction %s recorded: %s %d pts for customer %s",
                tx.id, tx_type.value, points, tx.customer_id)
    return tx


def get_transaction(transaction_id) -> Transaction:
    return repo.transactions.get_or_404(transaction_id, 'Transaction not found')


def list_transactions(business_id=None, customer_id=None, type=None, limit=50, offset=0,
                      sort_by='date', direction='desc'):
    """Returns (rows, total). Unknown sort columns fall back to date."""
    filters = {k: v for k, v in (('business_id', business_id),
                                 ('customer_id', customer_id),
                                 ('type', type)) if v}
    if sort_by not in SORTABLE:
        sort_by = 'date'
    rows = repo.transactions.find_all(filters, limit=limit, offset=offset,
                                      order_by=sort_by, direction=direction)
    return rows, repo.transactions.count(filters)
