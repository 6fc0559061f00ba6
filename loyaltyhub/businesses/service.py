"""
loyaltyhub/businesses/service.py
--------------------------------
Business profile and the dashboard's headline numbers.
"""
from datetime import timedelta

from sqlalchemy import func

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.businesses.models import Business
from loyaltyhub.customers.models import Customer
from loyaltyhub.errors import NotFoundError
from loyaltyhub.transactions.models import Transaction, TransactionType
from loyaltyhub.utils.model_helpers import utcnow

EDITABLE = ('name', 'address', 'phone', 'email', 'website', 'description', 'logo_url')


def get_business(business_id) -> Business:
    return repo.businesses.get_or_404(business_id, 'Business not found')


def get_business_by_owner(owner_id):
    return repo.businesses.find_one({'owner_id': owner_id})


def update_business_profile(business_id, values: dict) -> Business:
    values = {k: v for k, v in values.items() if k in EDITABLE and v is not None}
    if not values:
        return get_business(business_id)
    business = repo.businesses.update(business_id, values)
    if business is None:
        raise NotFoundError('Business not found')
    return business


def get_business_stats(business_id) -> dict:
    get_business(business_id)
    now = utcnow()

    customer_count = db.session.query(func.count(Customer.id))\
        .filter(Customer.business_id == business_id).scalar() or 0
    new_customers = db.session.query(func.count(Customer.id))\
        .filter(Customer.business_id == business_id,
                Customer.sign_up_date >= now - timedelta(days=7)).scalar() or 0

    total_transactions = db.session.query(func.count(Transaction.id))\
        .filter(Transaction.business_id == business_id).scalar() or 0
    recent_transactions = db.session.query(func.count(Transaction.id))\
        .filter(Transaction.business_id == business_id,
                Transaction.date >= now - timedelta(days=30)).scalar() or 0

    points_issued = db.session.query(func.sum(Transaction.points_earned))\
        .filter(Transaction.business_id == business_id,
                Transaction.type == TransactionType.purchase).scalar() or 0
    # Reward purchases are stored as negative points, code redemptions as positive
    points_redeemed = db.session.query(func.sum(func.abs(Transaction.points_earned)))\
        .filter(Transaction.business_id == business_id,
                Transaction.type == TransactionType.reward_redemption).scalar() or 0

    return {
        'customer_count': int(customer_count),
        'new_customers_7_days': int(new_customers),
        'total_transactions': int(total_transactions),
        'recent_transactions': int(recent_transactions),
        'total_points_issued': int(points_issued),
        'total_points_redeemed': int(points_redeemed),
    }
