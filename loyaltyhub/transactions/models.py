import enum
from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, enum_column, new_id, utcnow


class TransactionType(str, enum.Enum):
    purchase          = "purchase"
    refund            = "refund"
    reward_redemption = "reward_redemption"


class Transaction(SerializerMixin, db.Model):
    """
    One points-affecting event. Purchases add points, refunds take them
    back, reward redemptions record a code or reward being claimed.
    """
    __tablename__ = 'transactions'

    id             = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id    = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                               nullable=False, index=True)
    customer_id    = db.Column(db.String(36), db.ForeignKey('customers.id'),
                               nullable=False, index=True)
    program_id     = db.Column(db.String(36), db.ForeignKey('loyalty_programs.id'), nullable=True)
    staff_id       = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    amount         = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    points_earned  = db.Column(db.Integer, nullable=False, default=0)
    date           = db.Column(db.DateTime, nullable=False, default=utcnow)
    type           = enum_column(TransactionType, nullable=False, default=TransactionType.purchase)
    notes          = db.Column(db.Text)
    receipt_number = db.Column(db.String(100))
    created_at     = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at     = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<Transaction {self.type!r} customer={self.customer_id} pts={self.points_earned}>'
