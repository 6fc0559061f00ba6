"""
loyaltyhub/redemptions/models.py
--------------------------------
RedemptionCode: a single-use token exchangeable for points, a discount
or a product (optionally tied to a Reward).

Lifecycle
─────────
    active ──► redeemed     (terminal, is_used = True, used_by/used_at set)
       │
       ├────► expired      (terminal)
       └────► cancelled    (terminal)

`status` is the canonical state. `is_used` mirrors status == redeemed and is
kept because reporting queries and older clients filter on it.
An active code whose expires_at has passed is treated as expired by
validation even before the expire-codes sweep rewrites its status.
"""
import enum
from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, enum_column, new_id, utcnow


class CodeStatus(str, enum.Enum):
    active    = "active"
    redeemed  = "redeemed"
    expired   = "expired"
    cancelled = "cancelled"


TERMINAL_STATUSES = (CodeStatus.redeemed, CodeStatus.expired, CodeStatus.cancelled)


class ValueType(str, enum.Enum):
    points   = "points"
    discount = "discount"
    product  = "product"


class RedemptionCode(SerializerMixin, db.Model):
    __tablename__ = 'redemption_codes'

    id           = db.Column(db.String(36), primary_key=True, default=new_id)
    code         = db.Column(db.String(20), unique=True, nullable=False, index=True)
    business_id  = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                             nullable=False, index=True)
    reward_id    = db.Column(db.String(36), db.ForeignKey('rewards.id'), nullable=True)
    customer_id  = db.Column(db.String(36), db.ForeignKey('customers.id'), nullable=True)  # assignee
    value_type   = enum_column(ValueType, nullable=False, default=ValueType.points)
    value_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status       = enum_column(CodeStatus, nullable=False, default=CodeStatus.active, index=True)
    is_used      = db.Column(db.Boolean, nullable=False, default=False)
    used_by      = db.Column(db.String(36), db.ForeignKey('customers.id'), nullable=True)
    used_at      = db.Column(db.DateTime, nullable=True)
    expires_at   = db.Column(db.DateTime, nullable=True)    # None = never expires
    created_at   = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at   = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    reward = db.relationship('Reward', lazy='select')

    def is_past_expiry(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())

    def to_dict(self) -> dict:
        data = super().to_dict()
        # Older clients read redeemed_at; it is the same moment as used_at
        data['redeemed_at'] = data['used_at']
        return data

    def __repr__(self):
        return f'<RedemptionCode {self.code} {self.status!r}>'
