"""
loyaltyhub/programs/models.py
-----------------------------
LoyaltyProgram and LoyaltyCard models.

LoyaltyProgram.tiers is a JSON list ordered by threshold, e.g.
  [{"name": "Bronze", "min_points": 0},
   {"name": "Silver", "min_points": 500},
   {"name": "Gold",   "min_points": 1500}]
LoyaltyProgram.rules is free-form JSON interpreted by the frontend.
"""
import enum
from loyaltyhub import db
from loyaltyhub.utils.model_helpers import (
    JSONType, SerializerMixin, enum_column, new_id, utcnow,
)


class ProgramType(str, enum.Enum):
    points    = "points"
    punchcard = "punchcard"
    tiered    = "tiered"


DEFAULT_TIER = 'Bronze'


class LoyaltyProgram(SerializerMixin, db.Model):
    """A business's rule set for awarding points. One per business (app-level rule)."""
    __tablename__ = 'loyalty_programs'

    id                  = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id         = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                                    nullable=False, index=True)
    name                = db.Column(db.String(255), nullable=False)
    type                = enum_column(ProgramType, nullable=False, default=ProgramType.points)
    description         = db.Column(db.Text)
    points_per_purchase = db.Column(db.Float, nullable=False, default=1)
    points_per_referral = db.Column(db.Integer, nullable=False, default=0)
    points_expiry_days  = db.Column(db.Integer, nullable=True)     # None = points never expire
    rules               = db.Column(JSONType, nullable=True)
    tiers               = db.Column(JSONType, nullable=True)
    is_active           = db.Column(db.Boolean, nullable=False, default=True)
    start_date          = db.Column(db.Date, nullable=True)
    end_date            = db.Column(db.Date, nullable=True)
    created_at          = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at          = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def tier_for(self, points: int) -> str:
        """Highest tier whose min_points the balance reaches."""
        tier = DEFAULT_TIER
        best = None
        for entry in self.tiers or []:
            try:
                threshold = int(entry.get('min_points', 0))
            except (AttributeError, TypeError, ValueError):
                continue
            if points >= threshold and (best is None or threshold >= best):
                best = threshold
                tier = entry.get('name') or tier
        return tier

    def __repr__(self):
        return f'<LoyaltyProgram {self.name!r} business={self.business_id}>'


class LoyaltyCard(SerializerMixin, db.Model):
    """A customer's running balance and tier within one program."""
    __tablename__ = 'loyalty_cards'

    id             = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id    = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                               nullable=False, index=True)
    customer_id    = db.Column(db.String(36), db.ForeignKey('customers.id'),
                               nullable=False, index=True)
    program_id     = db.Column(db.String(36), db.ForeignKey('loyalty_programs.id'),
                               nullable=True, index=True)
    card_number    = db.Column(db.String(50), unique=True, nullable=True)
    points_balance = db.Column(db.Integer, nullable=False, default=0)
    punch_count    = db.Column(db.Integer, nullable=True)
    tier           = db.Column(db.String(50), nullable=True, default=DEFAULT_TIER)
    issue_date     = db.Column(db.DateTime, nullable=False, default=utcnow)
    expiry_date    = db.Column(db.DateTime, nullable=True)
    is_active      = db.Column(db.Boolean, nullable=False, default=True)
    created_at     = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at     = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    program  = db.relationship('LoyaltyProgram', lazy='select')

    def __repr__(self):
        return f'<LoyaltyCard customer={self.customer_id} program={self.program_id} pts={self.points_balance}>'
