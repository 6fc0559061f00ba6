from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, new_id, utcnow


class Reward(SerializerMixin, db.Model):
    """Something a customer can claim for points_required points."""
    __tablename__ = 'rewards'

    id               = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id      = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                                 nullable=False, index=True)
    program_id       = db.Column(db.String(36), db.ForeignKey('loyalty_programs.id'),
                                 nullable=True, index=True)
    name             = db.Column(db.String(255), nullable=False)
    description      = db.Column(db.Text)
    points_required  = db.Column(db.Integer, nullable=False)
    image_url        = db.Column(db.Text)
    is_active        = db.Column(db.Boolean, nullable=False, default=True)
    redemption_limit = db.Column(db.Integer, nullable=True)    # None = unlimited
    valid_from       = db.Column(db.DateTime, nullable=True)
    valid_until      = db.Column(db.DateTime, nullable=True)
    created_at       = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at       = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<Reward {self.name!r} {self.points_required}pts>'
