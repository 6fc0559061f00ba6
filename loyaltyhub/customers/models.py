from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, new_id, utcnow


class Customer(SerializerMixin, db.Model):
    """
    A loyalty member. Linked 1:1 to a User by convention (user_id is
    nullable: businesses can enrol walk-in customers without an account).
    total_points is the running balance across all of the customer's cards.
    """
    __tablename__ = 'customers'

    id           = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id      = db.Column(db.String(36),
                             db.ForeignKey('users.id', name='customers_user_id_fkey'),
                             nullable=True, index=True)
    business_id  = db.Column(db.String(36),
                             db.ForeignKey('businesses.id', name='customers_business_id_fkey'),
                             nullable=True, index=True)
    first_name   = db.Column(db.String(100))
    last_name    = db.Column(db.String(100))
    email        = db.Column(db.String(255))
    phone        = db.Column(db.String(50))
    address      = db.Column(db.Text)
    sign_up_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    birthday     = db.Column(db.Date)
    notes        = db.Column(db.Text)
    created_at   = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at   = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Customer {self.email or self.id} Pts:{self.total_points}>"
