from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, new_id, utcnow


class Business(SerializerMixin, db.Model):
    """
    A merchant running loyalty programs. Every business-scoped row
    (programs, rewards, codes, QR codes, settings) hangs off this one.
    """
    __tablename__ = 'businesses'

    id          = db.Column(db.String(36), primary_key=True, default=new_id)
    name        = db.Column(db.String(255), nullable=False)
    owner_id    = db.Column(db.String(36),
                            db.ForeignKey('users.id', name='businesses_owner_id_fkey',
                                          use_alter=True),
                            nullable=True)
    address     = db.Column(db.Text)
    phone       = db.Column(db.String(50))
    email       = db.Column(db.String(255))
    website     = db.Column(db.String(255))
    description = db.Column(db.Text)
    logo_url    = db.Column(db.Text)
    created_at  = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at  = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship('User', foreign_keys=[owner_id], lazy='select', post_update=True)

    def __repr__(self):
        return f"<Business {self.name!r}>"
