from loyaltyhub import db
from loyaltyhub.utils.model_helpers import JSONType, SerializerMixin, new_id, utcnow


class Setting(SerializerMixin, db.Model):
    """Arbitrary JSON configuration, one value per (business, key)."""
    __tablename__ = 'settings'
    __table_args__ = (
        db.UniqueConstraint('business_id', 'settings_key', name='settings_business_id_settings_key_key'),
    )

    id             = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id    = db.Column(db.String(36), db.ForeignKey('businesses.id'),
                               nullable=False, index=True)
    settings_key   = db.Column(db.String(100), nullable=False)
    settings_value = db.Column(JSONType, nullable=False)
    created_at     = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at     = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<Setting {self.business_id}:{self.settings_key}>'
