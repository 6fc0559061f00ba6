import enum
from loyaltyhub import db
from loyaltyhub.utils.model_helpers import (
    JSONType, SerializerMixin, enum_column, new_id, utcnow,
)


class QRCodeType(str, enum.Enum):
    loyalty   = "loyalty"
    product   = "product"
    promotion = "promotion"
    payment   = "payment"


class QRCode(SerializerMixin, db.Model):
    """A tracked scannable code. Scan counters only ever go up."""
    __tablename__ = 'qr_codes'

    id                 = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id        = db.Column(db.String(36),
                                   db.ForeignKey('businesses.id', name='qr_codes_business_id_fkey'),
                                   nullable=False, index=True)
    content            = db.Column(db.Text, nullable=False)
    link_url           = db.Column(db.Text)
    code_type          = enum_column(QRCodeType, nullable=False)
    scans_count        = db.Column(db.Integer, nullable=False, default=0)
    unique_scans_count = db.Column(db.Integer, nullable=False, default=0)
    description        = db.Column(db.Text)
    # "metadata" is reserved on declarative classes
    meta               = db.Column('metadata', JSONType, nullable=True)
    created_at         = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at         = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f'<QRCode {self.code_type!r} scans={self.scans_count}>'


class QRCodeScan(db.Model):
    """One row per (QR code, scanner fingerprint): drives unique_scans_count."""
    __tablename__ = 'qr_code_scans'
    __table_args__ = (
        db.UniqueConstraint('qr_code_id', 'scanner', name='uq_qr_code_scans_scanner'),
    )

    id         = db.Column(db.Integer, primary_key=True)
    qr_code_id = db.Column(db.String(36), db.ForeignKey('qr_codes.id', ondelete='CASCADE'),
                           nullable=False, index=True)
    scanner    = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
