"""
loyaltyhub/qrcodes/service.py
-----------------------------
QR code records and their scan counters.

Counters are bumped with `col = col + 1` in SQL, so concurrent scans
never lose an increment. A scanner fingerprint counts towards
unique_scans_count the first time it is seen for a given QR code; the
qr_code_scans unique constraint settles races between two first scans.
"""
import logging

from sqlalchemy.exc import IntegrityError

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.errors import NotFoundError
from loyaltyhub.qrcodes.models import QRCode, QRCodeScan
from loyaltyhub.repository import with_retry
from loyaltyhub.utils.model_helpers import utcnow

logger = logging.getLogger(__name__)

EDITABLE = ('content', 'link_url', 'description', 'metadata', 'code_type')


def get_business_qr_codes(business_id, code_type=None):
    query = QRCode.query.filter(QRCode.business_id == business_id)
    if code_type:
        query = query.filter(QRCode.code_type == code_type)
    return with_retry(query.order_by(QRCode.created_at.desc()).all)


def create_qr_code(values: dict) -> QRCode:
    repo.businesses.get_or_404(values.get('business_id'), 'Business not found')
    qr = repo.qr_codes.create(values)
    logger.info("QR code %s (%s) created for business %s", qr.id, qr.code_type, qr.business_id)
    return qr


def update_qr_code(qr_id, values: dict) -> QRCode:
    """COALESCE semantics: only the keys present (and not None) change."""
    values = {k: v for k, v in values.items() if k in EDITABLE and v is not None}
    if not values:
        return repo.qr_codes.get_or_404(qr_id, 'QR code not found')
    qr = repo.qr_codes.update(qr_id, values)
    if qr is None:
        raise NotFoundError('QR code not found')
    return qr


def _first_sighting(qr_id, scanner) -> bool:
    """Record `scanner` for this QR code. False when it was already recorded."""
    if QRCodeScan.query.filter_by(qr_code_id=qr_id, scanner=scanner).first() is not None:
        return False
    try:
        with db.session.begin_nested():
            db.session.add(QRCodeScan(qr_code_id=qr_id, scanner=scanner))
    except IntegrityError:
        return False
    return True


def record_scan(qr_id, scanner=None) -> QRCode:
    qr = repo.qr_codes.get_or_404(qr_id, 'QR code not found')

    unique = bool(scanner) and _first_sighting(qr.id, str(scanner)[:255])
    changes = {QRCode.scans_count: QRCode.scans_count + 1, QRCode.updated_at: utcnow()}
    if unique:
        changes[QRCode.unique_scans_count] = QRCode.unique_scans_count + 1
    QRCode.query.filter(QRCode.id == qr.id).update(changes, synchronize_session=False)
    db.session.commit()

    db.session.refresh(qr)
    logger.debug("QR code %s scanned (unique=%s)", qr.id, unique)
    return qr


def delete_qr_code(qr_id) -> None:
    qr = repo.qr_codes.get_or_404(qr_id, 'QR code not found')
    QRCodeScan.query.filter(QRCodeScan.qr_code_id == qr.id).delete(synchronize_session=False)
    db.session.delete(qr)
    db.session.commit()
    logger.info("QR code %s deleted", qr_id)
