"""
loyaltyhub/settings/service.py
------------------------------
Per-business JSON settings, one value per key.
"""
import logging

from sqlalchemy.exc import IntegrityError

from loyaltyhub import db
from loyaltyhub import repository as repo
from loyaltyhub.errors import NotFoundError
from loyaltyhub.repository import with_retry
from loyaltyhub.settings.models import Setting
from loyaltyhub.utils.model_helpers import utcnow

logger = logging.getLogger(__name__)


def get_setting(business_id, settings_key):
    return repo.settings.find_one({'business_id': business_id, 'settings_key': settings_key})


def get_business_settings(business_id):
    query = Setting.query.filter(Setting.business_id == business_id).order_by(Setting.settings_key)
    return with_retry(query.all)


def upsert_setting(business_id, settings_key, settings_value):
    """Returns (setting, created)."""
    repo.businesses.get_or_404(business_id, 'Business not found')

    setting = (Setting.query
               .filter_by(business_id=business_id, settings_key=settings_key)
               .with_for_update()
               .first())
    if setting is not None:
        setting.settings_value = settings_value
        setting.updated_at = utcnow()
        db.session.commit()
        return setting, False

    setting = Setting(business_id=business_id, settings_key=settings_key,
                      settings_value=settings_value)
    db.session.add(setting)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request inserted the same key first: update theirs
        db.session.rollback()
        setting = Setting.query.filter_by(business_id=business_id, settings_key=settings_key).one()
        setting.settings_value = settings_value
        setting.updated_at = utcnow()
        db.session.commit()
        return setting, False

    logger.info("Setting %s created for business %s", settings_key, business_id)
    return setting, True


def delete_setting(business_id, settings_key) -> None:
    setting = get_setting(business_id, settings_key)
    if setting is None:
        raise NotFoundError('Setting not found')
    db.session.delete(setting)
    db.session.commit()
