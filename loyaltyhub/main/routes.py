"""
loyaltyhub/main/routes.py
─────────────────────────
Health check for load balancers and monitoring.
"""
import shutil

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from loyaltyhub import db
from loyaltyhub.main import main
from loyaltyhub.utils.model_helpers import utcnow


@main.route('/health', methods=['GET'])
def health():
    status = 'ok'
    failures = []

    # 1. DB round-trip
    try:
        db.session.execute(text('SELECT 1'))
        db_status = 'ok'
    except SQLAlchemyError as e:
        db.session.rollback()
        status = db_status = 'error'
        failures.append('Database unreachable')
        current_app.logger.error("Health check failed (DB): %s", e)

    # 2. Disk
    details = {'db': db_status}
    try:
        total, _, free = shutil.disk_usage('/')
        details['disk_free_percent'] = round(free / total * 100, 1)
        if details['disk_free_percent'] < 10:
            failures.append(f"Low disk space: {details['disk_free_percent']}% free")
            current_app.logger.warning("Low disk space: %s%% free", details['disk_free_percent'])
            if status == 'ok':
                status = 'warning'
    except OSError:
        details['disk_free_percent'] = None

    body = {
        'success': status != 'error',
        'status': status,
        'timestamp': utcnow().isoformat(),
        'details': details,
    }
    if failures:
        body['failures'] = failures
    return body, 503 if status == 'error' else 200
