"""
loyaltyhub/utils/logging.py
───────────────────────────
Configures logging for the API process.

app.logger is the "loyaltyhub" logger, so the handlers installed here also
receive the records of service modules that log via logging.getLogger(__name__).
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import request, has_request_context


class RequestFormatter(logging.Formatter):
    """
    Formatter that injects the request method, URL and client IP
    into log records when a request context is available.
    """
    def format(self, record):
        if has_request_context():
            record.method = request.method
            record.url = request.url
            record.remote_addr = request.remote_addr
        else:
            record.method = None
            record.url = None
            record.remote_addr = None
        return super().format(record)


def setup_logging(app):
    """
    Configure rotating file logging (LOG_DIR/app.log) plus stdout.
    Max size: 5MB
    Backup count: 5 files
    Format: timestamp | level | logger | client | method url | message
    """
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    # create_app() runs many times under pytest; drop the handlers of the previous app
    for handler in list(app.logger.handlers):
        if getattr(handler, '_loyaltyhub', False):
            app.logger.removeHandler(handler)
            handler.close()

    # 1. File logger (skipped when LOG_DIR is unset or not writable)
    log_dir = app.config.get('LOG_DIR')
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'app.log'),
                maxBytes=5 * 1024 * 1024,
                backupCount=5
            )
            file_handler.setFormatter(RequestFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | '
                '%(method)s %(url)s | %(message)s'
            ))
            file_handler.setLevel(level)
            file_handler._loyaltyhub = True
            app.logger.addHandler(file_handler)
        except OSError:
            pass  # read-only filesystem: stdout only

    # 2. Stdout logger (what the hosting platform collects)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
    ))
    stream_handler.setLevel(level)
    stream_handler._loyaltyhub = True
    app.logger.addHandler(stream_handler)

    app.logger.setLevel(level)
    app.logger.info("Loyalty platform API startup")
