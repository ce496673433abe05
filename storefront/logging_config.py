"""
Logging for the storefront: one stdout handler on the app logger, with the
request line, endpoint and signed-in admin attached to every record.
"""
import logging
import sys
from flask import has_request_context, request
from flask_login import current_user

LOG_FORMAT = (
    '%(asctime)s %(levelname)s %(name)s '
    '[%(method)s %(path)s -> %(endpoint)s] '
    '[ip=%(remote_addr)s admin=%(admin_id)s] '
    '%(message)s'
)


def _admin_id():
    try:
        if current_user.is_authenticated:
            return str(current_user.id)
    except Exception:
        # Session lookups can fail mid-request; the record is still written
        return '?'
    return '-'


class RequestFormatter(logging.Formatter):
    """Adds the current request to each record, or placeholders outside a request"""

    def format(self, record):
        if has_request_context():
            record.method = request.method
            record.path = request.full_path.rstrip('?')
            record.endpoint = request.endpoint or '-'
            record.remote_addr = request.remote_addr
            record.admin_id = _admin_id()
        else:
            record.method = record.path = record.endpoint = '-'
            record.remote_addr = record.admin_id = '-'

        return super().format(record)


def setup_logging(app):
    """
    Attach the stdout handler to ``app.logger`` (the "storefront" logger).

    Module loggers under ``storefront.`` propagate to it. Calling this again
    for a new app replaces the handler instead of stacking a second one.
    """
    level = logging.getLevelName(str(app.config.get('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(RequestFormatter(LOG_FORMAT))

    logger = app.logger
    for existing in list(logger.handlers):
        if isinstance(existing.formatter, RequestFormatter):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    logger.info('Logging configured', extra={
        'event_type': 'app_startup',
        'log_level': logging.getLevelName(level),
        'testing': app.config.get('TESTING', False)
    })

    return logger
