"""Logging configuration for the daily report backend."""
import logging
import os
import json
from logging.handlers import RotatingFileHandler
from shared.models import now

# Libraries whose INFO output drowns out submission logs
NOISY_LOGGERS = ('werkzeug', 'sqlalchemy.engine', 'urllib3', 'requests', 'libcloud')


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter; one object per line."""

    def format(self, record):
        log_entry = {
            'timestamp': now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Submission state, report id, etc. passed via extra={'extra_fields': {...}}
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def setup_logging(log_level=None, logs_dir=None):
    """Setup logging configuration for the backend.

    Args:
        log_level (str, optional): Level name; defaults to LOG_LEVEL or INFO
        logs_dir (str, optional): Directory for backend.log; defaults to LOG_DIR or ./logs
    """
    log_level_str = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, log_level_str, logging.INFO)

    logs_dir = logs_dir or os.getenv('LOG_DIR') or os.path.join(os.path.dirname(__file__), '..', 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)

    # File handler with rotation (structured JSON)
    log_file = os.path.join(logs_dir, 'backend.log')
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(StructuredFormatter())

    # Console handler (human-readable)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s %(name)-20s %(message)s'))

    # create_app may run more than once per process (tests, CLI)
    for handler in list(logger.handlers):
        if isinstance(handler, (RotatingFileHandler, logging.StreamHandler)) and getattr(handler, '_daily_reports', False):
            logger.removeHandler(handler)
            handler.close()
    file_handler._daily_reports = True
    console_handler._daily_reports = True

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialized", extra={
        'extra_fields': {
            'log_level': log_level_str,
            'log_file': log_file,
            'structured_logging': True
        }
    })

    return logger
