"""Structured logging with sensitive data redaction."""

import logging
import json
import re
from datetime import datetime
import os
from navcheck.core.config import settings

class SensitiveDataFilter(logging.Filter):
    """Mask session ids that tracked URLs carry into log lines."""

    SESSION_ID = re.compile(r'(session[_-]?id=)([^&\s]+)', re.IGNORECASE)

    def _redact(self, value):
        return self.SESSION_ID.sub(r'\1***REDACTED***', value) if isinstance(value, str) else value

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self._redact(arg) for arg in record.args)
        return True

class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    CONTEXT_KEYS = [
        'action', 'label', 'url', 'expected', 'actual', 'policy',
        'outcome', 'status', 'reason', 'duration_ms',
    ]

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Add custom fields from record
        for key in self.CONTEXT_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, ensure_ascii=False, default=str)

def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler

def setup_logger(
    name: str = "navcheck",
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = True
) -> logging.Logger:
    """
    Build the navcheck logger.

    The console gets JSON or a one-line text format; the optional log file
    is always JSON so check runs can be grepped afterwards. Calling this
    again replaces the handlers instead of stacking them.
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.filters = [SensitiveDataFilter()]

    text = logging.Formatter('%(asctime)s %(levelname)s [%(action)s] %(message)s', defaults={'action': '-'})
    logger.handlers = [_handler(logging.StreamHandler(), numeric_level, JSONFormatter() if json_format else text)]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), numeric_level, JSONFormatter()))

    return logger

# Global logger instance
logger = setup_logger(
    name="navcheck",
    level=settings.log_level,
    log_file=settings.log_file or None,
    json_format=settings.log_format.lower() == "json"
)

STATUS_LEVELS = {'success': logging.INFO, 'fail': logging.WARNING, 'error': logging.ERROR}

def log_action(action: str, **kwargs):
    """
    Log one browser step (open, verify_navigation, verify_scroll, cleanup, ...).

    `status` picks the level: success is INFO, a failed check is WARNING, a
    broken step is ERROR and anything else is DEBUG. All keyword arguments
    are attached to the record for the JSON formatter.
    """
    status = kwargs.get('status', 'unknown')
    label = kwargs.get('label')
    message = f"{action} {status}" + (f" [{label}]" if label else "")
    logger.log(STATUS_LEVELS.get(status, logging.DEBUG), message, extra={'action': action, **kwargs})
