"""Logging configuration for the Discord pipeline tracker.

Logs go to stderr so CI step output on stdout stays clean.
"""

import logging
import json
import sys
from datetime import datetime, timezone
import os
from typing import Optional

TEXT_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


class JSONFormatter(logging.Formatter):
    """One JSON object per line, suitable for CI log collectors.

    Fields passed through ``log_with_fields`` are merged into the object;
    a ``TrackerError`` attached via ``exc_info`` contributes its ``code``.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data = {
            'timestamp': created.strftime('%Y-%m-%dT%H:%M:%S.') + f'{created.microsecond // 1000:03d}Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        log_data.update(getattr(record, 'extra_fields', {}))

        if record.exc_info:
            error = record.exc_info[1]
            if error is not None and hasattr(error, 'code'):
                log_data.setdefault('code', error.code)
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    handler: Optional[logging.Handler] = None
) -> logging.Logger:
    """Setup tracker logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: ``json`` for structured output, anything else for plain text
        handler: Custom handler (stderr stream handler by default)

    Returns:
        Configured logger instance
    """
    log_level = level or os.environ.get('DISCORD_TRACKER_LOG_LEVEL', 'INFO')
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger('discord_tracker')
    logger.setLevel(log_level)

    # Remove existing handlers
    logger.handlers = []

    if fmt == 'json':
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def log_with_fields(
    logger: logging.Logger,
    level: str,
    message: str,
    **fields
):
    """Log with extra fields.

    Args:
        logger: Logger instance
        level: Log level name
        message: Log message
        **fields: Extra fields to include
    """
    extra = {'extra_fields': fields} if fields else None

    log_func = getattr(logger, level.lower(), logger.info)
    log_func(message, extra=extra)
