"""
app/logging_config.py
Root logger setup, driven by settings.LOG_LEVEL and settings.LOG_FORMAT.
"""
from datetime import datetime, timezone
from typing import Optional
import json
import logging
import sys

from app.config import settings

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s - %(message)s'

QUIET_LOGGERS = ('httpx', 'httpcore', 'urllib3', 'botocore', 'boto3', 'apscheduler')


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None):
    level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    if (fmt or settings.LOG_FORMAT).lower() == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
