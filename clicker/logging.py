"""
Structured logging for the clicker service.

Log records are emitted as JSON lines, so that fields passed via ``extra``
(e.g. ``user_id``, ``path``) are searchable in the log aggregator.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from .context import get_application_config

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'
RENAME = {'levelname': 'level', 'asctime': 'timestamp'}


def getLogger(name: str, stream: Optional[object] = None) -> logging.Logger:
    """
    Get a logger that writes JSON to ``stream`` (stderr by default).

    The level is taken from ``LOGLEVEL`` in the application config, falling
    back to the environment, and then to INFO.
    """
    logger = logging.getLogger(name)
    if not any(getattr(h, '_clicker', False) for h in logger.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(
            jsonlogger.JsonFormatter(FORMAT, rename_fields=RENAME)
        )
        handler._clicker = True     # type: ignore
        logger.addHandler(handler)
        logger.propagate = False
    level = get_application_config().get('LOGLEVEL') or logging.INFO
    logger.setLevel(int(level) if str(level).isdigit() else level)
    return logger
