"""Structured logging helpers.

Every log line is a single JSON object with ``ts``, ``msg`` and the event's
fields. Fit statistics are often numpy scalars or arrays; they are written
as JSON numbers and lists rather than strings.

``FORMULA_GLM_DEBUG`` forces DEBUG; otherwise ``FORMULA_GLM_LOG_LEVEL``
(a level name, default ``INFO``) sets the level of new loggers.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

import numpy as np

LEVEL_ENV = 'FORMULA_GLM_LOG_LEVEL'
DEBUG_ENV = 'FORMULA_GLM_DEBUG'


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, Path):
        return str(value)
    return repr(value)


def json_log(message: str, /, **extra: Any) -> str:
    """Return a JSON-formatted log string."""
    payload = {'ts': time.time(), 'msg': message, **extra}
    return json.dumps(payload, ensure_ascii=False, default=_json_default)


def log_level() -> int:
    """Return the level new loggers are created with."""
    if os.getenv(DEBUG_ENV):
        return logging.DEBUG
    level = logging.getLevelName(os.getenv(LEVEL_ENV, 'INFO').strip().upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger following project conventions."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(handler)
    logger.setLevel(log_level())
    return logger
