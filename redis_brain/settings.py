"""
redis_brain/settings.py
=======================
Central place for every environment variable name and default used by the
Redis brain.
"""

from __future__ import annotations

import os
from typing import Tuple

from dotenv import load_dotenv

# Load environment variables from .env file without clobbering the real ones
load_dotenv(override=False)

# ------------------------------------------------------------------------------
# Redis discovery
# ------------------------------------------------------------------------------
# Checked in this order; the first non-empty one wins.
REDIS_URL_ENV_VARS: Tuple[str, ...] = (
    "REDISTOGO_URL",
    "REDISCLOUD_URL",
    "BOXEN_REDIS_URL",
    "REDIS_URL",
)
DEFAULT_REDIS_URL: str = "redis://localhost:6379"
DEFAULT_REDIS_PORT: int = 6379

# Any non-empty value turns the ready check off (e.g. behind Twemproxy)
REDIS_NO_CHECK_ENV_VAR: str = "REDIS_NO_CHECK"

# ------------------------------------------------------------------------------
# Brain storage
# ------------------------------------------------------------------------------
DEFAULT_KEY_PREFIX: str = "hubot"
STORAGE_KEY_SUFFIX: str = "storage"

BRAIN_SAVE_INTERVAL: float = float(os.getenv("HUBOT_BRAIN_SAVE_INTERVAL", "5"))

# ------------------------------------------------------------------------------
# Reconnect backoff (seconds)
# ------------------------------------------------------------------------------
REDIS_RECONNECT_BASE: float = 0.1
REDIS_RECONNECT_CAP: float = 10.0
