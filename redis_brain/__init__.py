"""
Redis Brain Package

Persists a chat bot's in-memory brain to Redis:
- Connection URL discovery from the environment
- Initial load and merge of the stored brain
- Full-state writes on every brain save
"""

from .adapter import AdapterState, RedisBrain, setup
from .brain import Brain
from .config import ConnectionConfig, get_redis_env, parse_redis_url, resolve_redis_url
from .events import EventEmitter
from .exceptions import BrainLoadError, ConfigurationError, RedisBrainError
from .store import RedisStore

__all__ = [
    "AdapterState",
    "Brain",
    "BrainLoadError",
    "ConfigurationError",
    "ConnectionConfig",
    "EventEmitter",
    "RedisBrain",
    "RedisBrainError",
    "RedisStore",
    "get_redis_env",
    "parse_redis_url",
    "resolve_redis_url",
    "setup",
]

__version__ = "1.0.0"
