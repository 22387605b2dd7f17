"""
Connection configuration for the Redis brain.

Turns the process environment into a :class:`ConnectionConfig`:

- ``get_redis_env`` picks which environment variable holds the URL,
- ``resolve_redis_url`` falls back to a local Redis when none is set,
- ``parse_redis_url`` understands the TCP, authenticated TCP and unix socket
  URL forms.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote, urlsplit

from redis_brain import settings
from redis_brain.exceptions import ConfigurationError
from utils.ml_logging import get_logger

logger = get_logger("redis_brain.config")

SUPPORTED_SCHEMES = ("redis", "rediss", "unix")


@dataclass
class ConnectionConfig:
    """Where the brain lives and how to reach it."""

    url: str
    hostname: str = ""
    port: Optional[int] = None
    socket_path: Optional[str] = None
    auth_secret: Optional[str] = None
    has_credentials: bool = False
    key_prefix: str = settings.DEFAULT_KEY_PREFIX
    skip_ready_check: bool = False
    ssl: bool = False
    auth_handled: bool = False

    @property
    def uses_socket(self) -> bool:
        return not self.hostname

    @property
    def storage_key(self) -> str:
        return f"{self.key_prefix}:{settings.STORAGE_KEY_SUFFIX}"

    def describe(self) -> str:
        """Location string safe for logs (no secret)."""
        if self.uses_socket:
            return f"unix://{self.socket_path}"
        return f"{self.hostname}:{self.port}"


def get_redis_env(environ: Mapping[str, str]) -> Optional[str]:
    """
    Return the name of the highest-priority Redis URL variable that is set.

    Args:
        environ (Mapping[str, str]): Environment to inspect.

    Returns:
        Optional[str]: Variable name, or None when none of them has a value.
    """
    for name in settings.REDIS_URL_ENV_VARS:
        if environ.get(name):
            return name
    return None


def resolve_redis_url(environ: Mapping[str, str]) -> Tuple[Optional[str], str]:
    """Return ``(variable_name, url)``; the URL defaults to a local Redis."""
    env_name = get_redis_env(environ)
    if env_name is None:
        return None, settings.DEFAULT_REDIS_URL
    return env_name, environ[env_name]


def parse_redis_url(url: str, skip_ready_check: bool = False) -> ConnectionConfig:
    """
    Parse a Redis URL into a :class:`ConnectionConfig`.

    Accepted forms::

        redis://<host>:<port>[/<prefix>]
        redis://:<password>@<host>:<port>[/<prefix>]
        redis://<socketpath>[?<prefix>]

    Args:
        url (str): Connection URL.
        skip_ready_check (bool): Operator override asking to skip the ready check.
            Only honoured for TCP connections.

    Raises:
        ConfigurationError: Unknown scheme, bad port, or a socket URL without a path.
    """
    parts = urlsplit(url)
    if parts.scheme not in SUPPORTED_SCHEMES:
        raise ConfigurationError(
            f"Unsupported Redis URL scheme '{parts.scheme}'. Valid options: {list(SUPPORTED_SCHEMES)}"
        )

    hostname = parts.hostname or ""

    if not hostname:
        if not parts.path:
            raise ConfigurationError(f"Redis socket URL has no socket path: {url}")
        return ConnectionConfig(
            url=url,
            socket_path=parts.path,
            key_prefix=parts.query or settings.DEFAULT_KEY_PREFIX,
        )

    try:
        port = parts.port or settings.DEFAULT_REDIS_PORT
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in Redis URL: {exc}") from exc

    has_credentials = bool(parts.username or parts.password)
    auth_secret = unquote(parts.password) if parts.password is not None else None

    path = parts.path[1:] if parts.path.startswith("/") else parts.path

    return ConnectionConfig(
        url=url,
        hostname=hostname,
        port=port,
        auth_secret=auth_secret,
        has_credentials=has_credentials,
        key_prefix=path or settings.DEFAULT_KEY_PREFIX,
        skip_ready_check=has_credentials or skip_ready_check,
        ssl=parts.scheme == "rediss",
    )


def load_connection_config(environ: Optional[Mapping[str, str]] = None) -> ConnectionConfig:
    """
    Resolve and parse the connection config from the environment.

    Args:
        environ (Mapping[str, str], optional): Defaults to ``os.environ``.
    """
    environ = os.environ if environ is None else environ

    env_name, url = resolve_redis_url(environ)
    if env_name:
        logger.info(f"Discovered redis from {env_name} environment variable")
    else:
        logger.info("Using default redis on localhost:6379")

    no_check = bool(environ.get(settings.REDIS_NO_CHECK_ENV_VAR))
    if no_check:
        logger.info("Turning off redis ready checks")

    config = parse_redis_url(url, skip_ready_check=no_check)
    logger.debug(
        f"Redis location={config.describe()} prefix={config.key_prefix} "
        f"credentials={config.has_credentials} skip_ready_check={config.skip_ready_check}"
    )
    return config
