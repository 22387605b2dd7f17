"""
Persist the bot's brain to Redis.

:class:`RedisBrain` sits between a :class:`~redis_brain.brain.Brain` and a
:class:`~redis_brain.store.RedisStore`:

- on ``connect`` it authenticates (when the URL carries credentials) and loads
  ``<prefix>:storage`` into the brain,
- on the brain's ``save`` it writes the full state back,
- on the brain's ``close`` it closes the connection.

Autosave stays off from construction until the stored brain has been merged.
"""

from __future__ import annotations

import json
import logging
import re
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from redis.exceptions import RedisError

from redis_brain.config import ConnectionConfig, load_connection_config
from redis_brain.exceptions import BrainLoadError
from redis_brain.store import RedisStore
from utils.ml_logging import get_logger

logger = get_logger("redis_brain.adapter")

CONNECTION_REFUSED = re.compile(r"ECONNREFUSED|Connection refused", re.IGNORECASE)


class AdapterState(Enum):
    INIT = "init"
    AWAITING_CONNECT = "awaiting_connect"
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


def is_connection_refused(error: BaseException) -> bool:
    """True for connection-refused errors, including ones wrapped by redis-py."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        if CONNECTION_REFUSED.search(str(current)):
            return True
        current = current.__cause__ or current.__context__
    return False


class RedisBrain:
    """
    Bridges a brain to the Redis store holding its persisted state.
    """

    def __init__(
        self,
        brain: Any,
        environ: Optional[Mapping[str, str]] = None,
        config: Optional[ConnectionConfig] = None,
        store: Optional[Any] = None,
        store_factory: Optional[Callable[[ConnectionConfig], Any]] = None,
    ) -> None:
        """
        Wire the brain and the store together. Nothing is sent to Redis yet.

        Parameters:
        brain: object with ``set_auto_save``, ``merge_data``, ``emit`` and ``on``
        environ (Mapping): environment used to find the URL (default: os.environ)
        config (ConnectionConfig): skip URL discovery and use this config
        store: ready-made store collaborator (default: built by store_factory)
        store_factory (Callable): builds the store from the config (default: RedisStore)
        """
        self.brain = brain
        self.config: ConnectionConfig = config or load_connection_config(environ)
        self.store = store or (store_factory or RedisStore)(self.config)
        self.state: AdapterState = AdapterState.INIT
        self.logger = logging.LoggerAdapter(logger, {"brain_prefix": self.config.key_prefix})

        self.store.on("connect", self.on_connect)
        self.store.on("error", self.on_error)
        self.brain.on("save", self.on_save)
        self.brain.on("close", self.on_close)

        self.brain.set_auto_save(False)

    @property
    def storage_key(self) -> str:
        return self.config.storage_key

    @property
    def key_prefix(self) -> str:
        return self.config.key_prefix

    def start(self) -> "RedisBrain":
        """Open the connection; loading follows from the ``connect`` event."""
        if self.state is not AdapterState.INIT:
            return self
        self.state = AdapterState.AWAITING_CONNECT
        self.store.connect()
        return self

    # ------------------------------------------------------------------
    # Store events
    # ------------------------------------------------------------------
    def on_connect(self) -> None:
        if self.state is not AdapterState.AWAITING_CONNECT:
            self.logger.debug(f"Ignoring connect event in state {self.state}")
            return
        self.logger.debug("Successfully connected to Redis")
        if self.config.has_credentials:
            self.authenticate()
        else:
            self.load()

    def on_error(self, error: BaseException) -> None:
        if is_connection_refused(error):
            return
        self.logger.error(f"Redis error: {error}", exc_info=error)

    def authenticate(self) -> bool:
        """
        Send the URL password and load the brain once it is accepted.

        Returns:
            bool: True if authentication succeeded.
        """
        if self.config.auth_handled:
            return True
        if self.config.auth_secret is None:
            self.logger.error("Failed to authenticate to Redis: no password in the Redis URL")
            return False
        try:
            self.store.auth(self.config.auth_secret)
        except RedisError as e:
            self.logger.error(f"Failed to authenticate to Redis: {e}")
            return False

        self.config.auth_handled = True
        self.logger.info("Successfully authenticated to Redis")
        self.load()
        return True

    def load(self) -> None:
        """
        Read ``<prefix>:storage`` and merge it into the brain.

        Raises:
            BrainLoadError: the read failed or the stored value is not JSON.
        """
        self.state = AdapterState.LOADING
        key = self.storage_key
        try:
            reply = self.store.get(key)
        except RedisError as e:
            raise BrainLoadError(key, str(e)) from e

        if reply:
            try:
                stored = json.loads(reply)
            except ValueError as e:
                raise BrainLoadError(key, f"stored brain is not valid JSON: {e}") from e
            self.logger.info(f"Data for {self.key_prefix} brain retrieved from Redis")
            self.brain.merge_data(stored)
        else:
            self.logger.info(f"Initializing new data for {self.key_prefix} brain")
            self.brain.merge_data({})

        self.state = AdapterState.READY
        self.brain.emit("connected")
        self.brain.set_auto_save(True)

    # ------------------------------------------------------------------
    # Brain events
    # ------------------------------------------------------------------
    def on_save(self, data: Optional[Mapping[str, Any]] = None) -> Optional[Future]:
        if self.state is not AdapterState.READY:
            # nothing is written until the stored brain has been merged
            self.logger.debug(f"Skipping save in state {self.state}")
            return None
        if data is None:
            data = {}
        return self.store.set(self.storage_key, json.dumps(data))

    def on_close(self) -> None:
        if self.state is AdapterState.CLOSED:
            return
        self.state = AdapterState.CLOSED
        self.store.quit()


def setup(brain: Any, environ: Optional[Mapping[str, str]] = None) -> RedisBrain:
    """Attach Redis persistence to ``brain`` and connect."""
    return RedisBrain(brain, environ=environ).start()
