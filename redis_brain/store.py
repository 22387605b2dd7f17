import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

import redis
from opentelemetry import trace
from opentelemetry.trace import SpanKind
from redis.backoff import AbstractBackoff, ExponentialBackoff
from redis.exceptions import AuthenticationError, RedisError

from redis_brain import settings
from redis_brain.config import ConnectionConfig
from redis_brain.events import EventEmitter
from utils.ml_logging import get_logger


class RedisStore(EventEmitter):
    """
    RedisStore owns the single Redis connection used to persist the brain.

    Events emitted:
        ``connect``: the transport is up (and passed the ready check unless skipped).
        ``error`` (exception): a connection attempt failed. The store keeps
            retrying in the background until it connects or is closed.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        client_factory: Optional[Callable[..., Any]] = None,
        backoff: Optional[AbstractBackoff] = None,
    ):
        """
        Build the redis-py client for ``config``. No I/O happens until ``connect``.

        Args:
            config (ConnectionConfig): Parsed connection settings.
            client_factory (Callable, optional): Replaces ``redis.Redis``.
            backoff (AbstractBackoff, optional): Delay between reconnect attempts.
        """
        super().__init__()
        self.logger = get_logger(__name__)
        self.config = config
        self.tracer = trace.get_tracer(__name__)
        self.backoff = backoff or ExponentialBackoff(
            cap=settings.REDIS_RECONNECT_CAP, base=settings.REDIS_RECONNECT_BASE
        )
        self._client_factory = client_factory or redis.Redis
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="redis-brain-writer")
        self._stop_event = threading.Event()
        self._reconnect_thread: Optional[threading.Thread] = None
        self._last_error: Optional[BaseException] = None
        self._closed = False
        self._create_client()

    def _redis_span(self, name: str, op: Optional[str] = None):
        return self.tracer.start_as_current_span(
            name,
            kind=SpanKind.CLIENT,
            attributes={
                "peer.service": "redis",
                "server.address": self.config.hostname or self.config.socket_path or "",
                "server.port": self.config.port or 0,
                "db.system": "redis",
                **({"db.operation": op} if op else {}),
            },
        )

    def _create_client(self):
        """Create self.redis_client. The password is installed later by ``auth``."""
        # lib_name/lib_version off: CLIENT SETINFO would fail with NOAUTH before AUTH
        options = {
            "decode_responses": True,
            "lib_name": None,
            "lib_version": None,
        }
        if self.config.uses_socket:
            self.redis_client = self._client_factory(
                unix_socket_path=self.config.socket_path, **options
            )
        else:
            self.redis_client = self._client_factory(
                host=self.config.hostname,
                port=self.config.port,
                ssl=self.config.ssl,
                **options,
            )
        self.logger.debug(f"Redis client created for {self.config.describe()}")

    def connect(self) -> bool:
        """
        Open the transport and emit ``connect``. On failure emit ``error`` and
        keep retrying on a background thread.

        Returns:
            bool: True if the first attempt connected.
        """
        if self._open():
            self.emit("connect")
            return True
        self._start_reconnect_loop()
        return False

    def _open(self) -> bool:
        """One connection attempt. Failures are emitted as ``error`` events."""
        try:
            with self._redis_span("Redis.CONNECT", "CONNECT"):
                if self.config.skip_ready_check:
                    pool = self.redis_client.connection_pool
                    pool.release(pool.get_connection("PING"))
                else:
                    self.redis_client.ping()
        except (RedisError, OSError) as exc:
            self._last_error = exc
            self.emit("error", exc)
            return False
        self._last_error = None
        return True

    def _should_retry(self) -> bool:
        # a rejected or missing password will not fix itself
        return not self._closed and not isinstance(self._last_error, AuthenticationError)

    def _start_reconnect_loop(self):
        if not self._should_retry() or (
            self._reconnect_thread and self._reconnect_thread.is_alive()
        ):
            return
        self.logger.info(
            f"Redis at {self.config.describe()} is not reachable, retrying in the background"
        )
        self._reconnect_thread = threading.Thread(
            target=self._reconnect_loop, name="redis-brain-reconnect", daemon=True
        )
        self._reconnect_thread.start()

    def _reconnect_loop(self):
        """Background thread: back off, retry, emit ``connect`` on the first success."""
        self.backoff.reset()
        failures = 1
        while not self._stop_event.wait(self.backoff.compute(failures)):
            self.logger.debug(f"Reconnect attempt {failures} to {self.config.describe()}")
            if self._open():
                self.logger.info(f"Connected to Redis at {self.config.describe()}")
                self.emit("connect")
                return
            if not self._should_retry():
                self.logger.error(f"Giving up on Redis at {self.config.describe()}: {self._last_error}")
                return
            failures += 1

    def auth(self, password: str) -> None:
        """
        Authenticate every current and future connection with ``password``.

        Raises:
            redis.exceptions.AuthenticationError: Wrong password.
            redis.exceptions.RedisError: Any other failure while verifying.
        """
        with self._redis_span("Redis.AUTH", "AUTH"):
            pool = self.redis_client.connection_pool
            previous = pool.connection_kwargs.get("password")
            pool.connection_kwargs["password"] = password
            pool.disconnect()
            try:
                self.redis_client.ping()
            except RedisError:
                pool.connection_kwargs["password"] = previous
                raise

    def get(self, key: str) -> Optional[str]:
        """Get a string value from Redis."""
        with self._redis_span("Redis.GET", "GET"):
            value = self.redis_client.get(key)
            return value.decode() if isinstance(value, bytes) else value

    def set(self, key: str, value: str) -> Optional[Future]:
        """
        Queue a SET on the writer thread and return immediately.

        Returns:
            Future: resolves to the SET reply or holds the error. None once closed.
        """
        if self._closed:
            self.logger.debug(f"Dropping write to {key}: store is closed")
            return None
        return self._writer.submit(self._write, key, value)

    def _write(self, key: str, value: str) -> bool:
        with self._redis_span("Redis.SET", "SET"):
            return self.redis_client.set(key, value)

    def quit(self) -> None:
        """Stop reconnecting, flush queued writes, send QUIT and release the connection."""
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        thread = self._reconnect_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=settings.REDIS_RECONNECT_CAP + 1)
        self._writer.shutdown(wait=True)
        try:
            with self._redis_span("Redis.QUIT", "QUIT"):
                self.redis_client.quit()
        except RedisError as e:
            self.logger.debug(f"QUIT failed, closing anyway: {e}")
        finally:
            self.redis_client.close()
        self.logger.info(f"Redis connection to {self.config.describe()} closed")
