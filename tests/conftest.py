"""
Shared mock collaborators for the redis brain tests.
"""

from concurrent.futures import Future
from typing import Any, Dict, List, Optional

import pytest
from redis.exceptions import AuthenticationError

from redis_brain.events import EventEmitter


class MockStore(EventEmitter):
    """In-memory stand-in for RedisStore. ``backend`` plays the Redis keyspace."""

    def __init__(
        self,
        backend: Optional[Dict[str, str]] = None,
        password: Optional[str] = None,
        get_error: Optional[Exception] = None,
        connect_error: Optional[Exception] = None,
        auto_connect: bool = True,
    ):
        super().__init__()
        self.backend = {} if backend is None else backend
        self.password = password
        self.get_error = get_error
        self.connect_error = connect_error
        self.auto_connect = auto_connect
        self.calls: List[tuple] = []

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def connect(self) -> bool:
        """Mock connect: emits connect/error like the real store."""
        self.calls.append(("connect",))
        if self.connect_error is not None:
            self.emit("error", self.connect_error)
            return False
        if self.auto_connect:
            self.emit("connect")
        return True

    def auth(self, password: str) -> None:
        self.calls.append(("auth", password))
        if password != self.password:
            raise AuthenticationError("invalid username-password pair")

    def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        if self.get_error is not None:
            raise self.get_error
        return self.backend.get(key)

    def set(self, key: str, value: str) -> Future:
        self.calls.append(("set", key, value))
        self.backend[key] = value
        future: Future = Future()
        future.set_result(True)
        return future

    def quit(self) -> None:
        self.calls.append(("quit",))


class MockBrain(EventEmitter):
    """Brain double that records the persistence contract calls."""

    def __init__(self):
        super().__init__()
        self.auto_save_calls: List[bool] = []
        self.merged: List[Dict[str, Any]] = []
        self.emitted: List[str] = []

    @property
    def auto_save(self) -> Optional[bool]:
        return self.auto_save_calls[-1] if self.auto_save_calls else None

    def set_auto_save(self, enabled: bool) -> None:
        self.auto_save_calls.append(enabled)

    def merge_data(self, data: Dict[str, Any]) -> None:
        self.merged.append(data)

    def emit(self, event_name: str, *args: Any) -> bool:
        self.emitted.append(event_name)
        return super().emit(event_name, *args)


@pytest.fixture
def backend():
    """Fixture providing a shared fake keyspace."""
    return {}


@pytest.fixture
def mock_store(backend):
    """Fixture providing a mock store over the shared keyspace."""
    return MockStore(backend)


@pytest.fixture
def mock_brain():
    """Fixture providing a recording brain."""
    return MockBrain()
