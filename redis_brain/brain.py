"""
In-memory brain used by the bot: a key-value store that asks to be
persisted through ``save`` events.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

from redis_brain import settings
from redis_brain.events import EventEmitter
from utils.ml_logging import get_logger

logger = get_logger("redis_brain.brain")


class Brain(EventEmitter):
    """
    Bot memory with autosave.

    Events emitted:
        ``save`` (data): the full state should be persisted.
        ``loaded`` (data): state changed through ``set`` or ``merge_data``.
        ``connected``: emitted by the persistence layer once storage is loaded.
        ``close``: the bot is shutting down.
    """

    def __init__(self, save_interval: Optional[float] = None) -> None:
        super().__init__()
        self.data: Dict[str, Any] = {"users": {}, "_private": {}}
        self.auto_save: bool = True
        self.save_interval: float = (
            settings.BRAIN_SAVE_INTERVAL if save_interval is None else save_interval
        )
        self._stop_event = threading.Event()
        self._save_thread: Optional[threading.Thread] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Key-value API
    # ------------------------------------------------------------------
    def set(self, key: str, value: Any) -> "Brain":
        self.data["_private"][key] = value
        self.emit("loaded", self.data)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self.data["_private"].get(key, default)

    def remove(self, key: str) -> "Brain":
        self.data["_private"].pop(key, None)
        return self

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------
    def save(self) -> None:
        """Ask listeners to persist the whole brain."""
        self.emit("save", self.data)

    def set_auto_save(self, enabled: bool) -> None:
        self.auto_save = bool(enabled)
        logger.debug(f"Brain autosave {'enabled' if self.auto_save else 'disabled'}")

    def merge_data(self, data: Optional[Mapping[str, Any]]) -> None:
        """
        Merge stored data into the brain.

        Top-level keys from ``data`` replace the brain's keys of the same name;
        keys missing from ``data`` are kept.
        """
        for key, value in (data or {}).items():
            self.data[key] = value
        self.emit("loaded", self.data)

    def autosave(self) -> bool:
        """Run one autosave tick. Returns True if a save was emitted."""
        if not self.auto_save:
            return False
        self.save()
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> "Brain":
        """Start the background autosave loop."""
        if self._save_thread and self._save_thread.is_alive():
            return self
        self._stop_event.clear()
        self._save_thread = threading.Thread(
            target=self._save_loop, name="brain-autosave", daemon=True
        )
        self._save_thread.start()
        return self

    def reset_save_interval(self, seconds: float) -> None:
        self.save_interval = seconds
        if self._save_thread and self._save_thread.is_alive():
            self._stop()
            self.start()

    def close(self) -> None:
        """Stop autosaving, persist one last time and announce shutdown."""
        if self._closed:
            return
        self._closed = True
        self._stop()
        self.save()
        self.emit("close")

    def _stop(self) -> None:
        self._stop_event.set()
        thread = self._save_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=self.save_interval + 1)
        self._save_thread = None

    def _save_loop(self) -> None:
        """Background thread: emit a save every ``save_interval`` seconds while autosave is on."""
        while not self._stop_event.wait(self.save_interval):
            try:
                self.autosave()
            except Exception as e:
                logger.error(f"Brain autosave failed: {e}", exc_info=True)
