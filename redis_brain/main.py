"""
redis_brain/main.py
===================
Run a brain persisted to Redis until SIGINT/SIGTERM.

    python -m redis_brain.main
"""

from __future__ import annotations

import os
import signal
import threading
from typing import Mapping, Optional

from redis_brain.adapter import RedisBrain
from redis_brain.brain import Brain
from utils.ml_logging import configure_azure_monitor, get_logger

logger = get_logger("redis_brain.main")


def run(
    environ: Optional[Mapping[str, str]] = None,
    stop_event: Optional[threading.Event] = None,
) -> Brain:
    """
    Start a brain with Redis persistence and block until ``stop_event`` is set.

    Returns the closed brain.
    """
    stop_event = stop_event or threading.Event()
    brain = Brain()
    brain.once("connected", lambda: logger.keyinfo("Brain connected to Redis"))

    adapter = RedisBrain(brain, environ=environ)
    brain.start()
    adapter.start()

    try:
        stop_event.wait()
    finally:
        logger.info("Shutting down brain")
        brain.close()
    return brain


def main() -> None:
    configure_azure_monitor("redis_brain")
    stop_event = threading.Event()

    def _handle_signal(signum, _frame):
        logger.info(f"Received signal {signum}")
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    run(os.environ, stop_event)


if __name__ == "__main__":
    main()
