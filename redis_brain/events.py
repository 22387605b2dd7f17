"""
Minimal observer used to wire the brain, the store and the adapter together.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """
    Manages registration and dispatching of synchronous event handlers.

    Handlers run in registration order on the emitting thread. Exceptions raised
    by a handler are not caught here; they surface at the ``emit`` call site.
    """

    def __init__(self) -> None:
        self.event_handlers: Dict[str, List[Callable[..., Any]]] = defaultdict(list)

    def on(self, event_name: str, handler: Callable[..., Any]) -> None:
        """
        Register an event handler for a specific event.

        Args:
            event_name (str): Name of the event.
            handler (Callable): Function called with the emitted arguments.
        """
        self.event_handlers[event_name].append(handler)
        logger.debug(f"Handler registered for event: {event_name}")

    def once(self, event_name: str, handler: Callable[..., Any]) -> None:
        """Register a handler that is removed after its first call."""

        def wrapper(*args: Any) -> Any:
            self.off(event_name, wrapper)
            return handler(*args)

        self.on(event_name, wrapper)

    def off(self, event_name: str, handler: Callable[..., Any]) -> None:
        handlers = self.event_handlers.get(event_name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def clear_event_handlers(self) -> None:
        """
        Clear all registered event handlers.
        """
        self.event_handlers.clear()
        logger.debug("All event handlers cleared.")

    def emit(self, event_name: str, *args: Any) -> bool:
        """
        Dispatch an event to all registered handlers.

        Args:
            event_name (str): Name of the event.
            *args: Payload passed to every handler.

        Returns:
            bool: True if at least one handler was registered.
        """
        handlers = list(self.event_handlers.get(event_name, []))
        logger.debug(f"Dispatching event: {event_name} to {len(handlers)} handler(s)")
        for handler in handlers:
            handler(*args)
        return bool(handlers)
