# events.py
# Observer registry for navigation signals.
# Listeners (UI, detection loop, logger) subscribe by event name.

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

NAV_START  = "navigation:start"
NAV_END    = "navigation:end"
NAV_HALTED = "navigation:halted"
NAV_STEP   = "navigation:step"
NAV_LOG    = "navigation:log"

Listener = Callable[..., Any]


class NavigationEvents:
    """
    Minimal synchronous event bus.

    Usage:
        events = NavigationEvents()
        events.subscribe(NAV_END, lambda **payload: print("done"))
        events.emit(NAV_END, steps=4)
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener) -> None:
        if listener not in self._listeners[name]:
            self._listeners[name].append(listener)

    def unsubscribe(self, name: str, listener: Listener) -> None:
        try:
            self._listeners[name].remove(listener)
        except ValueError:
            pass

    def emit(self, name: str, **payload: Any) -> int:
        """
        Call every listener registered for name.

        Returns:
            Number of listeners that ran without raising.
        """
        delivered = 0
        for listener in list(self._listeners.get(name, ())):
            try:
                listener(**payload)
                delivered += 1
            except Exception:
                logger.exception(f"Listener for '{name}' failed")
        return delivered
