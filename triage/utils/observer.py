"""Signal/Observable pub-sub used by stores and the engine facade."""
#
# PURPOSE:
# Stores emit signals when they change; the engine listens and forwards a
# snapshot to presentation subscribers. Presentation never writes back
# through a signal, it calls engine operations instead.
#

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class Signal:
    """
    A simple pure-Python signal.
    """
    def __init__(self, name: str = "signal"):
        self.name = name
        self._observers: List[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> "SubscriptionHandle":
        """Subscribe a callback function."""
        if callback not in self._observers:
            self._observers.append(callback)
        return SubscriptionHandle(self, callback)

    def disconnect(self, callback: Callable[..., Any]):
        """Unsubscribe a callback function."""
        if callback in self._observers:
            self._observers.remove(callback)

    def emit(self, *args, **kwargs):
        """Notify all subscribers."""
        # Copy so a callback may disconnect itself mid-emit
        for callback in list(self._observers):
            try:
                callback(*args, **kwargs)
            except Exception:
                # Prevent one subscriber from breaking the loop
                logger.exception(f"[Signal:{self.name}] Error in observer callback")

    def __len__(self) -> int:
        return len(self._observers)


@dataclass
class SubscriptionHandle:
    """
    Handle returned by Signal.connect() with a guaranteed unsubscribe() method.
    Calling unsubscribe() more than once is harmless.
    """
    _signal: Optional[Signal]
    _callback: Optional[Callable[..., Any]]

    def unsubscribe(self) -> None:
        if self._signal is None or self._callback is None:
            return
        self._signal.disconnect(self._callback)
        self._signal = None
        self._callback = None


class Observable:
    """
    Base class for objects that emit signals.
    Subclasses create their Signal instances in __init__ so observers are
    never shared between instances.
    """
    pass
