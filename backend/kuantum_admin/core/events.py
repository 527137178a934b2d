"""
Order change notifications

Listeners registered here are called after every successful lifecycle
operation, independently of any transport (websocket push, cache
invalidation, realtime channel, ...).
"""
import logging
import threading
from typing import Callable, List

from kuantum_admin.domain.events import OrderChanged

logger = logging.getLogger(__name__)

OrderListener = Callable[[OrderChanged], None]


class OrderEventBus:
    """In-process publish/subscribe for OrderChanged events"""

    def __init__(self):
        self._listeners: List[OrderListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: OrderListener) -> Callable[[], None]:
        """Register listener; returns a callable that unsubscribes it"""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: OrderChanged) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # A failing listener must not fail the operation that already happened
                logger.exception(f"Order listener failed for {event.action} on order {event.order_id}")


order_events = OrderEventBus()
