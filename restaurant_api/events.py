"""In-process event bus for real-time order notifications.

Services publish, websocket connections subscribe. Delivery is
fire-and-forget: a subscriber that raises is logged and skipped, and the
publisher never sees the error.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

NEW_ORDER = "order:new"
ORDER_STATUS_UPDATE = "order:statusUpdate"


def order_room(order_id: int) -> str:
    return f"order_{order_id}"


class Event:
    def __init__(self, event_type: str, data: Dict[str, Any], room: Optional[str] = None):
        self.event_type = event_type
        self.data = data
        self.room = room
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event_type, "data": self.data}


EventCallback = Callable[[Event], None]


class Subscription:
    def __init__(self, callback: EventCallback):
        self.callback = callback
        self.rooms: Set[str] = set()

    def join(self, room: str) -> None:
        self.rooms.add(room)

    def leave(self, room: str) -> None:
        self.rooms.discard(room)

    def wants(self, event: Event) -> bool:
        return event.room is None or event.room in self.rooms


class EventBus:
    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: EventCallback) -> Subscription:
        sub = Subscription(callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s is not sub]

    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event_type: str, data: Dict[str, Any], room: Optional[str] = None) -> int:
        """Deliver to every interested subscriber; returns how many received it."""
        event = Event(event_type, data, room)
        with self._lock:
            targets = [s for s in self._subscriptions if s.wants(event)]
        delivered = 0
        for sub in targets:
            try:
                sub.callback(event)
                delivered += 1
            except Exception:
                logger.exception("Subscriber failed on %s", event_type)
        logger.debug("Published %s to %d subscribers", event_type, delivered)
        return delivered

    def emit_new_order(self, payload: Dict[str, Any]) -> int:
        return self.publish(NEW_ORDER, payload)

    def emit_order_status_update(self, order_id: int, status: str) -> int:
        return self.publish(ORDER_STATUS_UPDATE, {"orderId": order_id, "status": status}, room=order_room(order_id))
