"""
Publish/subscribe channel for document changes

Replaces a backend push mechanism with an explicit contract:
  - Topic = collection path (e.g. "sessions", "sessions/<id>/teams")
  - A subscription first receives a snapshot of the current documents, then changes
  - Delivery is at-least-once with per-document latest-value semantics:
    if a document changes several times before the subscriber drains,
    only its latest event is delivered
  - Pending events are delivered in order of their latest sequence number
"""
import asyncio
import itertools
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


logger = logging.getLogger(__name__)

ADDED = "added"
MODIFIED = "modified"
REMOVED = "removed"


@dataclass
class ChangeEvent:
    """One document change on a topic"""
    topic: str
    doc_id: str
    kind: str
    data: Optional[Dict[str, Any]]
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "doc_id": self.doc_id,
            "kind": self.kind,
            "data": self.data,
            "seq": self.seq,
        }


@dataclass(eq=False)
class Subscription:
    """
    Subscriber handle holding the latest pending event per document.

    Consume with drain() from synchronous code or await get() from a coroutine.
    close() is the teardown signal; a closed subscription receives nothing more.
    """
    bus: "EventBus"
    topic: str
    _pending: "OrderedDict[str, ChangeEvent]" = field(default_factory=OrderedDict)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _waiter: Optional[asyncio.Event] = None
    _loop: Optional[asyncio.AbstractEventLoop] = None
    closed: bool = False

    def _offer(self, event: ChangeEvent) -> None:
        with self._lock:
            if self.closed:
                return
            self._pending.pop(event.doc_id, None)
            self._pending[event.doc_id] = event
            waiter, loop = self._waiter, self._loop

        if waiter is None or loop is None or loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            waiter.set()
        else:
            loop.call_soon_threadsafe(waiter.set)

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self) -> List[ChangeEvent]:
        """Take every pending event, oldest latest-seq first"""
        with self._lock:
            events = list(self._pending.values())
            self._pending.clear()
        return events

    async def get(self, timeout: Optional[float] = None) -> List[ChangeEvent]:
        """
        Wait until at least one event is pending, then drain.

        Returns an empty list on timeout or when the subscription is closed.
        """
        while True:
            with self._lock:
                if self._pending or self.closed:
                    events = list(self._pending.values())
                    self._pending.clear()
                    return events
                if self._waiter is None:
                    self._waiter = asyncio.Event()
                    self._loop = asyncio.get_running_loop()
                waiter = self._waiter
                waiter.clear()
            try:
                await asyncio.wait_for(waiter.wait(), timeout)
            except asyncio.TimeoutError:
                return []

    def close(self) -> None:
        self.bus.unsubscribe(self)


class EventBus:
    """In-process topic registry"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()
        self._seq = itertools.count(1)

    def subscribe(
        self,
        topic: str,
        snapshot: Optional[Iterable[Dict[str, Any]]] = None
    ) -> Subscription:
        """
        Register a subscriber on a topic

        Args:
            topic: Collection path to watch
            snapshot: Current documents of the collection, delivered first as "added"

        Returns:
            Subscription handle
        """
        sub = Subscription(bus=self, topic=topic)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(sub)
            for doc in snapshot or []:
                sub._offer(ChangeEvent(topic, doc["id"], ADDED, doc, next(self._seq)))
        logger.debug(f"Subscribed to {topic}")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with sub._lock:
            sub.closed = True
            waiter, loop = sub._waiter, sub._loop
        with self._lock:
            subs = self._subscribers.get(sub.topic, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subscribers.pop(sub.topic, None)
        if waiter is not None and loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(waiter.set)
        logger.debug(f"Unsubscribed from {sub.topic}")

    def publish(self, topic: str, doc_id: str, kind: str, data: Optional[Dict[str, Any]]) -> ChangeEvent:
        with self._lock:
            event = ChangeEvent(topic, doc_id, kind, data, next(self._seq))
            subs = list(self._subscribers.get(topic, []))
        for sub in subs:
            sub._offer(event)
        return event

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))
