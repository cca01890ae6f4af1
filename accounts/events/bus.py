"""In-process fire-and-forget event bus."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Callable, DefaultDict, Protocol

from ..schemas.events import AccountEvent, EventName

logger = logging.getLogger(__name__)

EventHandler = Callable[[AccountEvent], None]


class EventBus(Protocol):
    """Channel the account store publishes lifecycle events to.

    ``publish`` should return once the event is handed off. The store logs and
    discards anything it raises.
    """

    def publish(self, event: AccountEvent) -> None: ...


class ThreadedEventBus:
    """Deliver events to in-process subscribers off the publishing thread.

    Every handler owns a single delivery thread, so it receives events in the
    order they were published, across all the event names it subscribed to.
    Pending deliveries are queued without bound while a handler is slow.
    """

    def __init__(self) -> None:
        """Initialise per-event subscriber lists and per-handler executors."""
        self._handlers: DefaultDict[EventName, list[EventHandler]] = defaultdict(list)
        self._executors: dict[EventHandler, ThreadPoolExecutor] = {}
        self._lock = Lock()
        self._closed = False

    def subscribe(self, name: EventName, handler: EventHandler) -> None:
        """Register ``handler`` for events called ``name``."""
        with self._lock:
            if self._closed:
                raise RuntimeError("event bus is shut down")
            if handler not in self._executors:
                self._executors[handler] = ThreadPoolExecutor(max_workers=1, thread_name_prefix="account-events")
            self._handlers[name].append(handler)

    def publish(self, event: AccountEvent) -> None:
        """Schedule delivery of ``event`` to every subscriber and return immediately."""
        with self._lock:
            if self._closed:
                logger.warning("event bus shut down, dropping %s for %s", event.name.value, event.account.account_id)
                return
            # submit under the lock so concurrent publishers keep a single order
            for handler in self._handlers.get(event.name, ()):
                self._executors[handler].submit(self._deliver, handler, event)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events, optionally waiting for in-flight deliveries."""
        with self._lock:
            self._closed = True
            executors = list(self._executors.values())
        for executor in executors:
            executor.shutdown(wait=wait)

    @staticmethod
    def _deliver(handler: EventHandler, event: AccountEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception("subscriber %r failed handling %s", handler, event.name.value)
