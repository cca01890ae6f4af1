"""Event sinks for account lifecycle notifications."""

from .bus import EventBus, EventHandler, ThreadedEventBus
from .redis_bus import RedisEventBus

__all__ = [
    "EventBus",
    "EventHandler",
    "ThreadedEventBus",
    "RedisEventBus",
]
