"""Redis pub/sub event bus."""

from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from ..schemas.events import AccountEvent

logger = logging.getLogger(__name__)


class RedisEventBus:
    """Publish account events as JSON messages on a Redis channel."""

    def __init__(self, client: Redis, *, channel: str = "accounts.events") -> None:
        """Store the Redis client and the channel events are published to."""
        self._client = client
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    def publish(self, event: AccountEvent) -> None:
        """Publish ``event``; connection problems are logged and the event dropped."""
        try:
            self._client.publish(self._channel, event.model_dump_json())
        except RedisError as exc:
            logger.warning(
                "failed to publish %s for %s on %s: %s",
                event.name.value,
                event.account.account_id,
                self._channel,
                exc,
            )
