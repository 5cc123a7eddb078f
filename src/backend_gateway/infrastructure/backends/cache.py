"""
Redis handle for the shared request counter.

The client's own retry behaviour is switched off; connect attempts are
governed by the handle's explicit retry policy instead.
"""

import redis.asyncio as redis

from backend_gateway.config.settings import RedisSettings
from backend_gateway.domain.models import BackendKind
from backend_gateway.infrastructure.backends.base import BackendHandle, mask_url
from backend_gateway.resilience.retry import RetryConfig


class CacheHandle(BackendHandle):
    """Handle owning the Redis client."""

    kind = BackendKind.CACHE

    def __init__(
        self, settings: RedisSettings, retry_config: RetryConfig | None = None
    ):
        super().__init__(retry_config)
        self.settings = settings

    def describe_target(self) -> str:
        if self.settings.url:
            return mask_url(self.settings.url)
        return f"{self.settings.host}:{self.settings.port}"

    async def _open_session(self) -> redis.Redis:
        client = redis.from_url(
            self.settings.connection_url,
            socket_timeout=self.settings.socket_timeout,
            socket_connect_timeout=self.settings.socket_timeout,
            retry_on_timeout=False,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        return client

    async def _close_session(self, session: redis.Redis) -> None:
        await session.aclose()

    async def get_counter(self) -> int:
        """Current counter value, 0 when never incremented."""
        client: redis.Redis = self.require_session()
        value = await client.get(self.settings.counter_key)
        return int(value) if value is not None else 0

    async def increment_counter(self) -> int:
        """Atomically increment the counter on the server."""
        client: redis.Redis = self.require_session()
        return int(await client.incr(self.settings.counter_key))
