"""Gateway context: the handles, registry and policy built once at startup."""

import asyncio
import time

import structlog

from backend_gateway.config.settings import ApplicationSettings
from backend_gateway.domain.models import BackendKind
from backend_gateway.infrastructure.backends.base import BackendHandle
from backend_gateway.infrastructure.backends.broker import BrokerHandle
from backend_gateway.infrastructure.backends.cache import CacheHandle
from backend_gateway.infrastructure.backends.document_store import DocumentStoreHandle
from backend_gateway.infrastructure.backends.memory import InMemoryUserStore
from backend_gateway.resilience.fallback import FallbackPolicy
from backend_gateway.resilience.registry import AvailabilityRegistry
from backend_gateway.resilience.retry import RetryConfig

logger = structlog.get_logger(__name__)


class GatewayContext:
    """Owns one handle per backend plus the registry and fallback policy.

    Constructed once and handed to request handlers through the application
    state, instead of living in module globals.
    """

    def __init__(
        self,
        settings: ApplicationSettings,
        handles: list[BackendHandle] | None = None,
        memory_store: InMemoryUserStore | None = None,
    ) -> None:
        self.settings = settings
        if handles is None:
            handles = self._create_handles(settings)

        self.registry = AvailabilityRegistry(handles)
        if memory_store is None:
            memory_store = InMemoryUserStore(seed_users=settings.memory.seed_users)
        self.memory_store = memory_store
        self.policy = FallbackPolicy(
            self.registry,
            self.memory_store,
            operation_timeout=settings.retry.operation_timeout,
        )
        self.started_at = time.monotonic()
        self._lock = asyncio.Lock()
        self._started = False

    @staticmethod
    def _create_handles(settings: ApplicationSettings) -> list[BackendHandle]:
        retry_config = RetryConfig.from_settings(settings.retry)
        return [
            DocumentStoreHandle(settings.mongo, retry_config),
            CacheHandle(settings.redis, retry_config),
            BrokerHandle(settings.broker, retry_config),
        ]

    @property
    def uptime(self) -> float:
        """Seconds since the context was created."""
        return time.monotonic() - self.started_at

    async def start(self) -> dict[str, str]:
        """Connect every backend concurrently. Failures never abort startup."""
        async with self._lock:
            if self._started:
                return self.registry.snapshot()

            handles = self.registry.handles()
            results = await asyncio.gather(
                *(handle.connect() for handle in handles), return_exceptions=True
            )
            for handle, result in zip(handles, results):
                if isinstance(result, BaseException):
                    # connect() logs and swallows its own failures
                    handle.on_error(result)

            self._started = True
            snapshot = self.registry.snapshot()
            logger.info("Backend startup completed", services=snapshot)
            return snapshot

    async def reconnect(self, kind: BackendKind) -> bool:
        """Drop and re-establish one backend session on explicit request."""
        handle = self.registry.handle(kind)
        await handle.disconnect()
        return await handle.connect()

    async def shutdown(self) -> None:
        """Wait for background publishes, then close every session."""
        async with self._lock:
            await self.policy.drain()
            await asyncio.gather(
                *(handle.disconnect() for handle in self.registry.handles())
            )
            self._started = False
            logger.info("All backend handles disconnected")

