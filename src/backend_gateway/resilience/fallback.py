"""
Fallback policy: per-capability choice between the live backend and its substitute.

Every capability follows the same shape:

1. ask the registry whether the relevant backend is available;
2. if it is, run the live operation under the operation timeout;
3. if the live attempt raises, demote the handle via ``on_error`` and answer
   as if the backend had been unavailable from the start;
4. if it was unavailable from the start, go straight to the fallback.

Availability is re-read on every call, so a backend that comes back is used
by the very next request.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from backend_gateway.domain.exceptions import BackendConnectionError
from backend_gateway.domain.models import (
    BackendKind,
    BackendStatus,
    OperationResult,
    QueueStats,
    StorageBackend,
)
from backend_gateway.infrastructure.backends.base import BackendHandle
from backend_gateway.infrastructure.backends.memory import InMemoryUserStore
from backend_gateway.resilience.registry import AvailabilityRegistry

logger = structlog.get_logger(__name__)

T = TypeVar("T")

USER_CREATED_EVENT = "user_created"
CUSTOM_MESSAGE_EVENT = "custom_message"


class FallbackPolicy:
    """Routes each capability to its live backend or to a well-defined fallback."""

    def __init__(
        self,
        registry: AvailabilityRegistry,
        memory_store: InMemoryUserStore,
        operation_timeout: float = 2.0,
    ):
        self.registry = registry
        self.memory_store = memory_store
        self.operation_timeout = operation_timeout
        self._background_tasks: set[asyncio.Task[None]] = set()

    async def _run_live(
        self,
        kind: BackendKind,
        operation: str,
        call: Callable[[Any], Awaitable[T]],
    ) -> T:
        """Run ``call(handle)``; on failure demote the session it ran on and raise."""
        handle: BackendHandle = self.registry.handle(kind)
        session = handle.session
        try:
            return await asyncio.wait_for(call(handle), timeout=self.operation_timeout)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(
                "Live operation failed, using fallback path",
                backend=kind.value,
                operation=operation,
                error=error,
            )
            # A session replaced meanwhile by a reconnect stays up
            if handle.session is session:
                handle.on_error(e)
            raise BackendConnectionError(
                f"{operation} failed on {kind.value}: {error}", kind.value
            ) from e

    # Users

    async def list_users(self) -> OperationResult:
        if self.registry.is_available(BackendKind.DOCUMENT_STORE):
            try:
                users = await self._run_live(
                    BackendKind.DOCUMENT_STORE,
                    "list_users",
                    lambda h: h.list_users(),
                )
                return OperationResult.ok(users, StorageBackend.MONGODB)
            except BackendConnectionError:
                pass

        users = await self.memory_store.list_users()
        return OperationResult.ok(users, StorageBackend.MEMORY)

    async def get_user(self, user_id: str) -> OperationResult:
        """Look up one user. ``data`` is None when the user does not exist."""
        if self.registry.is_available(BackendKind.DOCUMENT_STORE):
            try:
                user = await self._run_live(
                    BackendKind.DOCUMENT_STORE,
                    "get_user",
                    lambda h: h.get_user(user_id),
                )
                return OperationResult.ok(user, StorageBackend.MONGODB)
            except BackendConnectionError:
                pass

        user = await self.memory_store.get_user(user_id)
        return OperationResult.ok(user, StorageBackend.MEMORY)

    async def create_user(self, name: str, email: str) -> OperationResult:
        """Create a user. Expects already validated input."""
        if self.registry.is_available(BackendKind.DOCUMENT_STORE):
            try:
                user = await self._run_live(
                    BackendKind.DOCUMENT_STORE,
                    "create_user",
                    lambda h: h.create_user(name, email),
                )
                logger.info(
                    "New user created", storage=StorageBackend.MONGODB.value, name=name
                )
                self._announce_user_created(name, email)
                return OperationResult.ok(user, StorageBackend.MONGODB)
            except BackendConnectionError:
                pass

        user = await self.memory_store.create_user(name, email)
        logger.info("New user created", storage=StorageBackend.MEMORY.value, name=name)
        return OperationResult.ok(user, StorageBackend.MEMORY)

    def _announce_user_created(self, name: str, email: str) -> None:
        """Fire-and-forget ``user_created`` event; never affects the caller."""
        if not self.registry.is_available(BackendKind.BROKER):
            return

        task = asyncio.create_task(
            self._publish_quietly(USER_CREATED_EVENT, {"name": name, "email": email})
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _publish_quietly(self, event: str, data: Any) -> None:
        try:
            await self._run_live(
                BackendKind.BROKER, "publish", lambda h: h.publish(event, data)
            )
        except BackendConnectionError:
            # Already logged and the broker demoted
            return

    async def drain(self) -> None:
        """Wait for outstanding background publishes."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    # Counter

    async def read_counter(self) -> OperationResult:
        """Counter value, or 0 marked ``not available`` when the cache is down."""
        if self.registry.is_available(BackendKind.CACHE):
            try:
                value = await self._run_live(
                    BackendKind.CACHE, "get_counter", lambda h: h.get_counter()
                )
                return OperationResult.ok(value, StorageBackend.REDIS)
            except BackendConnectionError:
                pass

        return OperationResult.ok(0, StorageBackend.NOT_AVAILABLE)

    async def increment_counter(self) -> OperationResult:
        """Atomic increment on the cache. No local counter is ever substituted."""
        if self.registry.is_available(BackendKind.CACHE):
            try:
                value = await self._run_live(
                    BackendKind.CACHE,
                    "increment_counter",
                    lambda h: h.increment_counter(),
                )
                logger.info("Counter incremented", counter=value)
                return OperationResult.ok(value, StorageBackend.REDIS)
            except BackendConnectionError:
                pass

        return OperationResult.unavailable(
            "Redis not connected", storage=StorageBackend.NOT_AVAILABLE
        )

    # Messaging

    async def publish_message(self, message: Any) -> OperationResult:
        """Publish a custom message; fails when the broker is unavailable."""
        queue = self.registry.handle(BackendKind.BROKER).queue_name
        if self.registry.is_available(BackendKind.BROKER):
            try:
                await self._run_live(
                    BackendKind.BROKER,
                    "publish",
                    lambda h: h.publish(CUSTOM_MESSAGE_EVENT, message),
                )
                return OperationResult.ok({"queue": queue})
            except BackendConnectionError:
                pass

        return OperationResult.unavailable(
            "RabbitMQ not connected", data={"queue": queue}
        )

    async def queue_status(self) -> OperationResult:
        """Passive queue inspection; ``not connected`` whenever it cannot ask."""
        handle = self.registry.handle(BackendKind.BROKER)
        if self.registry.is_available(BackendKind.BROKER):
            try:
                stats = await self._run_live(
                    BackendKind.BROKER, "queue_status", lambda h: h.queue_stats()
                )
                return OperationResult.ok(stats)
            except BackendConnectionError:
                pass

        return OperationResult.ok(
            QueueStats(queue=handle.queue_name, status=BackendStatus.NOT_CONNECTED)
        )
