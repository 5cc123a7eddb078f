"""Test configuration and fixtures.

Backends are replaced by in-process fakes built on the real ``BackendHandle``
so the connect/demote lifecycle under test is the production one; only the
session creation and the backend operations are faked.
"""

import asyncio
import os
from typing import Any

import pytest
import pytest_asyncio

# Set required environment variables for tests
os.environ["ENVIRONMENT"] = "testing"

from backend_gateway.config.settings import (  # noqa: E402
    LogLevel,
    ObservabilitySettings,
    TestingSettings,
)
from backend_gateway.domain.models import BackendKind, QueueStats, User  # noqa: E402
from backend_gateway.infrastructure.backends.base import BackendHandle  # noqa: E402
from backend_gateway.infrastructure.backends.memory import (  # noqa: E402
    InMemoryUserStore,
)
from backend_gateway.resilience.fallback import FallbackPolicy  # noqa: E402
from backend_gateway.resilience.registry import AvailabilityRegistry  # noqa: E402
from backend_gateway.resilience.retry import RetryConfig  # noqa: E402

FAST_RETRY = RetryConfig(max_attempts=1, base_delay=0.0, attempt_timeout=1.0)


class FakeSession:
    """Stand-in for a client/connection object."""

    def __init__(self, kind: BackendKind):
        self.kind = kind


class FakeHandle(BackendHandle):
    """Handle whose session is a ``FakeSession``.

    ``fail_connect`` makes every connect attempt raise; ``broken`` makes every
    live operation raise; ``hang`` makes every live operation block.
    """

    def __init__(self, enabled: bool = True, retry_config: RetryConfig = FAST_RETRY):
        super().__init__(retry_config)
        self._enabled = enabled
        self.fail_connect = False
        self.broken = False
        self.hang = False
        self.open_calls = 0
        self.closed: list[FakeSession] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def describe_target(self) -> str:
        return f"fake://{self.kind.value}"

    async def _open_session(self) -> FakeSession:
        self.open_calls += 1
        if self.fail_connect:
            raise ConnectionRefusedError("connection refused")
        return FakeSession(self.kind)

    async def _close_session(self, session: FakeSession) -> None:
        self.closed.append(session)

    async def _operate(self) -> None:
        self.require_session()
        if self.hang:
            await asyncio.sleep(10)
        if self.broken:
            raise ConnectionResetError("socket closed")


class FakeDocumentStore(FakeHandle):
    kind = BackendKind.DOCUMENT_STORE

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self.users: list[User] = []

    async def list_users(self) -> list[User]:
        await self._operate()
        return list(reversed(self.users))

    async def get_user(self, user_id: str) -> User | None:
        await self._operate()
        return next((u for u in self.users if u.id == user_id), None)

    async def create_user(self, name: str, email: str) -> User:
        await self._operate()
        user = User(id=f"doc-{len(self.users) + 1}", name=name, email=email)
        self.users.append(user)
        return user


class FakeCache(FakeHandle):
    kind = BackendKind.CACHE

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self.counter = 0

    async def get_counter(self) -> int:
        await self._operate()
        return self.counter

    async def increment_counter(self) -> int:
        await self._operate()
        self.counter += 1
        return self.counter


class FakeBroker(FakeHandle):
    kind = BackendKind.BROKER
    queue_name = "task_queue"

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self.published: list[tuple[str, Any]] = []
        self.message_count = 0

    async def publish(self, event: str, data: Any) -> None:
        await self._operate()
        self.published.append((event, data))
        self.message_count += 1

    async def queue_stats(self) -> QueueStats:
        await self._operate()
        return QueueStats(
            queue=self.queue_name, message_count=self.message_count, consumer_count=0
        )


@pytest.fixture
def settings(tmp_path):
    """Testing settings with logs written under a temporary directory."""
    return TestingSettings(
        observability=ObservabilitySettings(
            log_dir=str(tmp_path / "logs"), log_level=LogLevel.WARNING
        )
    )


@pytest.fixture
def document_store():
    return FakeDocumentStore()


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def handles(document_store, cache, broker):
    return [document_store, cache, broker]


@pytest.fixture
def registry(handles):
    return AvailabilityRegistry(handles)


@pytest.fixture
def memory_store():
    return InMemoryUserStore()


@pytest.fixture
def policy(registry, memory_store):
    return FallbackPolicy(registry, memory_store, operation_timeout=0.05)


@pytest_asyncio.fixture
async def connected(handles):
    """Connect every fake handle."""
    for handle in handles:
        await handle.connect()
    return handles
