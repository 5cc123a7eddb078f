"""
Backend handle: connection lifecycle and availability for one backend.

A handle owns exactly one session object. ``available`` is the single source
of truth for whether live operations may be routed to the backend, and it only
changes together with ``session`` inside the synchronous ``_attach`` and
``_detach`` methods, so the pair can never be observed out of step. A session dropped by
demotion is closed in the background and awaited by ``disconnect``.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog

from backend_gateway.domain.exceptions import BackendConnectionError
from backend_gateway.domain.models import BackendKind, BackendStatus
from backend_gateway.resilience.retry import RetryConfig, RetryPolicy

logger = structlog.get_logger(__name__)


class BackendHandle(ABC):
    """Abstract handle shared by the document store, cache and broker."""

    kind: BackendKind

    def __init__(self, retry_config: RetryConfig | None = None) -> None:
        self.retry_config = retry_config or RetryConfig()
        self._session: Any | None = None
        self._available = False
        self._last_error: str | None = None
        self._closing: set[asyncio.Task[None]] = set()

    # State

    @property
    def session(self) -> Any | None:
        """The live session, or None when disconnected."""
        return self._session

    @property
    def available(self) -> bool:
        return self._available

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def enabled(self) -> bool:
        """Whether this handle may ever connect. Only the broker can be disabled."""
        return True

    def is_available(self) -> bool:
        """Whether live operations may be routed here now."""
        return self._available

    def status(self) -> BackendStatus:
        """Availability as reported by the health and info surfaces."""
        if not self.enabled:
            return BackendStatus.DISABLED
        if self._available and self._session is not None:
            return BackendStatus.CONNECTED
        return BackendStatus.NOT_CONNECTED

    def _attach(self, session: Any) -> None:
        self._session = session
        self._available = True
        self._last_error = None

    def _detach(self) -> Any | None:
        session = self._session
        self._session = None
        self._available = False
        return session

    # Lifecycle

    async def connect(self) -> bool:
        """Establish the backend session.

        Never raises: a failed connect leaves the handle unavailable and is
        logged. Returns whether the handle is now available.
        """
        if not self.enabled:
            logger.info("Backend disabled, not connecting", backend=self.kind.value)
            return False

        policy = RetryPolicy(self.retry_config, self.kind.value)
        try:
            session = await policy.run(self._open_session)
        except Exception as e:
            self._release(self._detach())
            self._last_error = str(e) or type(e).__name__
            logger.error(
                "Backend not available",
                backend=self.kind.value,
                target=self.describe_target(),
                attempts=policy.attempts,
                error=self._last_error,
            )
            return False

        self._release(self._detach())
        self._attach(session)
        self._register_callbacks(session)
        logger.info(
            "Connected to backend successfully",
            backend=self.kind.value,
            target=self.describe_target(),
            attempts=policy.attempts,
        )
        return True

    def on_error(self, error: BaseException | None = None) -> None:
        """Demote after an asynchronous fault on a live session."""
        was_available = self._available
        self._release(self._detach())
        self._last_error = (
            (str(error) or type(error).__name__) if error else "unknown error"
        )
        if was_available:
            logger.error(
                "Backend connection error",
                backend=self.kind.value,
                error=self._last_error,
            )

    def on_close(self) -> None:
        """Demote after the session terminated."""
        was_available = self._available
        self._release(self._detach())
        if was_available:
            logger.warning("Backend connection closed", backend=self.kind.value)

    def _release(self, session: Any | None) -> None:
        """Close a demoted session in the background."""
        if session is None:
            return
        try:
            task = asyncio.get_running_loop().create_task(self._close_quietly(session))
        except RuntimeError:
            logger.warning(
                "No event loop to close demoted session", backend=self.kind.value
            )
            return
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close_quietly(self, session: Any) -> None:
        try:
            await self._close_session(session)
            logger.debug("Demoted session closed", backend=self.kind.value)
        except Exception as e:
            logger.warning(
                "Error closing demoted session",
                backend=self.kind.value,
                error=str(e),
            )

    async def disconnect(self) -> None:
        """Close the session on shutdown. Errors are logged, not raised.

        Also waits for demoted sessions still being closed.
        """
        session = self._detach()
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
        if session is None:
            return
        try:
            await self._close_session(session)
            logger.info("Backend disconnected", backend=self.kind.value)
        except Exception as e:
            logger.warning(
                "Error during backend disconnection",
                backend=self.kind.value,
                error=str(e),
            )

    def require_session(self) -> Any:
        """Return the live session or raise when the handle is down."""
        session = self._session
        if not self._available or session is None:
            raise BackendConnectionError(
                f"{self.kind.value} not connected", self.kind.value
            )
        return session

    # Backend specific

    @abstractmethod
    async def _open_session(self) -> Any:
        """Create and verify a session. Raise on any failure."""

    @abstractmethod
    async def _close_session(self, session: Any) -> None:
        """Release a session."""

    def _register_callbacks(self, session: Any) -> None:
        """Hook the session's fault notifications to ``on_error``/``on_close``."""

    @abstractmethod
    def describe_target(self) -> str:
        """Endpoint description safe for logs (no credentials)."""


def mask_url(url: str) -> str:
    """Hide the password component of a connection URL."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))
