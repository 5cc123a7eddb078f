"""Bounded retry policy for establishing backend sessions."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
)

from backend_gateway.config.settings import RetrySettings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryConfig(BaseModel):
    """How many connect attempts a handle makes and how long it waits between them."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay: float = Field(default=0.1, ge=0.0)
    max_delay: float = Field(default=2.0, ge=0.0)
    attempt_timeout: float = Field(default=5.0, gt=0.0)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryConfig":
        return cls(
            max_attempts=settings.connect_max_attempts,
            base_delay=settings.connect_base_delay,
            max_delay=settings.connect_max_delay,
            attempt_timeout=settings.connect_timeout,
        )


class RetryPolicy:
    """Runs a connect coroutine until it succeeds or the attempt budget is spent.

    Each attempt is bounded by ``attempt_timeout``; a timeout counts as a
    failed attempt. After the last failure the original error is re-raised.
    """

    def __init__(self, config: RetryConfig, backend: str):
        self.config = config
        self.backend = backend
        self.attempts = 0

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Connect attempt failed, retrying",
            backend=self.backend,
            attempt=retry_state.attempt_number,
            max_attempts=self.config.max_attempts,
            error=str(error) if error else None,
        )

    async def run(self, func: Callable[[], Awaitable[T]]) -> T:
        """Call ``func`` under the retry budget."""
        self.attempts = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(
                multiplier=self.config.base_delay, max=self.config.max_delay
            ),
            before_sleep=self._before_sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                self.attempts = attempt.retry_state.attempt_number
                return await asyncio.wait_for(
                    func(), timeout=self.config.attempt_timeout
                )

        # AsyncRetrying with reraise=True never falls through
        raise RuntimeError("retry loop exited without result")

