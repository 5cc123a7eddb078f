"""
RabbitMQ handle for event and message publishing.

The connection is a plain (non-robust) aio-pika connection: once a session
is lost the handle is demoted and stays down, with no background reconnect.
When ``MSMQ_ENABLE`` is false the handle is permanently disabled and never
touches the network.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import aio_pika
import structlog
from aio_pika.abc import AbstractChannel, AbstractConnection
from aio_pika.exceptions import ConnectionClosed

from backend_gateway.config.settings import BrokerSettings
from backend_gateway.domain.models import BackendKind, QueueStats, utc_now
from backend_gateway.infrastructure.backends.base import BackendHandle
from backend_gateway.resilience.retry import RetryConfig

logger = structlog.get_logger(__name__)


@dataclass
class BrokerSession:
    """Connection plus the channel all publishes go through."""

    connection: AbstractConnection
    channel: AbstractChannel


def build_event(event: str, data: Any) -> bytes:
    """Serialize a queue payload."""
    return json.dumps(
        {"event": event, "data": data, "timestamp": utc_now().isoformat()},
        default=str,
    ).encode()


class BrokerHandle(BackendHandle):
    """Handle owning the AMQP connection and channel."""

    kind = BackendKind.BROKER

    def __init__(
        self, settings: BrokerSettings, retry_config: RetryConfig | None = None
    ):
        super().__init__(retry_config)
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.enable

    @property
    def queue_name(self) -> str:
        return self.settings.queue

    def describe_target(self) -> str:
        return (
            f"{self.settings.protocol}://{self.settings.host}:{self.settings.port}"
            f"/{self.settings.queue}"
        )

    async def _open_session(self) -> BrokerSession:
        connection = await aio_pika.connect(self.settings.url)
        try:
            channel = await connection.channel()
            await channel.declare_queue(self.settings.queue, durable=True)
        except Exception:
            await connection.close()
            raise
        return BrokerSession(connection=connection, channel=channel)

    async def _close_session(self, session: BrokerSession) -> None:
        await session.connection.close()

    def _register_callbacks(self, session: BrokerSession) -> None:
        def _closed(sender: Any, exc: BaseException | None = None) -> None:
            # Ignore notifications from a session this handle no longer owns
            if session is not self.session:
                return
            if exc is None or isinstance(
                exc, (ConnectionClosed, asyncio.CancelledError)
            ):
                self.on_close()
            else:
                self.on_error(exc)

        session.connection.close_callbacks.add(_closed)
        session.channel.close_callbacks.add(_closed)

    async def publish(self, event: str, data: Any) -> None:
        """Publish a persistent message to the configured queue."""
        session: BrokerSession = self.require_session()
        message = aio_pika.Message(
            body=build_event(event, data),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
        )
        await session.channel.default_exchange.publish(
            message, routing_key=self.settings.queue
        )
        logger.info(
            "Event published to broker",
            queue=self.settings.queue,
            message_event=event,
        )

    async def queue_stats(self) -> QueueStats:
        """Passively inspect the queue without declaring it."""
        session: BrokerSession = self.require_session()
        queue = await session.channel.declare_queue(self.settings.queue, passive=True)
        result = queue.declaration_result
        return QueueStats(
            queue=self.settings.queue,
            message_count=result.message_count or 0,
            consumer_count=result.consumer_count or 0,
        )
