"""Tests for the RabbitMQ broker handle."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aio_pika
import pytest

from backend_gateway.config.settings import BrokerSettings
from backend_gateway.domain.models import BackendStatus
from backend_gateway.infrastructure.backends.broker import BrokerHandle, build_event
from backend_gateway.resilience.retry import RetryConfig

CONNECT = "backend_gateway.infrastructure.backends.broker.aio_pika.connect"


def make_connection():
    channel = MagicMock()
    channel.declare_queue = AsyncMock()
    channel.default_exchange.publish = AsyncMock()
    channel.close_callbacks = MagicMock()

    connection = MagicMock()
    connection.channel = AsyncMock(return_value=channel)
    connection.close = AsyncMock()
    connection.close_callbacks = MagicMock()
    return connection, channel


@pytest.fixture
def broker_handle():
    return BrokerHandle(
        BrokerSettings(host="mq", username="app", password="p@ss", queue="jobs"),
        RetryConfig(max_attempts=1, base_delay=0.0),
    )


class TestBrokerConnect:
    """Test AMQP session establishment."""

    @pytest.mark.asyncio
    async def test_connect_declares_durable_queue(self, broker_handle):
        connection, channel = make_connection()

        with patch(CONNECT, AsyncMock(return_value=connection)) as connect:
            assert await broker_handle.connect() is True

        connect.assert_awaited_once_with("amqp://app:p%40ss@mq:5672")
        channel.declare_queue.assert_awaited_once_with("jobs", durable=True)
        assert broker_handle.status() == BackendStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_channel_failure_closes_connection(self, broker_handle):
        connection, _ = make_connection()
        connection.channel.side_effect = RuntimeError("channel refused")

        with patch(CONNECT, AsyncMock(return_value=connection)):
            assert await broker_handle.connect() is False

        connection.close.assert_awaited_once()
        assert broker_handle.session is None

    @pytest.mark.asyncio
    async def test_disabled_broker_skips_network(self):
        handle = BrokerHandle(BrokerSettings(enable=False))

        with patch(CONNECT, AsyncMock()) as connect:
            assert await handle.connect() is False

        connect.assert_not_awaited()
        assert handle.status() == BackendStatus.DISABLED

    def test_describe_target_has_no_credentials(self, broker_handle):
        assert broker_handle.describe_target() == "amqp://mq:5672/jobs"


class TestBrokerCloseCallbacks:
    """Test demotion driven by connection and channel close notifications."""

    @pytest.mark.asyncio
    async def test_clean_close_demotes(self, broker_handle):
        connection, channel = make_connection()
        with patch(CONNECT, AsyncMock(return_value=connection)):
            await broker_handle.connect()

        callback = connection.close_callbacks.add.call_args.args[0]
        channel.close_callbacks.add.assert_called_once_with(callback)

        callback(connection, None)

        assert broker_handle.available is False
        assert broker_handle.last_error is None

    @pytest.mark.asyncio
    async def test_error_close_demotes_with_error(self, broker_handle):
        connection, _ = make_connection()
        with patch(CONNECT, AsyncMock(return_value=connection)):
            await broker_handle.connect()

        callback = connection.close_callbacks.add.call_args.args[0]
        callback(connection, RuntimeError("heartbeat timeout"))

        assert broker_handle.available is False
        assert broker_handle.last_error == "heartbeat timeout"

        await broker_handle.disconnect()
        connection.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stale_session_callback_is_ignored(self, broker_handle):
        old_connection, _ = make_connection()
        new_connection, _ = make_connection()
        with patch(CONNECT, AsyncMock(return_value=old_connection)):
            await broker_handle.connect()
        stale_callback = old_connection.close_callbacks.add.call_args.args[0]

        await broker_handle.disconnect()
        with patch(CONNECT, AsyncMock(return_value=new_connection)):
            await broker_handle.connect()

        stale_callback(old_connection, None)

        assert broker_handle.available is True


class TestBrokerOperations:
    """Test publishing and queue inspection."""

    @pytest.mark.asyncio
    async def test_publish_persistent_message(self, broker_handle):
        connection, channel = make_connection()
        with patch(CONNECT, AsyncMock(return_value=connection)):
            await broker_handle.connect()

        await broker_handle.publish("user_created", {"name": "Ann"})

        publish = channel.default_exchange.publish
        message = publish.call_args.args[0]
        assert publish.call_args.kwargs["routing_key"] == "jobs"
        assert message.delivery_mode == aio_pika.DeliveryMode.PERSISTENT
        payload = json.loads(message.body)
        assert payload["event"] == "user_created"
        assert payload["data"] == {"name": "Ann"}

    @pytest.mark.asyncio
    async def test_queue_stats_is_passive(self, broker_handle):
        connection, channel = make_connection()
        with patch(CONNECT, AsyncMock(return_value=connection)):
            await broker_handle.connect()

        queue = MagicMock()
        queue.declaration_result.message_count = 3
        queue.declaration_result.consumer_count = 1
        channel.declare_queue = AsyncMock(return_value=queue)

        stats = await broker_handle.queue_stats()

        channel.declare_queue.assert_awaited_once_with("jobs", passive=True)
        assert stats.queue == "jobs"
        assert stats.message_count == 3
        assert stats.consumer_count == 1
        assert stats.status == BackendStatus.CONNECTED


def test_build_event_payload():
    payload = json.loads(build_event("custom_message", "hello"))

    assert payload["event"] == "custom_message"
    assert payload["data"] == "hello"
    assert payload["timestamp"].endswith("+00:00")
