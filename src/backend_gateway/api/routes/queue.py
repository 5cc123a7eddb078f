"""Broker endpoints: publish a custom message, inspect the queue."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from backend_gateway.api.dependencies import get_policy
from backend_gateway.domain.exceptions import (
    ServiceUnavailableException,
    ValidationException,
)
from backend_gateway.domain.models import BackendKind, PublishMessageRequest
from backend_gateway.resilience.fallback import FallbackPolicy

router = APIRouter(prefix="/queue", tags=["queue"])


@router.post("/publish")
async def publish_message(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
    body: PublishMessageRequest | None = None,
) -> dict[str, Any]:
    message = body.message if body is not None else None
    if message is None or message == "":
        raise ValidationException("Message is required", fields=["message"])

    result = await policy.publish_message(message)
    if not result.success:
        raise ServiceUnavailableException(
            result.error or "RabbitMQ not connected",
            BackendKind.BROKER.value,
            details=result.data,
        )
    return {
        "success": True,
        "queue": result.data["queue"],
        "message": "Message published successfully",
    }


@router.get("/status")
async def queue_status(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
) -> dict[str, Any]:
    stats = (await policy.queue_status()).data
    response: dict[str, Any] = {
        "success": True,
        "rabbitmq": stats.status.value,
        "queue": stats.queue,
        "messageCount": stats.message_count or 0,
    }
    if stats.consumer_count is not None:
        response["consumerCount"] = stats.consumer_count
    return response
