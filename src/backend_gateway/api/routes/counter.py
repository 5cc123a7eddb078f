"""Shared counter endpoints backed by the cache."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from backend_gateway.api.dependencies import get_policy
from backend_gateway.domain.exceptions import ServiceUnavailableException
from backend_gateway.domain.models import BackendKind, StorageBackend
from backend_gateway.resilience.fallback import FallbackPolicy

router = APIRouter(prefix="/counter", tags=["counter"])


@router.get("")
async def read_counter(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
) -> dict[str, Any]:
    result = await policy.read_counter()
    return {"success": True, "counter": result.data, "storage": result.storage.value}


@router.post("/increment")
async def increment_counter(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
) -> dict[str, Any]:
    """Atomic increment; 503 when the cache is down, never a local value."""
    result = await policy.increment_counter()
    if not result.success:
        raise ServiceUnavailableException(
            result.error or "Redis not connected",
            BackendKind.CACHE.value,
            details={"counter": None, "storage": StorageBackend.NOT_AVAILABLE.value},
        )
    return {"success": True, "counter": result.data, "storage": result.storage.value}
