"""User endpoints, served by the document store or the in-memory substitute."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from backend_gateway.api.dependencies import get_policy
from backend_gateway.domain.exceptions import NotFoundException, ValidationException
from backend_gateway.domain.models import CreateUserRequest
from backend_gateway.resilience.fallback import FallbackPolicy

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
) -> dict[str, Any]:
    result = await policy.list_users()
    users = [user.to_response() for user in result.data]
    return {
        "success": True,
        "count": len(users),
        "storage": result.storage.value,
        "data": users,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
    body: CreateUserRequest | None = None,
) -> dict[str, Any]:
    """Create a user on whichever storage path is currently available."""
    request = body or CreateUserRequest()
    missing = [f for f in ("name", "email") if getattr(request, f) is None]
    if missing:
        raise ValidationException("Name and email are required", fields=missing)

    result = await policy.create_user(request.name, request.email)
    return {
        "success": True,
        "storage": result.storage.value,
        "data": result.data.to_response(),
    }


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    policy: Annotated[FallbackPolicy, Depends(get_policy)],
) -> dict[str, Any]:
    result = await policy.get_user(user_id)
    if result.data is None:
        raise NotFoundException("User not found")
    return {
        "success": True,
        "storage": result.storage.value,
        "data": result.data.to_response(),
    }
