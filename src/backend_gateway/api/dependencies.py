"""Shared API dependencies."""

from fastapi import Request

from backend_gateway.core.context import GatewayContext
from backend_gateway.resilience.fallback import FallbackPolicy


def get_gateway(request: Request) -> GatewayContext:
    """Gateway context built during application startup."""
    return request.app.state.gateway  # type: ignore[no-any-return]


def get_policy(request: Request) -> FallbackPolicy:
    """Fallback policy of the running gateway."""
    return get_gateway(request).policy

