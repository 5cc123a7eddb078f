"""Application core: the gateway context."""

from .context import GatewayContext

__all__ = ["GatewayContext"]
