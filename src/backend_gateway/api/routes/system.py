"""Welcome, health, info and log endpoints."""

import platform
import sys
from datetime import UTC, datetime
from typing import Annotated, Any

import psutil
import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend_gateway.api.dependencies import get_gateway
from backend_gateway.core.context import GatewayContext
from backend_gateway.observability.logging import read_recent_log_lines

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["system"])

ENDPOINTS = {
    "health": "GET /health",
    "info": "GET /info",
    "users": "GET /users",
    "createUser": "POST /users",
    "getUser": "GET /users/:id",
    "counter": "GET /counter",
    "incrementCounter": "POST /counter/increment",
    "publishMessage": "POST /queue/publish",
    "queueStatus": "GET /queue/status",
    "logs": "GET /logs",
}


def _megabytes(value: int) -> str:
    return f"{round(value / 1024 / 1024)} MB"


@router.get("/")
async def welcome(
    gateway: Annotated[GatewayContext, Depends(get_gateway)],
) -> dict[str, Any]:
    return {
        "message": f"Welcome to {gateway.settings.app_name}",
        "version": gateway.settings.app_version,
        "services": ["MongoDB", "Redis", "RabbitMQ"],
        "endpoints": ENDPOINTS,
    }


@router.get("/health")
async def health_check(
    gateway: Annotated[GatewayContext, Depends(get_gateway)],
) -> dict[str, Any]:
    """Liveness plus the current availability of every backend.

    Always ``healthy``: a missing backend degrades the gateway, it does not
    take it down.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": gateway.uptime,
        "services": gateway.registry.snapshot(),
    }


@router.get("/info")
async def server_info(
    gateway: Annotated[GatewayContext, Depends(get_gateway)],
) -> dict[str, Any]:
    memory = psutil.Process().memory_info()
    return {
        "pythonVersion": sys.version.split()[0],
        "platform": platform.system().lower(),
        "memory": {"rss": _megabytes(memory.rss), "vms": _megabytes(memory.vms)},
        "environment": gateway.settings.environment.value,
        "port": gateway.settings.port,
        "services": gateway.registry.snapshot(),
    }


@router.get("/logs", response_model=None)
async def recent_logs(
    gateway: Annotated[GatewayContext, Depends(get_gateway)],
) -> dict[str, Any] | JSONResponse:
    observability = gateway.settings.observability
    try:
        lines = read_recent_log_lines(
            observability.log_file, limit=observability.log_tail_limit
        )
    except OSError as e:
        logger.error("Failed to read logs", path=observability.log_file, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to read logs"},
        )
    return {"success": True, "count": len(lines), "logs": lines}
