"""Main API router that combines all endpoint routers."""

from fastapi import APIRouter

from backend_gateway.api.routes import counter, queue, system, users

router = APIRouter()

router.include_router(system.router)
router.include_router(users.router)
router.include_router(counter.router)
router.include_router(queue.router)
