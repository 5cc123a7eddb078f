"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load .env file before importing settings
load_dotenv()

import structlog  # noqa: E402
import uvicorn  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from . import __description__, __version__  # noqa: E402
from .api.error_handlers import register_exception_handlers  # noqa: E402
from .api.middleware import (  # noqa: E402
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
)
from .api.routes.router import router  # noqa: E402
from .config.settings import ApplicationSettings, get_settings  # noqa: E402
from .core.context import GatewayContext  # noqa: E402
from .observability.logging import configure_from_settings  # noqa: E402

logger = structlog.get_logger(__name__)


def log_startup_banner(settings: ApplicationSettings, gateway: GatewayContext) -> None:
    """One line naming the process and every backend endpoint, credentials masked."""
    logger.info(
        "Starting backend gateway",
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
        port=settings.port,
        backends={
            handle.kind.value: handle.describe_target()
            for handle in gateway.registry.handles()
        },
    )


def create_app(
    settings: ApplicationSettings | None = None,
    gateway: GatewayContext | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the application.

    The gateway context is created here but only connected inside the
    lifespan, so importing or constructing the app never touches a backend.
    """
    settings = settings or (gateway.settings if gateway else get_settings())
    if gateway is None:
        gateway = GatewayContext(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if configure_logging:
            configure_from_settings(settings.observability)
        log_startup_banner(settings, gateway)
        await gateway.start()
        logger.info("Server ready", host=settings.host, port=settings.port)
        try:
            yield
        finally:
            await gateway.shutdown()
            logger.info("Server stopped")

    app = FastAPI(
        title=settings.app_name,
        description=__description__,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    # Outermost middleware is added last
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


def main() -> None:
    """Run the gateway under uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "backend_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.observability.log_level.value.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
