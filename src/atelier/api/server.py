import structlog
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atelier import __version__
from atelier.api.routes import health, inference
from atelier.application.factory import AtelierFactory

logger = structlog.get_logger()


def create_app(factory: Optional[AtelierFactory] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        factory: Pre-built factory (tests inject one with a mock transport);
                 by default one is created at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = factory is None
        app.state.factory = factory or AtelierFactory()
        await logger.ainfo("fastapi.startup", message="Atelier API starting...")
        yield
        await logger.ainfo("fastapi.shutdown", message="Atelier API shutting down...")
        if owned:
            await app.state.factory.aclose()

    app = FastAPI(
        title="Atelier API",
        description="Image generation, vision description and chat with resilient retries",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(inference.router, prefix="/api", tags=["inference"])
    app.include_router(health.router, tags=["health"])

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8070)
