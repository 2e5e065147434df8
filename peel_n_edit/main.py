"""Main FastAPI application entry point."""

import os
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import health, sessions
from .providers import GeminiClient, FalClient
from .core import (
    SuggestionAggregator,
    SequentialEditPipeline,
    SingleShotEditPipeline,
    EditSession,
    SessionRegistry,
)
from .utils.config import Config, load_config
from .utils.logger import get_logger

logger = get_logger(__name__)


def build_registry(config: Config, gemini: GeminiClient, fal: FalClient) -> SessionRegistry:
    """Wire pipelines into a registry; pipelines are stateless and shared."""
    aggregator = SuggestionAggregator(
        gemini_client=gemini,
        preview_model=config.models.preview,
        preview_max_side=config.preview_max_side,
    )
    sequential = SequentialEditPipeline(
        gemini_client=gemini,
        model=config.models.sequential_edit,
    )
    single_shot = SingleShotEditPipeline(
        fal_client=fal,
        model=config.models.single_shot,
    )

    return SessionRegistry(
        lambda: EditSession(
            aggregator=aggregator,
            sequential=sequential,
            single_shot=single_shot,
            single_shot_model=config.models.single_shot,
        ),
        ttl_seconds=config.session_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown.

    Builds provider clients and the session registry unless one was
    supplied to :func:`create_app`.
    """
    if getattr(app.state, "registry", None) is not None:
        yield
        await app.state.registry.close_all()
        return

    logger.info("Application starting up...")

    try:
        config = load_config()

        gemini = GeminiClient(
            api_key=config.gemini_api_key,
            edit_model=config.models.sequential_edit,
            suggestion_model=config.models.suggestions,
            timeout=config.timeout_gemini_seconds,
            max_attempts=config.max_attempts_per_call,
        )
        fal = FalClient(
            api_key=config.fal_key,
            timeout=config.timeout_fal_seconds,
            polling_timeout=config.timeout_fal_polling_seconds,
            poll_interval=config.fal_poll_interval_seconds,
            max_attempts=config.max_attempts_per_call,
        )
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    async with gemini, fal:
        app.state.config = config
        app.state.registry = build_registry(config, gemini, fal)

        logger.info("Application startup complete")

        yield

        logger.info("Application shutting down...")
        await app.state.registry.close_all()
        app.state.registry = None

    logger.info("Application shutdown complete")


def create_app(registry: Optional[SessionRegistry] = None) -> FastAPI:
    """Create the application, optionally around a prepared registry."""
    app = FastAPI(
        title="Peel-n-Edit",
        description="Photo edit suggestions with sequential and single-shot AI editing",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry

    # Add CORS middleware (adjust origins for production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "peel-n-edit",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    uvicorn.run(
        "peel_n_edit.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("APP_ENV", "development") == "development",
        log_level="info",
    )
