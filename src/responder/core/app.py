"""
FastAPI application setup with CORS middleware and engine lifecycle.
"""

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Gauge
from prometheus_fastapi_instrumentator import Instrumentator

from src.responder.core.config import Config, get_config
from src.responder.core.exceptions import ConfigurationError, InitializationError
from src.responder.hal.simulated import create_simulated_suite
from src.responder.services.response_engine import ResponseEngine

logger = logging.getLogger(__name__)

STARTUP_TIME_GAUGE = Gauge(
    "responder_startup_time_seconds", "Time taken for the responder to start in seconds"
)


def build_engine(config: Config) -> ResponseEngine:
    """Build the response engine with the configured actuator binding."""
    if not config.facility.FACILITY_SIMULATED_ACTUATORS:
        # Only the simulated binding ships with this package
        raise ConfigurationError(
            "No hardware actuator binding installed; set FACILITY_SIMULATED_ACTUATORS"
        )
    return ResponseEngine.from_config(config, create_simulated_suite())


def create_app(engine: ResponseEngine | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        engine: Pre-built engine; built from configuration when omitted

    Returns:
        Configured FastAPI application instance
    """
    config = get_config()

    app = FastAPI(
        title=config.app.APP_NAME,
        version=config.app.APP_VERSION,
        description="Integrated emergency response execution for secured facilities",
        debug=config.development.DEV_DEBUG_MODE,
    )
    app.state.engine = engine or build_engine(config)

    if config.api.API_CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.API_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS enabled with origins: {config.api.API_CORS_ORIGINS}")

    from src.responder.api.routes import responses

    app.include_router(responses.router)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics"],
    ).instrument(app).expose(app, endpoint="/metrics", tags=["monitoring"])

    @app.on_event("startup")
    async def startup_event() -> None:
        """Bring actuator subsystems online."""
        start_time = time.time()
        logger.info(f"Starting {config.app.APP_NAME} v{config.app.APP_VERSION}")
        logger.info(f"Environment: {config.app.APP_ENV}")

        try:
            await app.state.engine.initialize()
        except InitializationError as e:
            # execute() returns INIT_FAILED until a later initialize succeeds
            logger.error(f"Response engine failed to initialize at stage {e.stage}: {e}")

        STARTUP_TIME_GAUGE.set(time.time() - start_time)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Restore normal facility state on shutdown."""
        logger.info("Shutting down response engine")
        await app.state.engine.cleanup()

    return app
