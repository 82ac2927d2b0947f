"""FastAPI application setup."""

import asyncio
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import alert_capacity_from_env, autoload_delay_from_env, resolve_defs_dir
from ..engine import SupervisionEngine
from ..logging_config import get_logger
from ..registry import autoload, fetch_definitions, load_definitions_from_dir
from .routes import control
from .routes.alerts import create_alerts_router
from .routes.catalogue import create_catalogue_router
from .routes.units import create_units_router

logger = get_logger(__name__)

# Global engine instance
_engine: SupervisionEngine | None = None


def get_engine() -> SupervisionEngine:
    """Get the global engine instance."""
    global _engine
    if not _engine:
        _engine = SupervisionEngine(alert_capacity=alert_capacity_from_env())
    return _engine


def set_engine(engine: SupervisionEngine | None) -> None:
    """Replace the global engine (tests inject one with a fake bus)."""
    global _engine
    _engine = engine


async def load_definitions() -> list[dict]:
    """Definitions from CPS_SOURCE_URL if set, else from CPS_DEFS_DIR."""
    source_url = os.getenv("CPS_SOURCE_URL")
    try:
        if source_url:
            return await fetch_definitions(source_url)
        defs_dir = resolve_defs_dir(os.getenv("CPS_DEFS_DIR"))
        if not defs_dir.is_dir():
            logger.info("No definitions directory at %s", defs_dir)
            return []
        return load_definitions_from_dir(defs_dir)
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.error("Failed to load unit definitions: %s", e)
        return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage engine lifespan."""
    # Startup
    engine = get_engine()
    await engine.start()
    definitions = await load_definitions()
    autoload_task = asyncio.create_task(
        autoload(engine.register, definitions, delay=autoload_delay_from_env())
    )
    yield
    # Shutdown
    autoload_task.cancel()
    try:
        await autoload_task
    except asyncio.CancelledError:
        pass
    sim_instance = control.get_sim_instance()
    if sim_instance:
        await sim_instance.stop()
    await engine.shutdown()


def create_fastapi_app() -> FastAPI:
    """Create and configure FastAPI application."""
    fastapi_app = FastAPI(
        title="CPS Supervisor API",
        description="Observe-only supervision of units over MQTT",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = get_engine()
    fastapi_app.include_router(create_catalogue_router())
    fastapi_app.include_router(create_units_router(engine))
    fastapi_app.include_router(create_alerts_router(engine))
    fastapi_app.include_router(control.create_control_router())

    return fastapi_app
