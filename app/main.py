from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from core.db import create_tables, engine
from core.environment import get_catalog_paths, get_client_url, is_production, should_preload_catalog
from core.logging import setup_logging
from exceptions import register_exception_handlers
from middleware.rate_limit import custom_rate_limit_exceeded, limiter
from routers import auth, content, emissions, health, metrics, payment, vehicles
from services.vehicle_catalog import VehicleCatalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    catalog = VehicleCatalog(get_catalog_paths())
    if should_preload_catalog():
        # a missing artifact aborts startup
        catalog.load()
    app.state.vehicle_catalog = catalog

    if not is_production():
        await create_tables()

    logger.info("Carbon Offset API started")
    try:
        yield
    finally:
        app.state.vehicle_catalog = None
        await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(title="Carbon Offset API", lifespan=lifespan)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded)
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_client_url()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(auth.router)
    app.include_router(vehicles.router)
    app.include_router(emissions.router)
    app.include_router(content.router)
    app.include_router(payment.router)
    return app


app = create_app()
