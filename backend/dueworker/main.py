"""
Main FastAPI application entry point.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .config import settings
from .database import SessionLocal, engine, init_db
from .logging_config import setup_logging
from .wiring.bootstrap import build_run_tick_use_case

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    setup_logging(settings)
    logger.info("Starting due-item delivery API (database: %s)", settings.database_url)

    init_db()
    app.state.run_tick_use_case = build_run_tick_use_case(settings, SessionLocal)
    logger.info("Delivery backend: %s", settings.delivery_backend)

    yield

    # Shutdown
    logger.info("Shutting down due-item delivery API")
    engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="Due Item Delivery Worker",
    description="Tenant-fair scheduling and delivery of due items",
    version="0.1.0",
    lifespan=lifespan
)


@app.get("/livez")
async def liveness():
    """Liveness probe - zero dependencies, confirms process is responsive."""
    return {"status": "ok"}


@app.get("/readyz")
async def readiness():
    """Readiness probe - checks database connectivity."""
    try:
        def _check_db():
            with engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1

        healthy = await asyncio.to_thread(_check_db)
        checks = {"database": "ok" if healthy else "error: unexpected result"}
    except Exception as e:
        healthy = False
        checks = {"database": f"error: {type(e).__name__}"}

    return JSONResponse(
        content={"status": "ok" if healthy else "unhealthy", "checks": checks},
        status_code=200 if healthy else 503,
    )


# Include API routers
from .api.v1.router import router as api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
