"""Main FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI

from intent_engine.api import actions, health, menu, recommendations
from intent_engine.core.config import settings
from intent_engine.core.dependencies import get_engine
from intent_engine.core.logging import setup_logging
from intent_engine.services.engine import ActionIntentEngine

logger = logging.getLogger(__name__)


async def sweep_sessions(engine: ActionIntentEngine, interval_seconds: float) -> None:
    """Periodically evict expired pending actions and idle session histories."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            engine.cleanup()
        except Exception as e:
            logger.error(f"[MAIN] Session sweep failed: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    sweeper = asyncio.create_task(sweep_sessions(engine, settings.cleanup_interval_seconds))
    yield
    # Shutdown
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper


app = FastAPI(
    title=settings.app_name,
    description="Turns restaurant chat turns into scored, confirmable order actions",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(actions.router, tags=["actions"])
app.include_router(recommendations.router, tags=["recommendations"])
app.include_router(menu.router, tags=["menu"])


@app.get("/")
async def root():
    return {
        "message": f"{settings.app_name} API",
        "version": "0.1.0",
    }


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    uvicorn.run("intent_engine.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
