"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

from signaldesk.config import get_settings

# Configure logging FIRST, before the rest of the service is imported
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signaldesk.api import manager, router, websocket_endpoint
from signaldesk.clients import build_provider, list_providers
from signaldesk.desk_config import load_desk_config
from signaldesk.services import (
    CompositeNotifier,
    LogNotifier,
    SignalScheduler,
    WebSocketNotifier,
)

logger = logging.getLogger(__name__)

_status_task: asyncio.Task | None = None


async def _periodic_status_broadcast(scheduler: SignalScheduler, interval: float):
    """Background task pushing scheduler status to websocket clients."""
    while True:
        try:
            await asyncio.sleep(interval)
            if manager.connection_count:
                await manager.send_status(scheduler.snapshot())
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Status broadcast error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global _status_task

    desk_config = load_desk_config()
    settings = desk_config.apply(get_settings())

    logger.info("Starting signal desk...")
    logger.info(f"Providers available: {', '.join(list_providers())}")

    provider = build_provider(settings)
    notifier = CompositeNotifier([
        LogNotifier(settings.trade_url),
        WebSocketNotifier(manager, settings.trade_url),
    ])
    scheduler = SignalScheduler(
        provider=provider,
        notifier=notifier,
        settings=settings,
        calendar=desk_config.build_calendar(settings),
    )
    app.state.scheduler = scheduler

    if settings.auto_start:
        await scheduler.start()
    _status_task = asyncio.create_task(
        _periodic_status_broadcast(scheduler, settings.status_broadcast_interval)
    )

    yield

    logger.info("Shutting down...")
    if _status_task:
        _status_task.cancel()
        try:
            await _status_task
        except asyncio.CancelledError:
            pass
        _status_task = None

    await scheduler.stop()
    try:
        await provider.close()
    except Exception as e:
        logger.warning(f"Error closing provider: {e}")

    app.state.scheduler = None
    logger.info("Shutdown complete")


app = FastAPI(
    title="Signal Desk",
    description="HIGH/LOW signals for 1-minute FX binary options",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")
app.websocket("/ws")(websocket_endpoint)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Signal Desk",
        "version": "0.1.0",
        "docs": "/docs",
        "providers": list_providers(),
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "signaldesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
