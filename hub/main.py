"""
Posting hub - main application.

Runs the Coordination Hub and exposes it over a small FastAPI control API.
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from poster.store import KeyValueStore
from scraper.core import new_browser_context

from .backend import BackendClient
from .config import config
from .hub import CoordinationHub
from .realtime import RealtimeChannel
from .routes import automation_router, scrape_router, session_router
from .tabs import TabRouter

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('hub.log')
        ]
    )


async def build_hub(app: FastAPI, browser_context=None) -> CoordinationHub:
    """Wire the hub from configuration."""
    store = KeyValueStore(config.STORE_PATH)
    backend = BackendClient(config.BACKEND_URL, timeout=config.BACKEND_TIMEOUT)
    hub = CoordinationHub(store, backend)
    if browser_context is not None:
        overrides = {"location": config.LOCATION} if config.LOCATION else None
        hub.tabs = TabRouter(
            browser_context,
            hub.pending,
            hub.handle_page_message,
            config.CREATE_URL,
            load_attempts=config.TAB_LOAD_ATTEMPTS,
            load_interval=config.TAB_LOAD_INTERVAL,
            overrides=overrides,
        )
        hub.tabs.watch()
    if config.REALTIME_ENABLED:
        hub.realtime = RealtimeChannel(
            config.SOCKET_URL,
            hub.on_start_posting,
            reconnection_delay=config.REALTIME_RECONNECT_DELAY,
        )
    return hub


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting posting hub...")
    config.validate()
    playwright = browser = context = None
    if getattr(app.state, "hub", None) is None:
        if config.LAUNCH_BROWSER:
            from playwright.async_api import async_playwright
            playwright = await async_playwright().start()
            browser, context = await new_browser_context(
                playwright, config.HEADLESS, config.STORAGE_STATE, logger
            )
        app.state.hub = await build_hub(app, context)
    hub: CoordinationHub = app.state.hub
    await hub.start()
    logger.info(f"Store path: {config.STORE_PATH}")
    logger.info("Hub startup complete")
    try:
        yield
    finally:
        # Shutdown
        logger.info("Shutting down posting hub...")
        await hub.stop()
        if context is not None:
            await context.close()
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()


def create_app(hub: Optional[CoordinationHub] = None) -> FastAPI:
    app = FastAPI(
        title=config.API_TITLE,
        version=config.API_VERSION,
        description=config.API_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.hub = hub

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=config.CORS_ALLOW_METHODS,
        allow_headers=config.CORS_ALLOW_HEADERS,
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        current = request.app.state.hub
        return {
            "status": "healthy" if current is not None else "starting",
            "version": config.API_VERSION,
            "authenticated": bool(current and current.session),
            "realtime": bool(current and current.realtime and current.realtime.connected),
            "browser": bool(current and current.tabs),
            "tabs": len(current.tabs.live_agents()) if current and current.tabs else 0,
        }

    # Include routers
    app.include_router(session_router)
    app.include_router(automation_router)
    app.include_router(scrape_router)
    return app


def run() -> None:
    import uvicorn
    configure_logging()
    uvicorn.run(
        create_app(),
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
