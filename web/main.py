"""Folder List Web API - FastAPI Application"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from folderlist.logging_config import LoggingManager
from web.config import PROJECT_ROOT, SETTINGS_FILE
from web.routers import folders, playlists, settings
from web.services import get_folder_app, shutdown_folder_app


def _suppress_noisy_loggers():
    """Suppress debug spam from third-party libraries"""
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown"""
    # Startup
    print(f"Folder List Web API starting...")
    print(f"Project root: {PROJECT_ROOT}")
    print(f"Settings: {SETTINGS_FILE}")

    folder_app = get_folder_app()
    config = folder_app.config_manager
    logging_manager = LoggingManager(
        config.paths.logs_folder, config.logging.log_level, config.logging.max_log_files
    )
    logging_manager.setup_logging()
    logging_manager.setup_notification_handlers(config.notification)
    _suppress_noisy_loggers()

    # Seeds from the folder cache and starts the first scan in the background
    folder_app.start()

    yield

    # Shutdown
    print("Folder List Web API shutting down...")
    shutdown_folder_app()


# Create FastAPI app
app = FastAPI(
    title="Folder List",
    description="Live video folder list with new-video counts and playlist reconciliation",
    version="0.1.0",
    lifespan=lifespan
)

# Include routers
app.include_router(folders.router, prefix="/api", tags=["folders"])
app.include_router(playlists.router, prefix="/api", tags=["playlists"])
app.include_router(settings.router, prefix="/api", tags=["settings"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.exception_handler(500)
async def server_error_handler(request: Request, exc):
    """JSON error body for unexpected failures"""
    logging.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse({"detail": "Internal server error", "error": str(exc)}, status_code=500)
