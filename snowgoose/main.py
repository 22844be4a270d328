"""Main FastAPI application for Snowgoose."""

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .adapters.factory import init_vendors
from .config import settings
from .errors import SnowgooseError
from .routes import chat_router, models_router, users_router
from .services.container import build_services

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _log_path() -> Path:
    """LOG_DIR/LOG_FILE; a relative LOG_DIR is under the project root."""
    log_dir = Path(settings.LOG_DIR)
    if not log_dir.is_absolute():
        log_dir = Path(__file__).resolve().parent.parent / log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / settings.LOG_FILE


def setup_logging() -> Optional[str]:
    """Send logs to the console and, if LOG_TO_FILE is set, a rotating file.

    Returns the log file path when file logging is on.
    """
    level = logging.DEBUG if settings.DEBUG_MODE else logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    log_file = None
    if settings.LOG_TO_FILE:
        log_file = _log_path()
        handlers.append(
            RotatingFileHandler(
                log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
            )
        )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    return str(log_file) if log_file else None


log_file_path = setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Snowgoose...")

    app.state.services = build_services()
    vendors = init_vendors()
    if not vendors:
        logger.warning("No vendor API keys configured; chat requests will fail")

    logger.info(f"Server ready on port {settings.PORT}")
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")
    if log_file_path:
        logger.info(f"Log file: {log_file_path}")

    yield

    logger.info("Shutting down...")
    await app.state.services.close()


app = FastAPI(
    title="Snowgoose",
    description="Streaming chat relay with credit accounting",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router, prefix="/api")
app.include_router(models_router, prefix="/api")
app.include_router(users_router, prefix="/api")

if settings.STORAGE_BACKEND == "local":
    Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(settings.MEDIA_BASE_URL, StaticFiles(directory=settings.MEDIA_DIR), name="media")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Snowgoose",
        "version": "1.0.0",
        "description": "Streaming chat relay with credit accounting",
        "endpoints": {
            "chat": "/api/chat/stream",
            "models": "/api/models",
            "vendors": "/api/api-vendors",
            "credits": "/api/users/me/credits",
            "health": "/health",
        },
        "documentation": "/docs",
    }


@app.exception_handler(SnowgooseError)
async def snowgoose_exception_handler(request: Request, exc: SnowgooseError):
    """Render errors raised before a stream opens."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"type": "error", "publicMessage": exc.public_message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"type": "error", "publicMessage": SnowgooseError.public_message},
    )


def main():
    """Run the server."""
    import uvicorn

    uvicorn.run(
        "snowgoose.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG_MODE,
    )


if __name__ == "__main__":
    main()
