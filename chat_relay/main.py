"""
Chat Relay Backend - Main Application

This is the entry point for the FastAPI application.
It handles:
- REST API endpoints (peer messages, history, language preference, presence)
- WebSocket connections for live message delivery
- Error mapping from relay exceptions to HTTP responses
"""
from contextlib import asynccontextmanager
import logging
from datetime import datetime, UTC

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_relay.api import router as api_router
from chat_relay.api.websocket import router as ws_router
from chat_relay.config.settings import settings
from chat_relay.models.database import init_db
from chat_relay.api.deps import get_connection_registry
from chat_relay.services.connection import ConnectionRegistry
from chat_relay.services.exceptions import (
    RelayError,
    ValidationError,
    UpstreamServiceError,
    StorageError,
)
from chat_relay.services.metrics import start_metrics_server

# Configure logging
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting Chat Relay Backend...")

    # Create database tables
    await init_db()
    logger.info("✅ Database tables created")

    if settings.METRICS_ENABLED:
        start_metrics_server(port=settings.METRICS_PORT)

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")


app = FastAPI(
    title="Chat Relay Backend",
    description="Peer-to-peer chat relay with language detection and translation",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST API routes
app.include_router(api_router, prefix="/api")

# Include WebSocket routes
app.include_router(ws_router)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    """Map relay exceptions to `{success: false, error}` responses."""
    if isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, UpstreamServiceError):
        status_code = 502
    elif isinstance(exc, StorageError):
        status_code = 503
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")

    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Chat Relay",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health(registry: ConnectionRegistry = Depends(get_connection_registry)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "online_users": len(registry.online_users()),
        "total_connections": registry.get_total_connections()
    }


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "chat_relay.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
