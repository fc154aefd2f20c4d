"""
FastAPI application entry point.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notification_hub.db import close_db, init_db
from notification_hub.exceptions import (
    InvalidSubscriptionPayload,
    NoActiveSubscriptions,
    PushNotConfigured,
)
from notification_hub.settings import settings

# Configure logging
LOG_FORMATS = {
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "json": '{"time": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}',
}
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format=LOG_FORMATS[settings.log_format],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting %s...", settings.app_name)
    if not settings.push_enabled:
        logger.warning("Push notifications disabled - VAPID keys not configured")
    await init_db()
    yield
    logger.info("Shutting down %s...", settings.app_name)
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests for logging."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/healthz", tags=["health"])
@app.get("/health", tags=["health"])
async def healthz():
    """Health check endpoint for load balancers."""
    return {"status": "healthy"}


@app.get("/version", tags=["meta"])
async def version():
    return {"name": settings.app_name, "version": settings.app_version}


from notification_hub.routers import internal, push, services  # noqa: E402

app.include_router(services.router)
app.include_router(push.router)
app.include_router(internal.router)


@app.exception_handler(InvalidSubscriptionPayload)
async def invalid_subscription_handler(request: Request, exc: InvalidSubscriptionPayload):
    return JSONResponse(
        {"detail": f"Invalid subscription payload: {exc}"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(NoActiveSubscriptions)
async def no_active_subscriptions_handler(request: Request, exc: NoActiveSubscriptions):
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(PushNotConfigured)
async def push_not_configured_handler(request: Request, exc: PushNotConfigured):
    return JSONResponse(
        {"detail": "Push notifications not configured"},
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s (request %s): %s",
        request.method, request.url.path, getattr(request.state, "request_id", "-"), exc,
        exc_info=True,
    )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "notification_hub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
