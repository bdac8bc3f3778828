# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""EventReg Server - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventreg_server.config import settings
from eventreg_server.database import init_db
from eventreg_server.errors import EventRegError
from eventreg_server.rate_limit import RateLimiter
from eventreg_server.routers import admin, auth, public
from eventreg_server.services.dispatcher import BackgroundDispatcher
from eventreg_server.services.whatsapp import UltraMsgGateway

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _get_cors_origins() -> list[str]:
    raw = (settings.cors_origins or "*").strip()
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()

    app.state.gateway = UltraMsgGateway()
    if not app.state.gateway.configured:
        logger.info(
            "MESSAGE_TOKEN / MESSAGE_INSTANCE_ID not set - WhatsApp messages will not be sent"
        )
    app.state.dispatcher = BackgroundDispatcher(capacity=settings.dead_letter_capacity)
    app.state.rate_limiter = RateLimiter(sweep_interval=settings.rate_limit_sweep_seconds)
    app.state.rate_limiter.start()
    yield
    await app.state.rate_limiter.stop()
    await app.state.dispatcher.shutdown()
    await app.state.gateway.aclose()


app = FastAPI(
    title="EventReg Server",
    description="Event registration, WhatsApp invitations and QR check-in API",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status, and duration for each request (no body or auth headers)."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.exception_handler(EventRegError)
async def eventreg_error_handler(request: Request, exc: EventRegError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bad request bodies are 400 with the failing fields listed."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "البيانات غير صحيحة",
            "details": [
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", ()) if loc != "body"),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in exc.errors()
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "حدث خطأ غير متوقع"},
    )


# API v1
app.include_router(public.router, prefix="/api/v1")
app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Health check / API info."""
    return {
        "name": "EventReg Server",
        "version": VERSION,
        "api": "/api/v1",
        "docs": "/api/docs",
    }


@app.get("/api/v1/health")
async def health():
    """Health check for load balancers."""
    return {"status": "ok"}
