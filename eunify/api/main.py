"""FastAPI application entrypoint for the E-Unify graph service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from eunify.api.middleware.logging import LoggingMiddleware
from eunify.api.routes import graph
from eunify.core.config import settings
from eunify.core.exceptions import ApplicationError
from eunify.core.observability import configure_logging, setup_tracing
from eunify.visualization.manager import view_manager


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize shared resources on startup and tear them down on shutdown."""

    if view_manager.controller is None:
        await view_manager.initialize()

    try:
        yield
    finally:
        await view_manager.close()


configure_logging()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

setup_tracing(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(graph.router, prefix="/api")


@app.get("/health")
async def healthcheck() -> Dict[str, str]:
    """Liveness probe."""

    return {"status": "ok", "environment": settings.ENVIRONMENT}


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(ApplicationError)
async def handle_application_error(_: Request, exc: ApplicationError):
    """Return standardized responses for application layer exceptions."""

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})
