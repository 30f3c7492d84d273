#!/usr/bin/env python3
"""HTTP API for the commitment service.

Routes requests to the ``StatusService`` and renders JSON bodies with the
camelCase field names existing clients expect, plus Prometheus metrics.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, generate_latest
from starlette.routing import Match

from . import __version__
from .errors import (
    CommitmentServiceError,
    ConnectivityError,
    InvalidInputError,
    NotFoundError,
    OracleQueryError,
)
from .service import SERVICE_NAME, StatusService

# Get logger for this module
logger = logging.getLogger(__name__)

# Checked in order; RevertError is covered by OracleQueryError
ERROR_RESPONSES: list[tuple[type[CommitmentServiceError], int, str]] = [
    (InvalidInputError, 400, "Invalid request"),
    (NotFoundError, 404, "Not found"),
    (OracleQueryError, 502, "Oracle query failed"),
    (ConnectivityError, 503, "Upstream unavailable"),
]


def error_response(title: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"error": title, "code": status_code, "message": message},
        status_code=status_code,
    )


class ServiceMetrics:
    """Prometheus collectors for one application instance."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self.uptime_seconds = Gauge(
            'commitment_service_uptime_seconds',
            'Total uptime in seconds',
            registry=self.registry,
        )
        self.health_status = Gauge(
            'commitment_service_health_status',
            'Service health status (1=healthy, 0=unhealthy)',
            registry=self.registry,
        )
        self.total_commitments = Gauge(
            'commitment_service_total_commitments',
            'Total number of commitments at the last successful status query',
            registry=self.registry,
        )
        self.requests_total = Counter(
            'commitment_service_http_requests',
            'Total number of HTTP requests',
            ['endpoint', 'status_code'],
            registry=self.registry,
        )

    def render(self) -> bytes:
        return generate_latest(self.registry)


def route_template(app: FastAPI, request: Request) -> str:
    """Path template of the route serving a request, to keep label cardinality low."""
    for route in app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", "unmatched")
    return "unmatched"


def create_app(service: StatusService) -> FastAPI:
    """
    Create the FastAPI application serving ``service``.

    The service is closed when the application shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"{SERVICE_NAME} {__version__} ready")
        yield
        await service.close()

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    metrics = ServiceMetrics()
    app.state.service = service
    app.state.metrics = metrics

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def count_requests(request: Request, call_next):
        endpoint = route_template(app, request)
        try:
            response = await call_next(request)
        except Exception:
            # Rendered as a 500 by the server error middleware
            metrics.requests_total.labels(endpoint=endpoint, status_code="500").inc()
            raise
        metrics.requests_total.labels(endpoint=endpoint, status_code=str(response.status_code)).inc()
        return response

    @app.exception_handler(CommitmentServiceError)
    async def handle_service_error(request: Request, exc: CommitmentServiceError) -> JSONResponse:
        for error_type, status_code, title in ERROR_RESPONSES:
            if isinstance(exc, error_type):
                return error_response(title, str(exc), status_code)

        logger.error(f"Unhandled service error on {request.url.path}: {exc}", exc_info=exc)
        return error_response("Internal error", str(exc), 500)

    @app.get("/")
    async def root() -> JSONResponse:
        return JSONResponse(service.service_info())

    @app.get("/health")
    async def health() -> JSONResponse:
        report = await service.health_report()
        return JSONResponse(report.to_dict())

    @app.get("/api/commitment/status")
    @app.get("/status", include_in_schema=False)
    async def commitment_status() -> JSONResponse:
        status = await service.commitment_status()
        metrics.total_commitments.set(status.total_commitments)
        return JSONResponse(status.to_dict())

    @app.get("/api/transaction/{tx_hash}")
    @app.get("/tx/{tx_hash}", include_in_schema=False)
    async def transaction_status(tx_hash: str) -> JSONResponse:
        status = await service.transaction_status(tx_hash)
        return JSONResponse(status.to_dict())

    @app.get("/metrics")
    async def prometheus_metrics() -> Response:
        metrics.uptime_seconds.set(service.uptime().total_seconds())
        metrics.health_status.set(1 if await service.is_healthy() else 0)
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    return app
