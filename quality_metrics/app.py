"""Quality Metrics API — FastAPI application.

Receives one metrics record per CI run and serves the dashboard data
(latest run, trends, history, statistics) plus a quality gate verdict.

Every route takes an optional `branch` (default: service.default_branch).
Responses are wrapped as {"success": true, "data": ...}; storage failures
become HTTP 500 with {"success": false, "error": "..."}.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import AppConfig, configure_logging, get_config
from .database import get_engine, get_session_factory, init_db
from .gate import evaluate_gate
from .schemas import (
    DashboardOverview,
    DateRange,
    GateResult,
    MetricRecord,
    MetricRecordCreate,
    MetricsFilter,
    QualityStatistics,
    Trend,
)
from .service import QualityMetricsService, build_service
from .store import QualityMetricsStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class DashboardData(BaseModel):
    dashboard: DashboardOverview
    statistics: QualityStatistics


def _failure(message: str, error: Exception) -> JSONResponse:
    logger.error(f"{message}: {error}")
    return JSONResponse(status_code=500, content={"success": False, "error": message})


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_service(request: Request) -> QualityMetricsService:
    """A fresh stateless service per request, bound to the shared engine."""
    store = QualityMetricsStore(request.app.state.session_factory)
    return build_service(store, request.app.state.config.service)


def resolve_branch(
    branch: Optional[str] = Query(default=None),
    config: AppConfig = Depends(get_app_config),
) -> str:
    return branch or config.service.default_branch


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(config: Optional[AppConfig] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API. Config and engine are resolved at startup if omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize storage on startup."""
        app.state.config = config or get_config()
        configure_logging(app.state.config)
        app.state.engine = engine or get_engine(
            app.state.config.database.url, echo=app.state.config.database.echo
        )
        init_db(app.state.engine)
        app.state.session_factory = get_session_factory(app.state.engine)
        logger.info(f"Quality Metrics API v{app.version} started")
        logger.info(f"Storage backend: {app.state.engine.url.get_backend_name()}")
        yield
        if engine is None:
            app.state.engine.dispose()
        logger.info("Shutting down")

    app = FastAPI(
        title="Quality Metrics API",
        description="CI quality metrics: Lighthouse, Web Vitals, tests, bundle size",
        version=__version__,
        lifespan=lifespan,
    )
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    # -----------------------------------------------------------------------
    # Health Check
    # -----------------------------------------------------------------------

    @app.get("/health")
    def health(request: Request):
        """Health check endpoint."""
        try:
            with request.app.state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            db_status = "healthy"
        except SQLAlchemyError as e:
            db_status = f"unhealthy: {e}"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "service": "quality-metrics",
            "version": app.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": db_status,
        }

    # -----------------------------------------------------------------------
    # Records
    # -----------------------------------------------------------------------

    @app.get("/api/quality-metrics", response_model=Envelope[list[MetricRecord]])
    def list_metrics(
        branch: str = Depends(resolve_branch),
        limit: Optional[int] = Query(default=None, ge=1),
        start_date: Optional[datetime] = Query(default=None, alias="startDate"),
        end_date: Optional[datetime] = Query(default=None, alias="endDate"),
        config: AppConfig = Depends(get_app_config),
        service: QualityMetricsService = Depends(get_service),
    ):
        """Stored runs, newest first. Date range applies only when both ends are given."""
        try:
            date_range = None
            if start_date and end_date:
                date_range = DateRange(start=start_date, end=end_date)
            filters = MetricsFilter(
                branch=branch,
                date_range=date_range,
                limit=limit or config.service.query_limit,
            )
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False))

        try:
            return Envelope(data=service.get_metrics(filters))
        except SQLAlchemyError as e:
            return _failure("Failed to fetch quality metrics", e)

    @app.post("/api/quality-metrics", response_model=Envelope[MetricRecord])
    def save_metrics(
        record: MetricRecordCreate,
        service: QualityMetricsService = Depends(get_service),
    ):
        """Store one CI run. Timestamp and id are generated when absent."""
        try:
            stored = service.save_metrics(record)
        except SQLAlchemyError as e:
            return _failure("Failed to save quality metrics", e)

        logger.info(f"Ingested metrics {stored.id} for {stored.branch}")
        return Envelope(data=stored)

    # -----------------------------------------------------------------------
    # Derived views
    # -----------------------------------------------------------------------

    @app.get("/api/quality-metrics/trends", response_model=Envelope[list[Trend]])
    def get_trends(
        branch: str = Depends(resolve_branch),
        service: QualityMetricsService = Depends(get_service),
    ):
        try:
            return Envelope(data=service.get_trends(branch))
        except SQLAlchemyError as e:
            return _failure("Failed to fetch trends", e)

    @app.get("/api/quality-metrics/dashboard", response_model=Envelope[DashboardData])
    def get_dashboard(
        branch: str = Depends(resolve_branch),
        service: QualityMetricsService = Depends(get_service),
    ):
        """Overview plus statistics, computed by independent queries."""
        try:
            return Envelope(data=DashboardData(
                dashboard=service.get_dashboard_overview(branch),
                statistics=service.get_statistics(branch),
            ))
        except SQLAlchemyError as e:
            return _failure("Failed to fetch dashboard data", e)

    @app.get("/api/quality-metrics/gate", response_model=Envelope[GateResult])
    def get_gate(
        branch: str = Depends(resolve_branch),
        config: AppConfig = Depends(get_app_config),
        service: QualityMetricsService = Depends(get_service),
    ):
        try:
            latest = service.get_latest(branch)
        except SQLAlchemyError as e:
            return _failure("Failed to evaluate quality gate", e)
        return Envelope(data=evaluate_gate(latest, config.gate))


app = create_app()
