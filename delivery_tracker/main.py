"""
FastAPI application main module.
Wires the snapshot store, reconciliation engine, webhook handler and refresh
scheduler together and exposes them over HTTP.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from pathlib import Path
import time
import uuid

from delivery_tracker import __version__
from delivery_tracker.api import api_router
from delivery_tracker.config import (
    CORS_ORIGINS,
    LOG_FILE,
    LOG_LEVEL,
    PORT,
    PUBLIC_DIR,
    REFRESH_INTERVAL_SECONDS,
    REFRESH_ON_STARTUP,
    SNAPSHOT_PATH,
    TRACKER_TIMEZONE,
)
from delivery_tracker.models.schemas import HealthResponse
from delivery_tracker.services import (
    JobState,
    OrderApiClient,
    OrderSource,
    ReconciliationEngine,
    RefreshScheduler,
    WebhookHandler,
)
from delivery_tracker.storage import SnapshotStore
from delivery_tracker.utils import setup_logging, get_logger
from delivery_tracker.utils.time import resolve_timezone

# Setup logging before creating the app
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    enable_console=True
)

logger = get_logger(__name__)


def init_services(app: FastAPI, *, snapshot_path: str, source: OrderSource, timezone_name: str | None) -> None:
    """Build the service graph and expose it on ``app.state`` for the routes."""
    state = JobState.from_store(SnapshotStore(snapshot_path))
    app.state.job_state = state
    app.state.reconciliation_engine = ReconciliationEngine(state, source, resolve_timezone(timezone_name))
    app.state.webhook_handler = WebhookHandler(state)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Loads the snapshot, runs the initial refresh, and owns the scheduler.
    """
    logger.info("Application startup initiated")
    init_services(app, snapshot_path=SNAPSHOT_PATH, source=OrderApiClient(), timezone_name=TRACKER_TIMEZONE)
    engine: ReconciliationEngine = app.state.reconciliation_engine

    if REFRESH_ON_STARTUP:
        # A failed initial refresh leaves the stored data in place; startup continues.
        outcome = await engine.refresh()
        if not outcome.success:
            logger.warning("Initial job refresh failed; continuing with stored data", error_code=outcome.error_code)

    scheduler = RefreshScheduler(engine, REFRESH_INTERVAL_SECONDS)
    scheduler.start()
    app.state.refresh_scheduler = scheduler
    logger.info("Application startup completed successfully")
    try:
        yield
    finally:
        logger.info("Application shutdown initiated")
        await scheduler.stop()
        logger.info("Application shutdown completed")


app = FastAPI(
    title="Delivery Tracker",
    description="""
    Tracks photography jobs scheduled for yesterday and today.

    * **Order sync** - periodic reconciliation against the order API
    * **Listing webhooks** - created / delivered notifications merged in as they arrive
    * **Dashboard feed** - `GET /jobs`, newest appointment first
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID and timing, and log each request/response pair.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time = time.time() - request.state.start_time
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
        request_id=request_id
    )

    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Request validation failed",
            "details": exc.errors(),
            "request_id": request_id
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "request_id": request_id
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        url=str(request.url),
        method=request.method,
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "request_id": request_id
        }
    )


@app.get("/health", tags=["health"], summary="Basic health check", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check for load balancers, with job and cache counts."""
    state: JobState | None = getattr(request.app.state, "job_state", None)
    engine: ReconciliationEngine | None = getattr(request.app.state, "reconciliation_engine", None)
    last = engine.last_outcome if engine is not None else None
    return HealthResponse(
        status="healthy" if state is not None else "starting",
        version=__version__,
        jobs=state.job_count() if state is not None else 0,
        cached_sites=state.site_count() if state is not None else 0,
        last_refresh_at=last.started_at if last else None,
        last_refresh_success=last.success if last else None,
    )


app.include_router(api_router)

# Dashboard assets. Mounted last so API routes take precedence over files.
if Path(PUBLIC_DIR).is_dir():
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")
else:
    @app.get("/", tags=["root"])
    async def root():
        """API root endpoint with basic information."""
        return {
            "message": "Delivery Tracker API",
            "version": __version__,
            "documentation": "/docs",
            "health_check": "/health",
            "jobs": "/jobs"
        }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting server", port=PORT)

    uvicorn.run(
        "delivery_tracker.main:app",
        host="0.0.0.0",
        port=PORT,
        log_level="info",
        access_log=True
    )
