"""
FastAPI application for the farmer advisory service.

Endpoints:
    POST /query     — Personalised recommendation for a registered farmer
    POST /register  — Register a farmer with name, email and location
    POST /login     — Look up a registered farmer by email
    GET  /health    — Health check with provider availability
    GET  /metrics   — Prometheus metrics
"""

import logging
import threading
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from agriadvisor import __version__
from agriadvisor.advisory.pipeline import AdvisoryPipeline, build_pipeline
from agriadvisor.api.schemas import (
    CoordinatesOut,
    DataCollectedOut,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    QueryRequest,
    QueryResponse,
    RegisterRequest,
    UserEnvelope,
    UserOut,
)
from agriadvisor.config import get_settings
from agriadvisor.errors import (
    IdentityNotFound,
    InternalError,
    UserAlreadyExists,
    ValidationError,
    scrub_secrets,
)
from agriadvisor.logging_utils import init_logging, reset_trace_id, set_trace_id
from agriadvisor.users.directory import Identity, UserDirectory, build_user_directory

logger = logging.getLogger(__name__)

# ---- Prometheus metrics ----
REQUEST_COUNT = Counter("advisory_requests_total", "Total advisory requests", ["status"])
REQUEST_LATENCY = Histogram(
    "advisory_latency_seconds", "Advisory pipeline latency",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)
FALLBACK_COUNT = Counter(
    "advisory_fallback_total", "Responses built from fallback data",
    ["source"],
)

# ---- Global service references ----
user_directory: UserDirectory = None
pipeline: AdvisoryPipeline = None
_services_lock = threading.Lock()


def load_services():
    """Build the user directory and pipeline from settings."""
    global user_directory, pipeline

    settings = get_settings()
    user_directory = build_user_directory(settings.user_db_path)
    pipeline = build_pipeline(settings, user_directory)
    logger.info(
        "Services ready (geocoding=%s, weather=%s, advice=%s)",
        _mode(pipeline.geocoder), _mode(pipeline.weather), _mode(pipeline.advisor),
    )


def _services():
    if pipeline is None or user_directory is None:
        with _services_lock:
            if pipeline is None or user_directory is None:
                load_services()
    return pipeline, user_directory


def _mode(adapter) -> str:
    return "live" if adapter.is_live else "fallback"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_logging(log_path=get_settings().log_path)
    _services()
    yield


# ---- App setup ----
app = FastAPI(
    title="Farmer Advisory API",
    description="Personalised agricultural recommendations from weather, market and location data",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    token = set_trace_id(request.headers.get("x-trace-id") or uuid.uuid4().hex[:12])
    try:
        return await call_next(request)
    finally:
        reset_trace_id(token)


# Body type errors are reported in the same {"error": ...} shape as missing fields.
BODY_ERROR_MESSAGES = {
    "/query": "Query and email are required",
    "/register": "Name, email and location are required",
    "/login": "Email is required",
}


@app.exception_handler(RequestValidationError)
async def body_error_handler(request: Request, exc: RequestValidationError):
    message = BODY_ERROR_MESSAGES.get(request.url.path)
    if message is None:
        return await request_validation_exception_handler(request, exc)
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(IdentityNotFound)
async def identity_not_found_handler(request: Request, exc: IdentityNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(InternalError)
async def internal_error_handler(request: Request, exc: InternalError):
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to process query", "details": str(exc)},
    )


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    advisory, _ = _services()
    providers = {
        "geocoding": _mode(advisory.geocoder),
        "weather": _mode(advisory.weather),
        "market": _mode(advisory.market),
        "advice": _mode(advisory.advisor),
    }
    return HealthResponse(
        status="healthy" if all(m == "live" for m in providers.values()) else "degraded",
        providers=providers,
        version=__version__,
    )


@app.post(
    "/query",
    response_model=QueryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def query(request: QueryRequest):
    """
    Answer a farmer's question using their saved location, current weather,
    market prices and the advisory model.
    """
    advisory, _ = _services()
    start_time = time.time()

    try:
        result = advisory.handle(request.query, request.email)
    except (ValidationError, IdentityNotFound):
        REQUEST_COUNT.labels(status="rejected").inc()
        raise
    except Exception as e:
        REQUEST_COUNT.labels(status="error").inc()
        logger.exception("Query processing error")
        raise InternalError(scrub_secrets(str(e), get_settings().secrets())) from e

    REQUEST_COUNT.labels(status="ok").inc()
    REQUEST_LATENCY.observe(time.time() - start_time)
    collected = result.data_collected
    for source, live in (("weather", collected.weather),
                         ("crop_price", collected.crop_price),
                         ("maps", collected.maps)):
        if not live:
            FALLBACK_COUNT.labels(source=source).inc()

    return QueryResponse(
        advice=result.advice,
        location=result.location,
        coordinates=CoordinatesOut(
            lat=result.coordinates.lat,
            lng=result.coordinates.lng,
            formatted_address=result.coordinates.formatted_address,
        ),
        data_collected=DataCollectedOut(
            weather=collected.weather,
            crop_price=collected.crop_price,
            maps=collected.maps,
        ),
    )


@app.post(
    "/register",
    response_model=UserEnvelope,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def register(request: RegisterRequest):
    """Register a farmer and their saved location."""
    _, directory = _services()

    if not request.name or not request.email or not request.location:
        return JSONResponse(
            status_code=400,
            content={"error": "Name, email and location are required"},
        )

    identity = Identity(name=request.name, email=request.email, location=request.location)
    try:
        directory.register(identity)
    except UserAlreadyExists:
        return JSONResponse(
            status_code=400,
            content={"error": "User already exists with this email"},
        )
    except Exception:
        logger.exception("Registration error")
        return JSONResponse(status_code=500, content={"error": "Failed to register user"})

    logger.info("Registered user %s at '%s'", identity.email, identity.location)
    return UserEnvelope(message="User registered successfully", user=UserOut(**asdict(identity)))


@app.post(
    "/login",
    response_model=UserEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def login(request: LoginRequest):
    """Return the saved profile for a registered email."""
    _, directory = _services()

    if not request.email:
        return JSONResponse(status_code=400, content={"error": "Email is required"})

    try:
        identity = directory.find_by_email(request.email)
    except Exception:
        logger.exception("Login error")
        return JSONResponse(status_code=500, content={"error": "Failed to login"})

    if identity is None:
        return JSONResponse(status_code=404, content={"error": "User not found"})

    return UserEnvelope(message="Login successful", user=UserOut(**asdict(identity)))


@app.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
