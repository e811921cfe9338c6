# app/main.py
"""
Fleet Booking API entry point.

Wires the routers under /api/v1 and turns every FleetError into a JSON body
of the form {"detail": ..., "error": ...} with the error's HTTP status.
Conflicts additionally carry "conflicting_ids" so the booking form can point
at the bookings that won the race. Request-body validation failures use the
same shape.
"""

import secrets
import time

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.database import create_tables
from app.exceptions import ConflictError, FleetError, IntegrityError, ValidationError
from app.routers import bookings, health, issues, reference, vehicles
from app.utils.logger import get_logger

logger = get_logger(__name__)

OPEN_PATHS = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

app = FastAPI(
    title="Fleet Booking API",
    description="Vehicle rental fleet: availability search, bookings, issues and vehicle health.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Shared-secret gate in front of everything except OPEN_PATHS. Enabled when API_KEY is set."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        supplied = request.headers.get("X-API-Key") or request.query_params.get("api_key") or ""
        if not secrets.compare_digest(supplied.encode(), settings.API_KEY.encode()):
            logger.warning(f"[AUTH] rejected {request.method} {request.url.path} from "
                           f"{request.client.host if request.client else 'unknown'}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key", "error": "unauthorized"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


@app.middleware("http")
async def time_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Process-Time-Ms"] = str(elapsed_ms)
    line = f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms}ms)"
    if elapsed_ms >= settings.SLOW_REQUEST_MS:
        logger.warning(f"[SLOW] {line}")
    else:
        logger.debug(line)
    return response


# ── Error mapping ────────────────────────────────────────────────────────────

@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError):
    content = {"detail": exc.detail, "error": exc.error}
    if isinstance(exc, ConflictError) and exc.conflicting_ids:
        content["conflicting_ids"] = exc.conflicting_ids

    if isinstance(exc, IntegrityError):
        logger.error(f"[API] write returned no record on {request.url.path}: {exc.detail}")
    else:
        logger.info(f"[API] {exc.error} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "error": ValidationError.error,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"[API] unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
                 exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error": "internal_error"},
    )


for module, tag in (
    (vehicles, "Vehicles"),
    (bookings, "Bookings"),
    (issues, "Issues"),
    (reference, "Branches & Categories"),
    (health, "Health"),
):
    app.include_router(module.router, prefix="/api/v1", tags=[tag])


@app.on_event("startup")
async def on_startup():
    create_tables()
    guard = "row lock only (SQLite)" if settings.is_sqlite else "row lock + exclusion constraint"
    logger.info(f"Fleet Booking API ready on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT} "
                f"(overlap guard: {guard})")
