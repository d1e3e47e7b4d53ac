import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config, models  # noqa: F401
from .auth import SupabaseIdentityProvider
from .database import Base, build_engine, build_session_factory
from .domain.admin.router import router as admin_stats_router
from .domain.bookings.admin_router import router as admin_bookings_router
from .domain.bookings.router import legacy_router as legacy_bookings_router
from .domain.bookings.router import router as bookings_router
from .domain.bookings.worker_router import router as worker_bookings_router
from .domain.catalog.router import admin_router as admin_services_router
from .domain.catalog.router import options_router as admin_service_options_router
from .domain.catalog.router import public_router as public_services_router
from .domain.profiles.router import auth_router
from .domain.profiles.router import router as profile_router
from .domain.profiles.router import workers_router as admin_workers_router
from .errors import AppError
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

PAYLOAD_TOO_LARGE_MESSAGE = (
    "File size is too large. Maximum allowed size is 10MB (10,000 KB). "
    "Please compress your image and try again."
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Application starting up...")
    engine = build_engine(config.DATABASE_URL)
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("✅ Database tables ready")
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    if config.SUPABASE_URL and config.SUPABASE_KEY:
        app.state.identity_provider = SupabaseIdentityProvider(
            config.SUPABASE_URL, config.SUPABASE_KEY, timeout=config.IDENTITY_TIMEOUT_SECONDS
        )
        logger.info("✅ Identity provider configured")
    else:
        app.state.identity_provider = None
        logger.error("❌ SUPABASE_URL / SUPABASE_SECRET_KEY missing, authenticated routes will answer 503")

    yield

    logger.info("Application shutting down...")
    if app.state.identity_provider is not None:
        await app.state.identity_provider.aclose()
    engine.dispose()


app = FastAPI(title="Chorescape API", version="1.0.0", lifespan=lifespan)


def error_body(message: str, data=None, exc: Exception | None = None) -> dict:
    body = {"message": message, "data": data if data is not None else []}
    if exc is not None and not config.IS_PRODUCTION:
        body["error"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} - {exc.status_code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.data, exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Request validation errors answer 400 with one entry per failing field.
    Problems with the Authorization header are reported as 401.
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(status_code=401, content=error_body("No token provided"))

    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = str(error.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})

    logger.warning(f"Validation error for {request.url.path}: {details}")
    message = details[0]["message"] if details else "Invalid request"
    return JSONResponse(status_code=400, content=error_body(message, details))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content=error_body("Route not found"))
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def database_unavailable_handler(request: Request, exc: Exception):
    logger.error(f"❌ Database unavailable on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=503, content=error_body("Database temporarily unavailable", exc=exc)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ {request.method} {request.url.path} - Error: {str(exc)}")
    return JSONResponse(status_code=500, content=error_body("Internal Server Error", exc=exc))


# ============================================================================
# MIDDLEWARE
# ============================================================================


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > config.MAX_BODY_BYTES:
        logger.warning(
            f"🚫 Payload too large on {request.url.path}: {content_length} bytes"
        )
        return JSONResponse(status_code=413, content=error_body(PAYLOAD_TOO_LARGE_MESSAGE))
    return await call_next(request)


if config.SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/api/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


ALLOWED_ORIGINS = config.ALLOWED_ORIGINS + ([config.FRONTEND_URL] if config.FRONTEND_URL else [])
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=r"https://.*\.pages\.dev",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# Routes
app.include_router(public_services_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(bookings_router)
app.include_router(legacy_bookings_router)
app.include_router(worker_bookings_router)
app.include_router(admin_stats_router)
app.include_router(admin_bookings_router)
app.include_router(admin_workers_router)
app.include_router(admin_services_router)
app.include_router(admin_service_options_router)


@app.get("/")
def root():
    return {"status": "Backend is live", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/health")
def health():
    return {"ok": True}
