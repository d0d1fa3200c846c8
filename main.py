# Essential imports
import time
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from routers import auth, users, logs
from contextlib import asynccontextmanager

# Import all models for SQLAlchemy relationship resolution
import models  # This triggers the imports in models/__init__.py
from core.database import Base, engine

# Rate limiter imports
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from middleware.rate_limiter import limiter

# Logging imports
from core.logging_config import setup_logging, get_logger
from middleware import RequestIDMiddleware, get_request_id, get_client_ip
from utils.logger import log_request
from core.config import settings
from core.exceptions import AppError, InternalError, ValidationError

# CORS imports
from fastapi.middleware.cors import CORSMiddleware

# Initialize logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # No migration tool; tables are created on startup outside of tests
    if settings.ENV != "testing":
        Base.metadata.create_all(bind=engine)
    logger.info("Application startup complete", extra={"event": "startup", "env": settings.ENV})
    yield
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title="VL Store API",
    description="Store registration, sessions and audit logs for VL Store",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# CORS configuration; credentials are needed for the refresh cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every HTTP request with method, path, status code and duration.
    """
    start_time = time.time()

    response = await call_next(request)

    log_request(
        logger,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=(time.time() - start_time) * 1000,
        client_ip=get_client_ip(request),
        extra={"query": dict(request.query_params)} if request.query_params else None
    )

    return response


# Added last so it wraps everything above and the request id is set for their logs
app.add_middleware(RequestIDMiddleware)


# Health check
@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "ok"}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Map the application error taxonomy to JSON.

    4xx keep their specific message; 5xx are logged with the stack trace
    and answered with a generic one.
    """
    context = {
        "path": request.url.path,
        "method": request.method,
        "error_type": type(exc).__name__,
        "status_code": exc.status_code,
    }

    if exc.status_code >= 500:
        logger.error(f"Application error: {exc.message}", extra=context, exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": InternalError.message}
        )

    logger.warning(exc.message, extra=context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message}
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Dados inválidos."

    first = errors[0]
    message = str(first.get("msg", "Dados inválidos."))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, reported before anything is persisted."""
    error = ValidationError(_validation_message(exc))

    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "error_count": len(exc.errors())}
    )

    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all for anything unexpected (database failures included).

    Logs full context and stack trace; the client only sees a generic
    message.
    """
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "request_id": get_request_id(request)
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": InternalError.message}
    )


# Including routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(logs.router)


# Add rate limiter to the app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
