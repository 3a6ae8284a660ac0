"""
Social Auth API

Wires the authentication service into a FastAPI app:
- logging configured from LOG_LEVEL
- database check on startup
- CORS and request logging
- translation of AuthError into JSON error responses
- the v1 user routes
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from social_auth.core.config import settings
from social_auth.core.exceptions import AuthError, AuthenticationError
from social_auth.db.database import check_db_connection, engine
from social_auth.middleware.logging import LoggingMiddleware
from social_auth.api.v1.router import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.PROJECT_NAME} {APP_VERSION} starting ({settings.ENVIRONMENT})")

    if await check_db_connection():
        logger.info("Database reachable")
    else:
        # Keep serving; /health reports the outage
        logger.warning("Database unreachable at startup")

    yield

    await engine.dispose()
    logger.info(f"{settings.PROJECT_NAME} stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "Signup and login by email or username, JWT sessions carried in a "
        "bearer header or an http-only cookie, password reset by emailed "
        "code, and role-based access control."
    ),
    version=APP_VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
)

# Credentialed CORS cannot be combined with a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=not settings.DEBUG,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

if settings.DEBUG:
    app.add_middleware(LoggingMiddleware)


# ============================================================
# Error translation
# ============================================================
def _error_body(detail: str, server_side: bool = False) -> dict:
    return {"status": "error" if server_side else "fail", "detail": detail}


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    """Every auth failure leaves with the status its class declares."""
    if exc.is_client_error:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, server_side=not exc.is_client_error),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400, same shape as ValidationError."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))

    return JSONResponse(status_code=400, content=_error_body("; ".join(messages)))


@app.exception_handler(404)
async def route_not_found_handler(request: Request, exc):
    return JSONResponse(status_code=404, content=_error_body("Not found"))


@app.exception_handler(500)
async def unexpected_error_handler(request: Request, exc):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body("Internal server error", server_side=True))


# ============================================================
# Routes
# ============================================================
@app.get("/", tags=["Health"])
async def service_info():
    return {
        "service": settings.PROJECT_NAME,
        "version": APP_VERSION,
        "api": settings.API_V1_PREFIX,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus database reachability."""
    if not await check_db_connection():
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected"}
        )
    return {"status": "healthy", "database": "connected"}


app.include_router(api_router, prefix=settings.API_V1_PREFIX)
