from fastapi import FastAPI, Request, HTTPException, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from cinesocial.config import cors_origins, environment_name, load_settings
from cinesocial.database import create_backend
from cinesocial.routes import auth, movies, profiles, reviews, watchlist, realtime
from cinesocial.utils.dependencies import require_api_key
from cinesocial.utils.errors import (
    DatabaseError,
    CHECK_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    INSUFFICIENT_PRIVILEGE,
    NOT_FOUND,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# HTTP status for each backend error code; anything else is a 500
ERROR_STATUS = {
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    UNIQUE_VIOLATION: status.HTTP_409_CONFLICT,
    FOREIGN_KEY_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NOT_NULL_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CHECK_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    INSUFFICIENT_PRIVILEGE: status.HTTP_403_FORBIDDEN,
}


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    - Build the backend from BACKEND_URL / BACKEND_PUBLISHABLE_KEY, unless
      one was already placed on app.state (tests do this)
    - Make sure every table exists

    Shutdown:
    - Close realtime subscriptions and the connection pool
    """
    owns_backend = getattr(app.state, "backend", None) is None
    if owns_backend:
        settings = load_settings()
        app.state.backend = create_backend(settings.backend_url, settings.publishable_key)
        app.state.backend.create_all()

    logger.info("=" * 60)
    logger.info("CineSocial API starting")
    logger.info(f"   Environment: {environment_name()}")
    logger.info(f"   CORS Origins: {len(allowed_origins)} configured")
    logger.info("=" * 60)

    yield

    logger.info("CineSocial API shutting down")
    if owns_backend:
        app.state.backend.dispose()
        app.state.backend = None


app = FastAPI(
    title="CineSocial API",
    description="Movie reviews, comments, follows and lists",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# CORS
# ============================================

allowed_origins = cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================
# Exception Handlers
# ============================================

@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    """Map backend error codes onto HTTP statuses"""
    status_code = ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(f"Unhandled database error ({exc.code}): {exc.message}")
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    # Swagger UI loads its assets from jsdelivr
    response.headers["Content-Security-Policy"] = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' https://m.media-amazon.com https://fastapi.tiangolo.com data:"
    )

    return response


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "CineSocial API",
        "version": "1.0.0",
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "api_version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Every /api route requires the publishable key
api_key_required = [Depends(require_api_key)]

app.include_router(auth.router, dependencies=api_key_required)
app.include_router(profiles.router, dependencies=api_key_required)
app.include_router(movies.router, dependencies=api_key_required)
app.include_router(reviews.router, dependencies=api_key_required)
app.include_router(reviews.comment_router, dependencies=api_key_required)
app.include_router(watchlist.router, dependencies=api_key_required)
app.include_router(watchlist.custom_list_router, dependencies=api_key_required)

# Websocket feeds check the key themselves (query parameter)
app.include_router(realtime.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
