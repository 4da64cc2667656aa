# -*- coding: utf-8 -*-
"""
FastAPI application for the jobs blog.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .admin import router as admin_router
from .auth import AuthenticationRequired
from .auth_router import router as auth_router
from .authoring import PublishValidationError
from .config import settings
from .database import DuplicateSlugError, db
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .models import HealthResponse
from .public import router as public_router
from .rewriter import RewriteError
from .site import render_not_found
from .site import router as site_router

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)

# Routes that answer with JSON errors rather than HTML pages
JSON_PREFIXES = ("/api/", "/admin/", "/auth/", "/health", "/docs", "/redoc", "/openapi")


# noinspection PyUnusedLocal
@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifecycle management."""
    logger.info("Starting Jobs Blog service", extra={"version": __version__})

    # Startup
    await db.initialize()

    yield

    # Shutdown
    logger.info("Shutting down Jobs Blog service")
    await db.close()


app = FastAPI(
    title="Jobs Blog Service",
    description="Job-posting blog with AI-assisted authoring",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
    openapi_url="/openapi.json" if settings.DOCS_ENABLED else None,
)

# Middleware stack (order matters: last added = first executed)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Mount static files if directory exists
if settings.STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")


# =============================================================================
# Error handlers
# =============================================================================
@app.exception_handler(AuthenticationRequired)
async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    """Send browsers to the login page."""
    return RedirectResponse(url=exc.redirect_url, status_code=302)


@app.exception_handler(PublishValidationError)
async def publish_validation_handler(request: Request, exc: PublishValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "words_needed": exc.words_needed},
    )


@app.exception_handler(DuplicateSlugError)
async def duplicate_slug_handler(request: Request, exc: DuplicateSlugError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(RewriteError)
async def rewrite_error_handler(request: Request, exc: RewriteError):
    logger.error(f"AI rewrite failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """JSON errors for the API, the not-found page for unknown site URLs."""
    if exc.status_code == 404 and not request.url.path.startswith(JSON_PREFIXES):
        return render_not_found(request)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# =============================================================================
# Routes
# =============================================================================
@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Service health endpoint."""
    site = await db.get_site_settings() if db.is_initialized else None
    return HealthResponse(
        status="healthy",
        version=__version__,
        database_ready=db.is_initialized,
        gemini_configured=bool(site and site.has_gemini_key),
    )


app.include_router(auth_router)
app.include_router(public_router)
app.include_router(admin_router)
app.include_router(site_router)
