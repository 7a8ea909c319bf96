"""
CMS Admin API - FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import SessionLocal, engine, Base
from .limiter import limiter
from .logging_config import api_logger
from .middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from .responses import register_exception_handlers
from .routes import (
    auth_router,
    categories_router,
    dashboard_router,
    maintenance_router,
    placements_router,
    posts_router,
    users_router,
)
from .services.registries import PlacementRegistry
from .store import UNIQUE_FIELDS, SqlDocumentStore

settings = get_settings()

# Create tables (in production, use Alembic migrations instead)
Base.metadata.create_all(bind=engine)


def seed_placements() -> int:
    """Insert the default placements when the collection is empty."""
    db = SessionLocal()
    try:
        return PlacementRegistry(SqlDocumentStore(db, unique_fields=UNIQUE_FIELDS)).seed_defaults()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    if settings.seed_default_placements:
        seeded = seed_placements()
        api_logger.info("Default placements checked on startup", seeded=seeded)
    api_logger.info("CMS Admin API started", environment=settings.environment)

    yield

    api_logger.info("CMS Admin API stopped")


app = FastAPI(
    title=settings.app_name,
    description="Admin backend for posts, categories, placements and users",
    version="1.0.0",
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
register_exception_handlers(app)

# Security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# Request logging middleware (only in debug mode)
if settings.debug:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    max_age=3600,  # Cache preflight requests for 1 hour
)

# Routes
app.include_router(auth_router)
app.include_router(posts_router)
app.include_router(categories_router)
app.include_router(placements_router)
app.include_router(users_router)
app.include_router(dashboard_router)
app.include_router(maintenance_router)


@app.get("/api/health")
def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": "1.0.0",
    }
