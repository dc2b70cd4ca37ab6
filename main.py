"""
Global Payroll Portal - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import init_db, close_db, async_session_maker
from app.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def seed_reference_data():
    """
    Seed countries, currencies and payroll types on startup.
    Safe to run repeatedly.
    """
    from app.services.reference_service import ReferenceService

    async with async_session_maker() as session:
        await ReferenceService(session).seed_reference_data()
        logger.info("Reference data ready")


async def seed_admin():
    """Create the configured global admin if one is set and missing."""
    from app.services.auth_service import AuthService

    async with async_session_maker() as session:
        admin = await AuthService(session).get_or_create_seed_admin()
        if admin:
            logger.info(f"Seed admin ready: {admin.email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    # Initialize database (dev only - use migrations in production)
    if settings.is_development:
        await init_db()
        logger.info("Database tables initialized")

    if settings.seed_reference_data:
        try:
            await seed_reference_data()
        except Exception as e:
            logger.warning(f"Reference data seeding skipped: {e}")

    try:
        await seed_admin()
    except Exception as e:
        logger.warning(f"Admin seeding skipped: {e}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Employee and payroll administration for India, France and the USA",
    version="0.1.0",
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
        "api_docs": "/api/docs" if settings.is_development else "disabled",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


from app.routers import ai_query, auth, employees, payroll, reference

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(reference.router, prefix="/api/v1", tags=["Reference Data"])
app.include_router(employees.router, prefix="/api/v1/employees", tags=["Employees"])
app.include_router(payroll.router, prefix="/api/v1/payroll", tags=["Payroll"])
app.include_router(ai_query.router, prefix="/api/v1/ai-query", tags=["AI Query"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
