"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadwave.api.v1.routes import api_router
from leadwave.core.config import get_settings
from leadwave.core.tenant_middleware import TenantMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.

    Startup:
    - Validates database and auth configuration
    - Ensures lead/campaign indexes (unique live phone per company)

    Shutdown:
    - Closes the MongoDB client
    """
    # ========================
    # STARTUP
    # ========================
    logger.info("Starting LeadWave...")

    settings = get_settings()
    strict_validation = settings.environment == "production"

    try:
        from leadwave.core.validation import validate_config_on_startup
        validate_config_on_startup(strict=strict_validation)
    except RuntimeError as e:
        if strict_validation:
            logger.error(f"Startup failed: {e}")
            raise
        else:
            logger.warning(f"Configuration warnings (non-fatal in {settings.environment}): {e}")

    try:
        from leadwave.infrastructure.storage.database import ensure_indexes, get_database
        ensure_indexes(get_database())
    except Exception as e:
        if strict_validation:
            logger.error(f"Startup failed: could not ensure indexes: {e}")
            raise
        logger.warning(f"Index setup skipped: {e}")

    logger.info("LeadWave started successfully")

    yield  # Application is running

    # ========================
    # SHUTDOWN
    # ========================
    logger.info("Shutting down LeadWave...")

    try:
        from leadwave.infrastructure.storage.database import get_client
        if get_client.cache_info().currsize:
            get_client().close()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")

    logger.info("LeadWave shutdown complete")


app = FastAPI(
    title="LeadWave",
    description="Multi-tenant lead management with bulk spreadsheet import",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# MULTI-TENANT: company_id on request.state
app.add_middleware(TenantMiddleware)

# Include API routes
app.include_router(api_router, prefix=get_settings().api_prefix)


@app.get("/")
async def root():
    return {"message": "LeadWave API", "status": "running"}


@app.get("/health")
async def health_check():
    """Basic liveness check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
