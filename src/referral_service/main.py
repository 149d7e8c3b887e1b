"""FastAPI entrypoint for the veterinary referral service."""

import logging
import sys

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from referral_service import __version__
from referral_service.api.routes import cases_router, files_router
from referral_service.config import settings
from referral_service.infrastructure.database import db_client
from referral_service.infrastructure.persistence import RepositoryException
from referral_service.models import HealthResponse


def configure_logging() -> None:
    """Send every logger to stdout at ``LOG_LEVEL``."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Veterinary Case Referral Service",
    description="Case intake, attachment linking and specialist review for veterinary referrals",
    version=__version__,
)

# Identity comes from X-User-ID / X-User-Role, set by the gateway
logger.info("Trusting X-User-* headers from the API gateway")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cases_router)
app.include_router(files_router)


@app.exception_handler(RepositoryException)
async def repository_error_handler(request: Request, exc: RepositoryException):
    logger.error(f"{request.method} {request.url.path} failed in the case store: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Case store unavailable"},
    )


@app.on_event("startup")
async def startup():
    """Log the configured backends and prepare the database if one is used."""
    logger.info(
        f"{settings.service_name} {__version__} starting on port {settings.port} "
        f"({settings.environment})"
    )
    logger.info(
        f"Backends: cases={settings.case_storage_type}, objects={settings.object_storage_type}"
    )

    if not settings.uses_database:
        return

    try:
        await db_client.verify_connection()
        # Deployments run `alembic upgrade head`; this covers local runs without it
        await db_client.create_tables()
    except Exception as e:
        logger.error(f"Database at {db_client.database_url} is not usable: {e}")
        raise
    logger.info("Case database ready")


@app.on_event("shutdown")
async def shutdown():
    logger.info(f"{settings.service_name} stopping")
    await db_client.close()


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="""
Reports service identity and which backends are configured.

**Response Example**:
```json
{
  "status": "healthy",
  "service": "vet-referral-service",
  "version": "1.0.0",
  "database": "sqlite+aiosqlite",
  "case_storage": "inmemory",
  "object_storage": "inmemory"
}
```

`database` is the driver part of `DATABASE_URL` only; credentials are never echoed.
No backend is contacted.

**Authorization**: None required (public endpoint)
    """,
    responses={200: {"description": "Service is up"}},
)
async def health_check():
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=__version__,
        database=settings.database_url.split("://")[0],
        case_storage=settings.case_storage_type,
        object_storage=settings.object_storage_type,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "referral_service.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
    )
