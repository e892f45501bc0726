# backend/tutorhub/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .core.config import settings
from .core.constants import BRAND_NAME
from .core.exceptions import DomainException, RepositoryException
from .routes import health
from .routes.v1 import availability as availability_v1
from .routes.v1 import cron as cron_v1
from .routes.v1 import notifications as notifications_v1
from .routes.v1 import sessions as sessions_v1
from .routes.v1 import tutors as tutors_v1

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} Scheduling API",
    description="Tutor availability, session booking and session lifecycle",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Domain errors that escape a route are rendered like handled ones."""
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(RepositoryException)
async def repository_exception_handler(request: Request, exc: RepositoryException) -> JSONResponse:
    logger.error(f"Repository failure on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"message": "A database error occurred", "code": "REPOSITORY_ERROR"}},
    )


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(availability_v1.router)
api_v1.include_router(tutors_v1.router)
api_v1.include_router(sessions_v1.router)
api_v1.include_router(notifications_v1.router)
api_v1.include_router(cron_v1.router)

app.include_router(api_v1)
app.include_router(health.router)
