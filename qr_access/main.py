# =======================================================================================
# qr_access/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import config
from .api.errors import register_exception_handlers
from .api.routes.dashboard import router as dashboard_router
from .api.routes.roles import router as roles_router
from .api.routes.scan import router as scan_router
from .api.routes.users import router as users_router
from .database import db_manager
from .models.schemas import HealthResponse
from .utils.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if config.DB_CREATE_SCHEMA:
        db_manager.create_schema()
    logger.info("QR Access Control API started")

    yield

    # Shutdown
    db_manager.dispose()
    logger.info("QR Access Control API stopped")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="QR Access Control API",
        version=__version__,
        description="Credential issuance, scan validation and audit log for QR-based access control",
        debug=config.API_DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(scan_router, prefix="/api", tags=["scan"])
    app.include_router(users_router, prefix="/api", tags=["identities"])
    app.include_router(dashboard_router, prefix="/api", tags=["analytics"])
    app.include_router(roles_router, prefix="/api", tags=["roles"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db_manager.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except StorageUnavailableError as e:
            return HealthResponse(status="error", dataAvailable=False, message=e.message)

    return app


app = create_app()
