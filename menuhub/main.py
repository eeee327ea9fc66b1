import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menuhub.core.config import CORS_ALLOW_ORIGIN_REGEX, CORS_ORIGINS, ENV
from menuhub.core.database import engine
from menuhub.core.errors import install_error_handlers
from menuhub.core.logging_setup import configure_logging
from menuhub.core.startup_checks import ensure_migrations_applied, validate_database_environment
from menuhub.middleware.observability import ObservabilityMiddleware
from menuhub.middleware.tenant_context import TenantContextMiddleware
import menuhub.models  # noqa: F401  registers every table on Base.metadata

from menuhub.routers.admin_audit import router as admin_audit_router
from menuhub.routers.admin_auth import router as admin_auth_router
from menuhub.routers.bindings import router as bindings_router
from menuhub.routers.categories import router as categories_router
from menuhub.routers.menu_items import router as menu_items_router
from menuhub.routers.modifiers import router as modifiers_router
from menuhub.routers.onboarding import router as onboarding_router
from menuhub.routers.promotions import router as promotions_router
from menuhub.routers.public_menu import router as public_menu_router
from menuhub.routers.settings import router as settings_router
from menuhub.routers.uploads import router as uploads_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s startup failed env=%s", STARTUP_PREFIX, ENV)
        raise
    logger.info("%s ready env=%s", STARTUP_PREFIX, ENV)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="MenuHub API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Last added runs first: CORS, then request ids, then tenant resolution
app.add_middleware(TenantContextMiddleware)
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_error_handlers(app)

app.include_router(admin_auth_router)
app.include_router(categories_router)
app.include_router(menu_items_router)
app.include_router(modifiers_router)
app.include_router(bindings_router)
app.include_router(promotions_router)
app.include_router(settings_router)
app.include_router(uploads_router)
app.include_router(admin_audit_router)
app.include_router(public_menu_router)
app.include_router(onboarding_router)


@app.get("/health")
def health():
    return {"status": "ok", "env": ENV}
