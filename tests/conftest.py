import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("ADMIN_SESSION_SECRET", "test-session-secret")
os.environ.setdefault("EMAIL_PROVIDER", "mock")
os.environ.setdefault("ADMIN_SESSION_COOKIE_SECURE", "0")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import menuhub.models  # noqa: E402,F401
from menuhub.core.database import Base, get_db  # noqa: E402
from menuhub.core.errors import install_error_handlers  # noqa: E402
from menuhub.deps import require_admin_user  # noqa: E402
from menuhub.models.tenant import Tenant  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _seed_tenant(db, tenant_id: int, subdomain: str, **fields) -> Tenant:
    tenant = Tenant(
        id=tenant_id,
        subdomain=subdomain,
        restaurant_name=fields.pop("restaurant_name", subdomain.title()),
        business_name=fields.pop("business_name", f"{subdomain.title()} LLC"),
        **fields,
    )
    db.add(tenant)
    db.commit()
    return tenant


def _build_client(session_factory, routers, *, tenant_id=1, admin_role="owner") -> TestClient:
    """App with the given routers, a fixed tenant on every request and a logged-in admin."""
    app = FastAPI()
    install_error_handlers(app)

    @app.middleware("http")
    async def _inject_tenant(request, call_next):
        request.state.tenant = SimpleNamespace(id=tenant_id) if tenant_id is not None else None
        return await call_next(request)

    for router in routers:
        app.include_router(router)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[require_admin_user] = lambda: SimpleNamespace(
        id=7,
        tenant_id=tenant_id,
        role=admin_role,
        active=True,
        email="admin@example.com",
    )
    return TestClient(app)


@pytest.fixture
def make_tenant(db):
    def _make(tenant_id: int, subdomain: str, **fields) -> Tenant:
        return _seed_tenant(db, tenant_id, subdomain, **fields)

    return _make


@pytest.fixture
def make_client(session_factory):
    def _make(routers, **kwargs) -> TestClient:
        return _build_client(session_factory, routers, **kwargs)

    return _make
