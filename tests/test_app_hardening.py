from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from menuhub.core import startup_checks
from menuhub.core.logging_setup import JsonFormatter, mask_secrets
from menuhub.core.request_context import request_scope, set_request_context

REQUIRED_ROUTES = {
    "/health",
    "/api/admin/auth/login",
    "/api/admin/categories",
    "/api/admin/menu-items/{item_id}",
    "/api/admin/menu-items/{item_id}/modifier-groups",
    "/api/admin/modifiers/groups/{group_id}",
    "/api/admin/promotions",
    "/api/admin/settings",
    "/api/admin/uploads/{folder}",
    "/api/public/menu",
    "/api/public/cart/quote",
    "/api/onboarding/complete",
}


@pytest.fixture
def app_client(monkeypatch):
    from menuhub import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    with TestClient(main.app) as client:
        yield client


def test_app_starts_with_every_router(app_client):
    from menuhub import main

    response = app_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "env": "test"}
    assert app_client.get("/openapi.json").status_code == 200
    assert REQUIRED_ROUTES.issubset(main.app.openapi()["paths"])


def test_request_id_is_returned_or_echoed(app_client):
    generated = app_client.get("/health").headers.get("X-Request-ID")
    echoed = app_client.get("/health", headers={"X-Request-ID": "req-123"}).headers.get("X-Request-ID")

    UUID(generated)
    assert echoed == "req-123"


def test_cors_allows_restaurant_subdomains_only(app_client):
    preflight = {"access-control-request-method": "GET"}

    allowed = app_client.options("/health", headers={"origin": "https://bluebean.menuhub.app", **preflight})
    blocked = app_client.options("/health", headers={"origin": "https://evil.example.com", **preflight})

    assert allowed.headers.get("access-control-allow-origin") == "https://bluebean.menuhub.app"
    assert blocked.status_code == 400
    assert blocked.headers.get("access-control-allow-origin") is None


def test_admin_routes_without_session_are_rejected(app_client):
    response = app_client.get("/api/admin/categories", headers={"x-tenant-id": "1"})

    assert response.status_code == 401


def test_production_rejects_sqlite(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "sqlite:///./forbidden.db")

    with pytest.raises(RuntimeError, match="SQLite is forbidden"):
        startup_checks.validate_database_environment()


def test_migration_check_fails_when_pending(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "pending.db"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE alembic_version (version_num VARCHAR(32) NOT NULL)")
    conn.execute("INSERT INTO alembic_version (version_num) VALUES ('000000000000')")
    conn.commit()
    conn.close()
    monkeypatch.setattr(startup_checks, "IS_TEST", False)

    with pytest.raises(RuntimeError, match="Pending migrations"):
        startup_checks.ensure_migrations_applied(
            engine=create_engine(f"sqlite:///{db_path}"),
            alembic_config_path=Path(__file__).resolve().parents[1] / "alembic.ini",
        )


def test_secrets_are_masked():
    masked = mask_secrets('password=hunter2 token: abc.def Authorization: Bearer xyz')

    assert "hunter2" not in masked
    assert "abc.def" not in masked
    assert "xyz" not in masked


def test_json_logs_carry_request_context():
    record = logging.LogRecord("menuhub.test", logging.INFO, __file__, 1, "quoted %s", ("cart",), None)
    record.step = "CreateTenantRecord"

    with request_scope("req-9"):
        set_request_context(tenant_id=4, user_id=7)
        payload = json.loads(JsonFormatter().format(record))

    assert payload["request_id"] == "req-9"
    assert (payload["tenant_id"], payload["user_id"]) == (4, 7)
    assert payload["message"] == "quoted cart"
    assert payload["step"] == "CreateTenantRecord"
