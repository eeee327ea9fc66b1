import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from menuhub.core import database
from menuhub.core.database import get_db
from menuhub.core.errors import NotFound, ValidationError, install_error_handlers
from menuhub.middleware.tenant_context import TenantContextMiddleware
from menuhub.models.menu_item import MenuItem
from menuhub.models.tenant import Tenant
from menuhub.routers.menu_items import router as menu_items_router
from menuhub.routers.public_menu import router as public_menu_router
from menuhub.schemas.catalog import CategoryCreate, MenuItemCreate, MenuItemUpdate
from menuhub.schemas.modifiers import ModifierGroupCreate
from menuhub.services import catalog, modifier_binding
from menuhub.services.modifier_registry import create_modifier_group
from tests.fixtures_data import MILK_GROUP, flat_item


@pytest.fixture
def foreign_item(db, make_tenant):
    make_tenant(1, "alpha")
    make_tenant(2, "bravo")
    category = catalog.create_category(db, 2, CategoryCreate(name="Bravo drinks"))
    return catalog.create_menu_item(db, 2, MenuItemCreate(**flat_item(category.id, name="Bravo Latte", price="9.00")))


def test_services_never_touch_another_tenants_rows(db, foreign_item):
    with pytest.raises(NotFound):
        catalog.get_menu_item(db, 1, foreign_item.id)
    with pytest.raises(NotFound):
        catalog.update_menu_item(db, 1, foreign_item.id, MenuItemUpdate(name="Hijacked"))
    with pytest.raises(NotFound):
        catalog.delete_menu_item(db, 1, foreign_item.id)
    with pytest.raises(NotFound):
        modifier_binding.assign_modifier_groups(db, 1, foreign_item.id, [])

    db.expire_all()
    stored = db.query(MenuItem).filter(MenuItem.id == foreign_item.id).one()
    assert stored.name == "Bravo Latte"


def test_foreign_id_looks_exactly_like_a_missing_one(make_client, foreign_item):
    client = make_client([menu_items_router], tenant_id=1)

    foreign = client.get(f"/api/admin/menu-items/{foreign_item.id}")
    missing = client.get("/api/admin/menu-items/9999")
    patched = client.patch(f"/api/admin/menu-items/{foreign_item.id}", json={"name": "Hijacked"})

    assert foreign.status_code == missing.status_code == patched.status_code == 404
    assert foreign.json() == missing.json() == patched.json() == {"detail": "Menu item not found"}


def test_foreign_group_cannot_be_bound(db, make_tenant):
    make_tenant(1, "alpha")
    make_tenant(2, "bravo")
    create_modifier_group(db, 2, ModifierGroupCreate(**MILK_GROUP))
    category = catalog.create_category(db, 1, CategoryCreate(name="Alpha drinks"))
    item = catalog.create_menu_item(db, 1, MenuItemCreate(**flat_item(category.id)))

    with pytest.raises(ValidationError) as excinfo:
        modifier_binding.assign_modifier_groups(db, 1, item.id, ["milk"])

    assert excinfo.value.problems == ["Unknown modifier group: milk"]


@pytest.fixture
def resolving_client(session_factory, monkeypatch):
    """App that resolves the tenant from the request like production does."""
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    app = FastAPI()
    install_error_handlers(app)
    app.add_middleware(TenantContextMiddleware)
    app.include_router(public_menu_router)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app)


def test_public_menu_follows_the_host_subdomain(resolving_client, foreign_item):
    bravo = resolving_client.get("/api/public/menu", headers={"host": "bravo.menuhub.app"})
    alpha = resolving_client.get("/api/public/menu", headers={"host": "alpha.menuhub.app"})

    assert [item["name"] for item in bravo.json()[0]["items"]] == ["Bravo Latte"]
    assert alpha.json() == []


def test_unknown_host_has_no_tenant(resolving_client, foreign_item):
    response = resolving_client.get("/api/public/menu", headers={"host": "nobody.menuhub.app"})

    assert response.status_code == 401


def test_tenant_header_is_honoured_on_public_paths(resolving_client, foreign_item):
    response = resolving_client.get("/api/public/menu", headers={"x-tenant-id": "2"})

    assert response.status_code == 200
    assert response.json()[0]["items"][0]["price"] == "9.00"


def test_inactive_tenant_is_not_resolved(db, resolving_client, foreign_item):
    bravo = db.get(Tenant, 2)
    bravo.is_active = False
    db.commit()

    response = resolving_client.get("/api/public/menu", headers={"host": "bravo.menuhub.app"})

    assert response.status_code == 401
