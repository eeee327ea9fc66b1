import pytest

from menuhub.routers.bindings import router as bindings_router
from menuhub.routers.categories import router as categories_router
from menuhub.routers.menu_items import router as menu_items_router
from menuhub.routers.modifiers import router as modifiers_router
from menuhub.routers.public_menu import router as public_menu_router
from tests.fixtures_data import EXTRAS_GROUP, MILK_GROUP, flat_item, variants_item

ADMIN_ROUTERS = [categories_router, menu_items_router, modifiers_router, bindings_router]


@pytest.fixture
def admin(make_tenant, make_client):
    make_tenant(1, "bluebean")
    return make_client(ADMIN_ROUTERS)


@pytest.fixture
def public(admin, make_client):
    return make_client([public_menu_router])


@pytest.fixture
def seeded(admin):
    admin.post("/api/admin/modifiers/groups", json=MILK_GROUP)
    admin.post("/api/admin/modifiers/groups", json=EXTRAS_GROUP)
    category = admin.post("/api/admin/categories", json={"name": "Coffee"}).json()
    latte = admin.post("/api/admin/menu-items", json=flat_item(category["id"], group_ids=["milk", "extras"])).json()
    frappe = admin.post("/api/admin/menu-items", json=variants_item(category["id"])).json()
    return {"category": category, "latte": latte, "frappe": frappe}


def _option_id(item, label):
    for group in item["modifier_groups"]:
        for option in group["options"]:
            if option["label"] == label:
                return option["id"]
    raise AssertionError(label)


def test_admin_builds_a_menu(admin, seeded):
    latte = seeded["latte"]

    assert latte["pricing_mode"] == "flat"
    assert latte["price"] == "65.00"
    assert [group["id"] for group in latte["modifier_groups"]] == ["milk", "extras"]
    assert [variant["name"] for variant in seeded["frappe"]["variants"]] == ["Medium", "Grande"]

    tree = admin.get("/api/admin/menu").json()
    assert [item["name"] for item in tree[0]["items"]] == ["Latte", "Frappe"]


def test_invalid_pricing_payload_is_rejected(admin, seeded):
    response = admin.post(
        "/api/admin/menu-items",
        json={"category_id": seeded["category"]["id"], "name": "Broken", "pricing": {"mode": "flat"}},
    )

    assert response.status_code == 422


def test_unknown_group_is_a_bad_request(admin, seeded):
    response = admin.post("/api/admin/menu-items", json=flat_item(seeded["category"]["id"], group_ids=["ghost"]))

    assert response.status_code == 400
    assert response.json()["problems"] == ["Unknown modifier group: ghost"]


def test_deleting_a_category_reports_removed_items(admin, seeded):
    response = admin.delete(f"/api/admin/categories/{seeded['category']['id']}")

    assert response.status_code == 200
    assert admin.get(f"/api/admin/menu-items/{seeded['latte']['id']}").status_code == 404


def test_quote_with_modifiers(public, seeded):
    item = public.get(f"/api/public/menu/items/{seeded['latte']['id']}").json()
    almond = _option_id(item, "Almond")
    shot = _option_id(item, "Extra shot")

    response = public.post(
        f"/api/public/menu/items/{item['id']}/quote",
        json={"option_ids": [shot, almond], "quantity": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["unit_price"] == "69.50"
    assert body["total_price"] == "139.00"
    assert body["option_ids"] == sorted([shot, almond])


def test_quote_rejects_two_choices_in_a_single_group(public, seeded):
    item = public.get(f"/api/public/menu/items/{seeded['latte']['id']}").json()
    both = [_option_id(item, "Regular"), _option_id(item, "Almond")]

    response = public.post(f"/api/public/menu/items/{item['id']}/quote", json={"option_ids": both})

    assert response.status_code == 400


def test_quote_needs_a_variant(public, seeded):
    frappe_id = seeded["frappe"]["id"]

    missing = public.post(f"/api/public/menu/items/{frappe_id}/quote", json={})
    grande = public.post(f"/api/public/menu/items/{frappe_id}/quote", json={"selection": "Grande"})

    assert missing.status_code == 400
    assert grande.json()["unit_price"] == "85.00"


def test_unavailable_item_cannot_be_quoted(admin, public, seeded):
    admin.patch(f"/api/admin/menu-items/{seeded['latte']['id']}/availability", json={"is_available": False})

    response = public.post(f"/api/public/menu/items/{seeded['latte']['id']}/quote", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "This item is currently unavailable"


def test_cart_quote_merges_identical_lines(public, seeded):
    latte_id, frappe_id = seeded["latte"]["id"], seeded["frappe"]["id"]

    response = public.post(
        "/api/public/cart/quote",
        json={
            "lines": [
                {"item_id": latte_id, "quantity": 1},
                {"item_id": frappe_id, "selection": "Medium"},
                {"item_id": latte_id, "quantity": 2},
            ]
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert [(line["item_id"], line["quantity"]) for line in body["lines"]] == [(latte_id, 3), (frappe_id, 1)]
    assert body["total_price"] == "275.00"


def test_cart_quote_keeps_lines_with_other_exclusions_apart(admin, public, seeded):
    burger = admin.post(
        "/api/admin/menu-items",
        json=flat_item(seeded["category"]["id"], name="Burger", price="40.00", ingredients=[{"name": "Onion"}]),
    ).json()
    onion_id = burger["ingredients"][0]["id"]

    response = public.post(
        "/api/public/cart/quote",
        json={
            "lines": [
                {"item_id": burger["id"], "excluded_ingredient_ids": [onion_id]},
                {"item_id": burger["id"]},
            ]
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert [(line["excluded_ingredient_ids"], line["quantity"]) for line in body["lines"]] == [([onion_id], 1), ([], 1)]
    assert body["total_price"] == "80.00"

def test_disabled_option_disappears_from_public_item(admin, public, seeded):
    latte_id = seeded["latte"]["id"]
    almond = _option_id(seeded["latte"], "Almond")

    toggled = admin.patch(
        f"/api/admin/menu-items/{latte_id}/modifier-groups/milk/options/{almond}",
        json={"enabled": False},
    )
    item = public.get(f"/api/public/menu/items/{latte_id}").json()
    quote = public.post(f"/api/public/menu/items/{latte_id}/quote", json={"option_ids": [almond]})

    assert toggled.status_code == 200
    assert [option["label"] for option in item["modifier_groups"][0]["options"]] == ["Regular"]
    assert quote.json()["unit_price"] == "65.00"


def test_public_routes_need_a_tenant(make_client):
    client = make_client([public_menu_router], tenant_id=None)

    assert client.get("/api/public/menu").status_code == 401
