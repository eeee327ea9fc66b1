from decimal import Decimal

import pytest

from menuhub.core.errors import ConflictError, NotFound, ValidationError
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.modifier_option import ModifierOption
from menuhub.routers.modifiers import router as modifiers_router
from menuhub.schemas.catalog import CategoryCreate, MenuItemCreate
from menuhub.schemas.modifiers import ModifierGroupCreate, ModifierGroupUpdate
from menuhub.services import catalog, modifier_binding, modifier_registry
from menuhub.services.menu_assembly import assemble_item
from tests.fixtures_data import MILK_GROUP, flat_item

OAT_OPTIONS = [
    {"label": "Regular", "price_modifier": "0.00", "is_default": True},
    {"label": "Oat", "price_modifier": "4.00"},
]


@pytest.fixture
def two_items(db, make_tenant):
    make_tenant(1, "bluebean")
    modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**MILK_GROUP))
    category = catalog.create_category(db, 1, CategoryCreate(name="Coffee"))
    latte = catalog.create_menu_item(db, 1, MenuItemCreate(**flat_item(category.id, group_ids=["milk"])))
    mocha = catalog.create_menu_item(db, 1, MenuItemCreate(**flat_item(category.id, name="Mocha", group_ids=["milk"])))
    return latte, mocha


def test_single_group_defaults_to_one_selection(db, make_tenant):
    make_tenant(1, "bluebean")

    group = modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**MILK_GROUP))

    assert group.max_selections == 1


def test_generated_ids_are_prefixed(db, make_tenant):
    make_tenant(1, "bluebean")

    group = modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(name="Sauce Choice", type="multiple"))

    assert group.id.startswith("custom_sauce_choice_")


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Size", "type": "single", "max_selections": 2},
        {"name": "Ice", "type": "boolean", "options": [{"label": "Yes"}, {"label": "No"}]},
        {"name": "Bad", "type": "multiple", "min_selections": 3, "max_selections": 2},
        {"name": "Bad", "type": "multiple", "min_selections": -1},
        {
            "name": "Two defaults",
            "type": "single",
            "options": [{"label": "A", "is_default": True}, {"label": "B", "is_default": True}],
        },
    ],
)
def test_group_rules_are_enforced(db, make_tenant, payload):
    make_tenant(1, "bluebean")

    with pytest.raises(ValidationError):
        modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**payload))


def test_duplicate_group_id_conflicts_within_a_tenant(db, make_tenant):
    make_tenant(1, "bluebean")
    modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**MILK_GROUP))

    with pytest.raises(ConflictError):
        modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**MILK_GROUP))


def test_same_group_id_in_two_tenants_stays_separate(db, make_tenant):
    make_tenant(1, "bluebean")
    make_tenant(2, "other")
    modifier_registry.create_modifier_group(db, 1, ModifierGroupCreate(**MILK_GROUP))

    theirs = modifier_registry.create_modifier_group(
        db, 2, ModifierGroupCreate(**{**MILK_GROUP, "name": "Leite"})
    )

    assert theirs.id == "milk"
    assert modifier_registry.get_modifier_group(db, 1, "milk").name == MILK_GROUP["name"]
    assert modifier_registry.get_modifier_group(db, 2, "milk").name == "Leite"
    ours = modifier_registry.list_group_options(db, 1, ["milk"])["milk"]
    assert all(option.tenant_id == 1 for option in ours)
    assert len(ours) == len(MILK_GROUP["options"])


def test_option_edit_reaches_every_bound_item(db, two_items):
    latte, mocha = two_items

    modifier_registry.update_modifier_group(db, 1, "milk", ModifierGroupUpdate(options=OAT_OPTIONS))

    for item in (latte, mocha):
        options = assemble_item(db, 1, item.id)["modifier_groups"][0]["options"]
        assert [(option["label"], option["price_modifier"]) for option in options] == [
            ("Regular", Decimal("0.00")),
            ("Oat", Decimal("4.00")),
        ]


def test_option_rewrite_issues_fresh_ids_and_drops_disabled_rows(db, two_items):
    latte, _ = two_items
    old_ids = {option.id for option in db.query(ModifierOption).all()}
    modifier_binding.set_option_enabled(db, 1, latte.id, "milk", sorted(old_ids)[0], False)

    modifier_registry.update_modifier_group(db, 1, "milk", ModifierGroupUpdate(options=OAT_OPTIONS))

    new_ids = {option.id for option in db.query(ModifierOption).all()}
    assert new_ids.isdisjoint(old_ids)
    assert db.query(MenuItemDisabledOption).count() == 0


def test_update_without_options_keeps_them(db, two_items):
    before = [option.id for option in db.query(ModifierOption).order_by(ModifierOption.position).all()]

    group = modifier_registry.update_modifier_group(db, 1, "milk", ModifierGroupUpdate(name="Milk choice", required=True))

    after = [option.id for option in db.query(ModifierOption).order_by(ModifierOption.position).all()]
    assert group.name == "Milk choice"
    assert group.required is True
    assert before == after


def test_switching_to_single_caps_max_selections(db, make_tenant):
    make_tenant(1, "bluebean")
    modifier_registry.create_modifier_group(
        db, 1, ModifierGroupCreate(id="sauces", name="Sauces", type="multiple", max_selections=3)
    )

    group = modifier_registry.update_modifier_group(db, 1, "sauces", ModifierGroupUpdate(type="single"))

    assert group.max_selections == 1


def test_delete_group_cascades(db, two_items):
    latte, _ = two_items

    modifier_registry.delete_modifier_group(db, 1, "milk")

    assert db.query(ModifierOption).count() == 0
    assert db.query(MenuItemModifierGroup).count() == 0
    assert assemble_item(db, 1, latte.id)["modifier_groups"] == []
    with pytest.raises(NotFound):
        modifier_registry.get_modifier_group(db, 1, "milk")


def test_usage_lists_bound_items(db, two_items):
    latte, mocha = two_items

    used_by = modifier_registry.list_group_usage(db, 1, "milk")

    assert sorted(item.id for item in used_by) == sorted([latte.id, mocha.id])


def test_shared_option_rewrite_needs_confirmation(make_client, two_items):
    latte, mocha = two_items
    client = make_client([modifiers_router])

    refused = client.patch("/api/admin/modifiers/groups/milk", json={"options": OAT_OPTIONS})
    confirmed = client.patch(
        "/api/admin/modifiers/groups/milk",
        params={"confirm_global_change": "true"},
        json={"options": OAT_OPTIONS},
    )

    assert refused.status_code == 409
    assert sorted(refused.json()["affected_item_ids"]) == sorted([latte.id, mocha.id])
    assert confirmed.status_code == 200
    assert [option["label"] for option in confirmed.json()["options"]] == ["Regular", "Oat"]
    assert confirmed.json()["options"][1]["price_modifier"] == "4.00"


def test_rename_does_not_need_confirmation(make_client, two_items):
    client = make_client([modifiers_router])

    response = client.patch("/api/admin/modifiers/groups/milk", json={"name": "Milk type"})

    assert response.status_code == 200
    assert response.json()["name"] == "Milk type"


def test_null_options_is_not_a_rewrite(make_client, two_items):
    client = make_client([modifiers_router])

    response = client.patch("/api/admin/modifiers/groups/milk", json={"name": "Milk type", "options": None})

    assert response.status_code == 200
    assert [option["label"] for option in response.json()["options"]] == ["Regular", "Almond"]


def test_usage_endpoint(make_client, two_items):
    client = make_client([modifiers_router])

    response = client.get("/api/admin/modifiers/groups/milk/usage")

    assert response.status_code == 200
    assert {row["name"] for row in response.json()} == {"Latte", "Mocha"}
