from decimal import Decimal

import pydantic
import pytest
from sqlalchemy.exc import IntegrityError

from menuhub.core.errors import NotFound, ValidationError
from menuhub.models.menu_item import MenuItem
from menuhub.models.menu_item_ingredient import MenuItemIngredient
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.menu_item_variant import MenuItemVariant
from menuhub.models.promotional_image import PromotionalImage
from menuhub.schemas.catalog import CategoryCreate, MenuItemCreate, MenuItemUpdate
from menuhub.schemas.modifiers import ModifierGroupCreate
from menuhub.services import catalog
from menuhub.services.menu_assembly import assemble_menu
from menuhub.services.modifier_registry import create_modifier_group
from tests.fixtures_data import MILK_GROUP, flat_item, variants_item


@pytest.fixture
def tenant(make_tenant):
    return make_tenant(1, "bluebean")


@pytest.fixture
def category(db, tenant):
    return catalog.create_category(db, tenant.id, CategoryCreate(name="Coffee"))


def test_categories_get_next_position(db, tenant):
    first = catalog.create_category(db, tenant.id, CategoryCreate(name="Coffee"))
    second = catalog.create_category(db, tenant.id, CategoryCreate(name="Tea"))

    assert (first.position, second.position) == (0, 1)


def test_two_pricing_modes_in_one_payload_are_rejected():
    with pytest.raises(pydantic.ValidationError):
        MenuItemCreate(**flat_item(1, pricing={"mode": "flat", "price": "5", "price_medium": "4"}))


def test_database_refuses_item_with_two_pricing_modes(db, category):
    db.add(
        MenuItem(
            tenant_id=category.tenant_id,
            category_id=category.id,
            name="Broken",
            pricing_mode="flat",
            price=Decimal("5"),
            price_medium=Decimal("4"),
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_duplicate_variant_names_are_rejected():
    with pytest.raises(pydantic.ValidationError):
        MenuItemCreate(**variants_item(1, variants=(("Medium", "1.00"), ("medium", "2.00"))))


def test_create_item_with_variants_and_ingredients(db, category):
    payload = MenuItemCreate(
        **variants_item(
            category.id,
            ingredients=[{"name": "Ice"}, {"name": "Coffee", "can_exclude": False}],
            tags=["cold", "cold", " sweet "],
        )
    )

    item = catalog.create_menu_item(db, category.tenant_id, payload)

    variants = db.query(MenuItemVariant).filter(MenuItemVariant.menu_item_id == item.id).all()
    assert item.pricing_mode == "variants"
    assert item.price is None
    assert [(variant.name, variant.position) for variant in variants] == [("Medium", 0), ("Grande", 1)]
    assert item.tags == ["cold", "sweet"]
    assert db.query(MenuItemIngredient).filter(MenuItemIngredient.menu_item_id == item.id).count() == 2


def test_category_must_belong_to_tenant(db, make_tenant, category):
    make_tenant(2, "other")

    with pytest.raises(ValidationError):
        catalog.create_menu_item(db, 2, MenuItemCreate(**flat_item(category.id)))


def test_unknown_group_rolls_back_the_whole_create(db, category):
    with pytest.raises(ValidationError):
        catalog.create_menu_item(db, category.tenant_id, MenuItemCreate(**flat_item(category.id, group_ids=["nope"])))

    assert db.query(MenuItem).count() == 0


def test_switching_pricing_mode_replaces_columns_and_variants(db, category):
    item = catalog.create_menu_item(db, category.tenant_id, MenuItemCreate(**variants_item(category.id)))

    updated = catalog.update_menu_item(
        db,
        category.tenant_id,
        item.id,
        MenuItemUpdate(pricing={"mode": "legacy_sizes", "price_medium": "10.00", "price_grande": "12.50"}),
    )

    assert updated.pricing_mode == "legacy_sizes"
    assert updated.price_grande == Decimal("12.50")
    assert db.query(MenuItemVariant).filter(MenuItemVariant.menu_item_id == item.id).count() == 0


def test_partial_update_keeps_untouched_fields(db, category):
    item = catalog.create_menu_item(
        db, category.tenant_id, MenuItemCreate(**flat_item(category.id, description="Smooth"))
    )

    updated = catalog.update_menu_item(db, category.tenant_id, item.id, MenuItemUpdate(name="Flat White"))

    assert updated.name == "Flat White"
    assert updated.description == "Smooth"
    assert updated.price == Decimal("65.00")


def test_delete_category_removes_items_and_their_children(db, category):
    tenant_id = category.tenant_id
    create_modifier_group(db, tenant_id, ModifierGroupCreate(**MILK_GROUP))
    items = [
        catalog.create_menu_item(db, tenant_id, MenuItemCreate(**variants_item(category.id, name=f"Frappe {n}")))
        for n in range(2)
    ]
    items.append(catalog.create_menu_item(db, tenant_id, MenuItemCreate(**flat_item(category.id, group_ids=["milk"]))))
    promotion = PromotionalImage(tenant_id=tenant_id, image_url="https://cdn/p.png", link_menu_item_id=items[0].id)
    db.add(promotion)
    db.commit()
    item_ids = sorted(item.id for item in items)

    removed = catalog.delete_category(db, tenant_id, category.id)

    assert sorted(removed) == item_ids
    assert db.query(MenuItem).count() == 0
    assert db.query(MenuItemVariant).count() == 0
    assert db.query(MenuItemModifierGroup).count() == 0
    assert assemble_menu(db, tenant_id) == []
    db.refresh(promotion)
    assert promotion.link_menu_item_id is None


def test_reorder_ignores_foreign_ids(db, make_tenant, tenant):
    a = catalog.create_category(db, tenant.id, CategoryCreate(name="A"))
    b = catalog.create_category(db, tenant.id, CategoryCreate(name="B"))
    make_tenant(2, "other")
    foreign = catalog.create_category(db, 2, CategoryCreate(name="Foreign"))

    ordered = catalog.reorder_categories(db, tenant.id, [b.id, foreign.id, a.id])

    assert [category.id for category in ordered] == [b.id, a.id]
    db.refresh(foreign)
    assert foreign.position == 0


def test_toggle_availability_without_value_flips(db, category):
    item = catalog.create_menu_item(db, category.tenant_id, MenuItemCreate(**flat_item(category.id)))

    assert catalog.set_item_availability(db, category.tenant_id, item.id).is_available is False
    assert catalog.set_item_availability(db, category.tenant_id, item.id).is_available is True
    assert catalog.set_item_availability(db, category.tenant_id, item.id, True).is_available is True


def test_missing_item_is_not_found(db, tenant):
    with pytest.raises(NotFound):
        catalog.get_menu_item(db, tenant.id, 404)
