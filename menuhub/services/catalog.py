from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from menuhub.core.database import transaction
from menuhub.core.errors import InvalidPricingState, NotFound, ValidationError
from menuhub.models.menu_category import MenuCategory
from menuhub.models.menu_item import PRICING_FLAT, PRICING_LEGACY_SIZES, PRICING_VARIANTS, MenuItem
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.menu_item_ingredient import MenuItemIngredient
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.menu_item_variant import MenuItemVariant
from menuhub.models.promotional_image import PromotionalImage
from menuhub.schemas.catalog import (
    CategoryCreate,
    CategoryUpdate,
    IngredientIn,
    MenuItemCreate,
    MenuItemUpdate,
    VariantIn,
)
from menuhub.services.modifier_binding import replace_bindings

logger = logging.getLogger(__name__)
CATALOG_PREFIX = "[CATALOG]"


# Categories


def list_categories(db: Session, tenant_id: int, *, only_active: bool = False) -> list[MenuCategory]:
    query = db.query(MenuCategory).filter(MenuCategory.tenant_id == tenant_id)
    if only_active:
        query = query.filter(MenuCategory.is_active.is_(True))
    return query.order_by(MenuCategory.position.asc(), MenuCategory.id.asc()).all()


def get_category(db: Session, tenant_id: int, category_id: int) -> MenuCategory:
    category = (
        db.query(MenuCategory)
        .filter(MenuCategory.tenant_id == tenant_id, MenuCategory.id == category_id)
        .first()
    )
    if category is None:
        raise NotFound("Category", category_id)
    return category


def _next_category_position(db: Session, tenant_id: int) -> int:
    current = db.query(func.max(MenuCategory.position)).filter(MenuCategory.tenant_id == tenant_id).scalar()
    return 0 if current is None else int(current) + 1


def create_category(db: Session, tenant_id: int, payload: CategoryCreate) -> MenuCategory:
    position = payload.position if payload.position is not None else _next_category_position(db, tenant_id)
    with transaction(db):
        category = MenuCategory(
            tenant_id=tenant_id,
            name=payload.name.strip(),
            icon=payload.icon,
            position=position,
            is_active=payload.is_active,
        )
        db.add(category)
    db.refresh(category)
    logger.info("%s category created tenant_id=%s category_id=%s", CATALOG_PREFIX, tenant_id, category.id)
    return category


def update_category(db: Session, tenant_id: int, category_id: int, payload: CategoryUpdate) -> MenuCategory:
    category = get_category(db, tenant_id, category_id)
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db):
        for field, value in changes.items():
            if field in {"name", "position", "is_active"} and value is None:
                continue
            setattr(category, field, value.strip() if field == "name" else value)
    db.refresh(category)
    return category


def _delete_item_children(db: Session, tenant_id: int, item_ids: list[int]) -> None:
    if not item_ids:
        return
    for model in (MenuItemDisabledOption, MenuItemModifierGroup, MenuItemVariant, MenuItemIngredient):
        db.query(model).filter(
            model.tenant_id == tenant_id,
            model.menu_item_id.in_(item_ids),
        ).delete(synchronize_session=False)
    db.query(PromotionalImage).filter(
        PromotionalImage.tenant_id == tenant_id,
        PromotionalImage.link_menu_item_id.in_(item_ids),
    ).update({PromotionalImage.link_menu_item_id: None}, synchronize_session=False)


def delete_category(db: Session, tenant_id: int, category_id: int) -> list[int]:
    """Delete the category with all of its items; returns the removed item ids."""
    category = get_category(db, tenant_id, category_id)
    item_ids = [
        row.id
        for row in db.query(MenuItem.id)
        .filter(MenuItem.tenant_id == tenant_id, MenuItem.category_id == category.id)
        .all()
    ]
    with transaction(db):
        _delete_item_children(db, tenant_id, item_ids)
        if item_ids:
            db.query(MenuItem).filter(
                MenuItem.tenant_id == tenant_id,
                MenuItem.id.in_(item_ids),
            ).delete(synchronize_session=False)
        db.delete(category)
    logger.info(
        "%s category deleted tenant_id=%s category_id=%s items_removed=%s",
        CATALOG_PREFIX,
        tenant_id,
        category_id,
        len(item_ids),
    )
    return item_ids


def reorder_categories(db: Session, tenant_id: int, ids: Iterable[int]) -> list[MenuCategory]:
    ordered = list(dict.fromkeys(ids))
    owned = {
        category.id: category
        for category in db.query(MenuCategory)
        .filter(MenuCategory.tenant_id == tenant_id, MenuCategory.id.in_(ordered))
        .all()
    } if ordered else {}
    with transaction(db):
        for index, category_id in enumerate(ordered):
            category = owned.get(category_id)
            if category is not None:
                category.position = index
    return list_categories(db, tenant_id)


# Menu items


def list_menu_items(db: Session, tenant_id: int, *, category_id: Optional[int] = None) -> list[MenuItem]:
    query = db.query(MenuItem).filter(MenuItem.tenant_id == tenant_id)
    if category_id is not None:
        query = query.filter(MenuItem.category_id == category_id)
    return query.order_by(MenuItem.position.asc(), MenuItem.id.asc()).all()


def get_menu_item(db: Session, tenant_id: int, item_id: int) -> MenuItem:
    item = db.query(MenuItem).filter(MenuItem.tenant_id == tenant_id, MenuItem.id == item_id).first()
    if item is None:
        raise NotFound("Menu item", item_id)
    return item


def _require_category(db: Session, tenant_id: int, category_id: int) -> MenuCategory:
    category = (
        db.query(MenuCategory)
        .filter(MenuCategory.tenant_id == tenant_id, MenuCategory.id == category_id)
        .first()
    )
    if category is None:
        raise ValidationError("Category not found", category_id=category_id)
    return category


def _non_negative(value: Any, label: str) -> Decimal:
    if value is None:
        raise InvalidPricingState(f"Missing {label}")
    amount = Decimal(value)
    if amount < 0:
        raise InvalidPricingState(f"{label} cannot be negative")
    return amount


def _pricing_columns(pricing: Any) -> tuple[dict[str, Any], Optional[list[VariantIn]]]:
    """Map a pricing block to the item columns and, for variants, the variant list."""
    mode = getattr(pricing, "mode", None)
    if mode == PRICING_FLAT:
        columns = {"price": _non_negative(pricing.price, "price"), "price_medium": None, "price_grande": None}
        return {"pricing_mode": mode, **columns}, None
    if mode == PRICING_LEGACY_SIZES:
        columns = {
            "price": None,
            "price_medium": _non_negative(pricing.price_medium, "medium price"),
            "price_grande": _non_negative(pricing.price_grande, "grande price"),
        }
        return {"pricing_mode": mode, **columns}, None
    if mode == PRICING_VARIANTS:
        variants = list(pricing.variants or [])
        if not variants:
            raise InvalidPricingState("At least one variant is required")
        seen: set[str] = set()
        for variant in variants:
            key = variant.name.strip().lower()
            if key in seen:
                raise InvalidPricingState(f"Duplicate variant name: {variant.name}")
            seen.add(key)
            _non_negative(variant.price, f"price of {variant.name}")
        return {"pricing_mode": mode, "price": None, "price_medium": None, "price_grande": None}, variants
    raise InvalidPricingState(f"Unknown pricing mode: {mode!r}")


def _replace_variants(db: Session, item: MenuItem, variants: Optional[list[VariantIn]]) -> None:
    db.query(MenuItemVariant).filter(
        MenuItemVariant.tenant_id == item.tenant_id,
        MenuItemVariant.menu_item_id == item.id,
    ).delete(synchronize_session=False)
    for index, variant in enumerate(variants or []):
        db.add(
            MenuItemVariant(
                tenant_id=item.tenant_id,
                menu_item_id=item.id,
                name=variant.name.strip(),
                price=Decimal(variant.price),
                position=index,
            )
        )


def _replace_ingredients(db: Session, item: MenuItem, ingredients: list[IngredientIn]) -> None:
    db.query(MenuItemIngredient).filter(
        MenuItemIngredient.tenant_id == item.tenant_id,
        MenuItemIngredient.menu_item_id == item.id,
    ).delete(synchronize_session=False)
    for index, ingredient in enumerate(ingredients):
        db.add(
            MenuItemIngredient(
                tenant_id=item.tenant_id,
                menu_item_id=item.id,
                name=ingredient.name.strip(),
                can_exclude=ingredient.can_exclude,
                position=index,
            )
        )


def _next_item_position(db: Session, tenant_id: int, category_id: int) -> int:
    current = (
        db.query(func.max(MenuItem.position))
        .filter(MenuItem.tenant_id == tenant_id, MenuItem.category_id == category_id)
        .scalar()
    )
    return 0 if current is None else int(current) + 1


def create_menu_item(db: Session, tenant_id: int, payload: MenuItemCreate) -> MenuItem:
    """Create the item with its variants, ingredients and bindings in one transaction."""
    _require_category(db, tenant_id, payload.category_id)
    pricing_columns, variants = _pricing_columns(payload.pricing)
    position = payload.position
    if position is None:
        position = _next_item_position(db, tenant_id, payload.category_id)

    with transaction(db):
        item = MenuItem(
            tenant_id=tenant_id,
            category_id=payload.category_id,
            name=payload.name.strip(),
            description=payload.description,
            tags=list(payload.tags),
            image_url=payload.image_url,
            portion=payload.portion,
            is_available=payload.is_available,
            position=position,
            **pricing_columns,
        )
        db.add(item)
        db.flush()
        _replace_variants(db, item, variants)
        _replace_ingredients(db, item, payload.ingredients)
        replace_bindings(db, tenant_id, item.id, payload.modifier_group_ids)

    db.refresh(item)
    logger.info(
        "%s item created tenant_id=%s item_id=%s pricing_mode=%s",
        CATALOG_PREFIX,
        tenant_id,
        item.id,
        item.pricing_mode,
    )
    return item


def update_menu_item(db: Session, tenant_id: int, item_id: int, payload: MenuItemUpdate) -> MenuItem:
    """Partial update; child collections present in the payload are replaced wholesale."""
    item = get_menu_item(db, tenant_id, item_id)
    fields = payload.model_fields_set

    if "category_id" in fields and payload.category_id is not None:
        _require_category(db, tenant_id, payload.category_id)

    pricing_columns: Optional[dict[str, Any]] = None
    variants: Optional[list[VariantIn]] = None
    if "pricing" in fields and payload.pricing is not None:
        pricing_columns, variants = _pricing_columns(payload.pricing)

    with transaction(db):
        for field in ("category_id", "name", "is_available", "position"):
            value = getattr(payload, field)
            if field in fields and value is not None:
                setattr(item, field, value.strip() if field == "name" else value)
        for field in ("description", "image_url", "portion"):
            if field in fields:
                setattr(item, field, getattr(payload, field))
        if "tags" in fields:
            item.tags = list(payload.tags or [])

        if pricing_columns is not None:
            for column, value in pricing_columns.items():
                setattr(item, column, value)
            _replace_variants(db, item, variants)
        if "ingredients" in fields and payload.ingredients is not None:
            _replace_ingredients(db, item, payload.ingredients)
        if "modifier_group_ids" in fields and payload.modifier_group_ids is not None:
            replace_bindings(db, tenant_id, item.id, payload.modifier_group_ids)

    db.refresh(item)
    logger.info("%s item updated tenant_id=%s item_id=%s fields=%s", CATALOG_PREFIX, tenant_id, item_id, sorted(fields))
    return item


def delete_menu_item(db: Session, tenant_id: int, item_id: int) -> None:
    item = get_menu_item(db, tenant_id, item_id)
    with transaction(db):
        _delete_item_children(db, tenant_id, [item.id])
        db.delete(item)
    logger.info("%s item deleted tenant_id=%s item_id=%s", CATALOG_PREFIX, tenant_id, item_id)


def reorder_menu_items(db: Session, tenant_id: int, category_id: int, ids: Iterable[int]) -> list[MenuItem]:
    get_category(db, tenant_id, category_id)
    ordered = list(dict.fromkeys(ids))
    owned = {
        item.id: item
        for item in db.query(MenuItem)
        .filter(
            MenuItem.tenant_id == tenant_id,
            MenuItem.category_id == category_id,
            MenuItem.id.in_(ordered),
        )
        .all()
    } if ordered else {}
    with transaction(db):
        for index, item_id in enumerate(ordered):
            item = owned.get(item_id)
            if item is not None:
                item.position = index
    return list_menu_items(db, tenant_id, category_id=category_id)


def set_item_availability(
    db: Session,
    tenant_id: int,
    item_id: int,
    is_available: Optional[bool] = None,
) -> MenuItem:
    """Set availability, or flip it when ``is_available`` is omitted."""
    item = get_menu_item(db, tenant_id, item_id)
    with transaction(db):
        item.is_available = (not item.is_available) if is_available is None else is_available
    db.refresh(item)
    return item


def set_item_image(db: Session, tenant_id: int, item_id: int, image_url: Optional[str]) -> MenuItem:
    item = get_menu_item(db, tenant_id, item_id)
    with transaction(db):
        item.image_url = image_url
    db.refresh(item)
    return item
