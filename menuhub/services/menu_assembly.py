"""Build the nested menu tree served to admins and customers.

Category -> items -> variants, ingredients and modifier groups with their
options, each level ordered by position then id. The tree is rebuilt on every
call.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from menuhub.core.errors import NotFound
from menuhub.models.menu_category import MenuCategory
from menuhub.models.menu_item import MenuItem
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.menu_item_ingredient import MenuItemIngredient
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.menu_item_variant import MenuItemVariant
from menuhub.models.modifier_group import ModifierGroup
from menuhub.models.modifier_option import ModifierOption


def _money(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def _group_rows_by(rows: Iterable[Any], key: str) -> dict[Any, list[Any]]:
    grouped: dict[Any, list[Any]] = {}
    for row in rows:
        grouped.setdefault(getattr(row, key), []).append(row)
    return grouped


def _load_children(db: Session, tenant_id: int, item_ids: list[int]) -> dict[str, Any]:
    if not item_ids:
        return {"variants": {}, "ingredients": {}, "bindings": {}, "groups": {}, "options": {}, "disabled": {}}

    variants = (
        db.query(MenuItemVariant)
        .filter(MenuItemVariant.tenant_id == tenant_id, MenuItemVariant.menu_item_id.in_(item_ids))
        .order_by(MenuItemVariant.position.asc(), MenuItemVariant.id.asc())
        .all()
    )
    ingredients = (
        db.query(MenuItemIngredient)
        .filter(MenuItemIngredient.tenant_id == tenant_id, MenuItemIngredient.menu_item_id.in_(item_ids))
        .order_by(MenuItemIngredient.position.asc(), MenuItemIngredient.id.asc())
        .all()
    )
    bindings = (
        db.query(MenuItemModifierGroup)
        .filter(MenuItemModifierGroup.tenant_id == tenant_id, MenuItemModifierGroup.menu_item_id.in_(item_ids))
        .order_by(MenuItemModifierGroup.position.asc(), MenuItemModifierGroup.id.asc())
        .all()
    )
    group_ids = list({binding.modifier_group_id for binding in bindings})
    groups: dict[str, ModifierGroup] = {}
    options: dict[str, list[ModifierOption]] = {}
    if group_ids:
        groups = {
            group.id: group
            for group in db.query(ModifierGroup)
            .filter(ModifierGroup.tenant_id == tenant_id, ModifierGroup.id.in_(group_ids))
            .all()
        }
        options = _group_rows_by(
            db.query(ModifierOption)
            .filter(ModifierOption.tenant_id == tenant_id, ModifierOption.modifier_group_id.in_(group_ids))
            .order_by(ModifierOption.position.asc(), ModifierOption.id.asc())
            .all(),
            "modifier_group_id",
        )
    disabled: dict[int, set[str]] = {}
    for row in (
        db.query(MenuItemDisabledOption)
        .filter(MenuItemDisabledOption.tenant_id == tenant_id, MenuItemDisabledOption.menu_item_id.in_(item_ids))
        .all()
    ):
        disabled.setdefault(row.menu_item_id, set()).add(row.modifier_option_id)

    return {
        "variants": _group_rows_by(variants, "menu_item_id"),
        "ingredients": _group_rows_by(ingredients, "menu_item_id"),
        "bindings": _group_rows_by(bindings, "menu_item_id"),
        "groups": groups,
        "options": options,
        "disabled": disabled,
    }


def _modifier_groups_for(item_id: int, children: dict[str, Any]) -> list[dict]:
    payload: list[dict] = []
    disabled = children["disabled"].get(item_id, set())
    for binding in children["bindings"].get(item_id, []):
        group = children["groups"].get(binding.modifier_group_id)
        if group is None:
            continue
        payload.append(
            {
                "id": group.id,
                "name": group.name,
                "type": group.type,
                "required": bool(group.required),
                "min_selections": int(group.min_selections or 0),
                "max_selections": group.max_selections,
                "position": int(binding.position or 0),
                "options": [
                    {
                        "id": option.id,
                        "label": option.label,
                        "price_modifier": Decimal(option.price_modifier or 0),
                        "is_default": bool(option.is_default),
                        "position": int(option.position or 0),
                    }
                    for option in children["options"].get(group.id, [])
                    if option.id not in disabled
                ],
            }
        )
    return payload


def _item_node(item: MenuItem, children: dict[str, Any]) -> dict:
    return {
        "id": item.id,
        "category_id": item.category_id,
        "name": item.name,
        "description": item.description,
        "tags": list(item.tags or []),
        "image_url": item.image_url,
        "portion": item.portion,
        "is_available": bool(item.is_available),
        "position": int(item.position or 0),
        "pricing_mode": item.pricing_mode,
        "price": _money(item.price),
        "price_medium": _money(item.price_medium),
        "price_grande": _money(item.price_grande),
        "variants": [
            {"id": variant.id, "name": variant.name, "price": Decimal(variant.price), "position": variant.position}
            for variant in children["variants"].get(item.id, [])
        ],
        "ingredients": [
            {
                "id": ingredient.id,
                "name": ingredient.name,
                "can_exclude": bool(ingredient.can_exclude),
                "position": ingredient.position,
            }
            for ingredient in children["ingredients"].get(item.id, [])
        ],
        "modifier_groups": _modifier_groups_for(item.id, children),
    }


def assemble_menu(
    db: Session,
    tenant_id: int,
    *,
    category_id: Optional[int] = None,
    public: bool = False,
) -> list[dict]:
    """Return the tenant's menu tree.

    ``public=True`` drops inactive categories together with their items.
    Unavailable items stay in the tree with ``is_available`` false.
    """
    categories_query = db.query(MenuCategory).filter(MenuCategory.tenant_id == tenant_id)
    if category_id is not None:
        categories_query = categories_query.filter(MenuCategory.id == category_id)
    if public:
        categories_query = categories_query.filter(MenuCategory.is_active.is_(True))
    categories = categories_query.order_by(MenuCategory.position.asc(), MenuCategory.id.asc()).all()
    if not categories:
        return []

    category_ids = [category.id for category in categories]
    items = (
        db.query(MenuItem)
        .filter(MenuItem.tenant_id == tenant_id, MenuItem.category_id.in_(category_ids))
        .order_by(MenuItem.position.asc(), MenuItem.id.asc())
        .all()
    )
    children = _load_children(db, tenant_id, [item.id for item in items])
    items_by_category = _group_rows_by(items, "category_id")

    return [
        {
            "id": category.id,
            "name": category.name,
            "icon": category.icon,
            "position": int(category.position or 0),
            "is_active": bool(category.is_active),
            "items": [_item_node(item, children) for item in items_by_category.get(category.id, [])],
        }
        for category in categories
    ]


def assemble_item(db: Session, tenant_id: int, item_id: int, *, public: bool = False) -> dict:
    item = db.query(MenuItem).filter(MenuItem.tenant_id == tenant_id, MenuItem.id == item_id).first()
    if item is None:
        raise NotFound("Menu item", item_id)
    if public:
        category_active = (
            db.query(MenuCategory.id)
            .filter(
                MenuCategory.tenant_id == tenant_id,
                MenuCategory.id == item.category_id,
                MenuCategory.is_active.is_(True),
            )
            .first()
        )
        if category_active is None:
            raise NotFound("Menu item", item_id)
    return _item_node(item, _load_children(db, tenant_id, [item.id]))
