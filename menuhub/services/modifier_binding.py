from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from menuhub.core.database import transaction
from menuhub.core.errors import ConflictError, NotFound, ValidationError
from menuhub.models.menu_item import MenuItem
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.modifier_group import ModifierGroup
from menuhub.models.modifier_option import ModifierOption
from menuhub.services.modifier_registry import get_modifier_group, list_group_usage

logger = logging.getLogger(__name__)
BINDING_PREFIX = "[MODIFIER_BINDING]"


def _get_item(db: Session, tenant_id: int, item_id: int) -> MenuItem:
    item = db.query(MenuItem).filter(MenuItem.tenant_id == tenant_id, MenuItem.id == item_id).first()
    if item is None:
        raise NotFound("Menu item", item_id)
    return item


def replace_bindings(db: Session, tenant_id: int, item_id: int, group_ids: Iterable[str]) -> list[str]:
    """Replace the item's bound groups inside the caller's transaction."""
    ordered_ids = list(dict.fromkeys(str(group_id) for group_id in group_ids))

    if ordered_ids:
        owned = {
            row.id
            for row in db.query(ModifierGroup.id)
            .filter(ModifierGroup.tenant_id == tenant_id, ModifierGroup.id.in_(ordered_ids))
            .all()
        }
        unknown = [group_id for group_id in ordered_ids if group_id not in owned]
        if unknown:
            raise ValidationError(problems=[f"Unknown modifier group: {group_id}" for group_id in unknown])

    db.query(MenuItemModifierGroup).filter(
        MenuItemModifierGroup.tenant_id == tenant_id,
        MenuItemModifierGroup.menu_item_id == item_id,
    ).delete(synchronize_session=False)

    stale_disabled = db.query(MenuItemDisabledOption).filter(
        MenuItemDisabledOption.tenant_id == tenant_id,
        MenuItemDisabledOption.menu_item_id == item_id,
    )
    if ordered_ids:
        stale_disabled = stale_disabled.filter(MenuItemDisabledOption.modifier_group_id.notin_(ordered_ids))
    stale_disabled.delete(synchronize_session=False)

    for index, group_id in enumerate(ordered_ids):
        db.add(
            MenuItemModifierGroup(
                tenant_id=tenant_id,
                menu_item_id=item_id,
                modifier_group_id=group_id,
                position=index,
            )
        )
    return ordered_ids


def assign_modifier_groups(db: Session, tenant_id: int, item_id: int, group_ids: Iterable[str]) -> list[str]:
    """Make ``group_ids`` the complete, ordered binding set of the item.

    Duplicates keep their first position and an empty list detaches every
    group. Options switched off for groups that stay bound remain switched off.
    """
    _get_item(db, tenant_id, item_id)
    with transaction(db):
        bound = replace_bindings(db, tenant_id, item_id, group_ids)
    logger.info(
        "%s groups assigned tenant_id=%s item_id=%s group_ids=%s",
        BINDING_PREFIX,
        tenant_id,
        item_id,
        bound,
    )
    return bound


def list_item_group_ids(db: Session, tenant_id: int, item_id: int) -> list[str]:
    _get_item(db, tenant_id, item_id)
    rows = (
        db.query(MenuItemModifierGroup.modifier_group_id)
        .filter(
            MenuItemModifierGroup.tenant_id == tenant_id,
            MenuItemModifierGroup.menu_item_id == item_id,
        )
        .order_by(MenuItemModifierGroup.position.asc(), MenuItemModifierGroup.id.asc())
        .all()
    )
    return [row.modifier_group_id for row in rows]


def _get_binding(db: Session, tenant_id: int, item_id: int, group_id: str) -> MenuItemModifierGroup:
    binding = (
        db.query(MenuItemModifierGroup)
        .filter(
            MenuItemModifierGroup.tenant_id == tenant_id,
            MenuItemModifierGroup.menu_item_id == item_id,
            MenuItemModifierGroup.modifier_group_id == group_id,
        )
        .first()
    )
    if binding is None:
        raise NotFound("Modifier group", group_id)
    return binding


def set_option_enabled(
    db: Session,
    tenant_id: int,
    item_id: int,
    group_id: str,
    option_id: str,
    enabled: bool,
) -> None:
    """Switch one option of a bound group on or off for a single item.

    The binding itself is untouched, even when every option ends up disabled.
    """
    _get_item(db, tenant_id, item_id)
    _get_binding(db, tenant_id, item_id, group_id)
    option = (
        db.query(ModifierOption)
        .filter(
            ModifierOption.tenant_id == tenant_id,
            ModifierOption.modifier_group_id == group_id,
            ModifierOption.id == option_id,
        )
        .first()
    )
    if option is None:
        raise NotFound("Modifier option", option_id)

    existing = (
        db.query(MenuItemDisabledOption)
        .filter(
            MenuItemDisabledOption.tenant_id == tenant_id,
            MenuItemDisabledOption.menu_item_id == item_id,
            MenuItemDisabledOption.modifier_option_id == option_id,
        )
        .first()
    )
    with transaction(db):
        if enabled and existing is not None:
            db.delete(existing)
        elif not enabled and existing is None:
            db.add(
                MenuItemDisabledOption(
                    tenant_id=tenant_id,
                    menu_item_id=item_id,
                    modifier_group_id=group_id,
                    modifier_option_id=option_id,
                )
            )
    logger.info(
        "%s option toggled tenant_id=%s item_id=%s option_id=%s enabled=%s",
        BINDING_PREFIX,
        tenant_id,
        item_id,
        option_id,
        enabled,
    )


def disabled_option_ids(db: Session, tenant_id: int, item_id: int) -> set[str]:
    rows = (
        db.query(MenuItemDisabledOption.modifier_option_id)
        .filter(
            MenuItemDisabledOption.tenant_id == tenant_id,
            MenuItemDisabledOption.menu_item_id == item_id,
        )
        .all()
    )
    return {row.modifier_option_id for row in rows}


def detach_modifier_group(db: Session, tenant_id: int, item_id: int, group_id: str) -> None:
    _get_item(db, tenant_id, item_id)
    binding = _get_binding(db, tenant_id, item_id, group_id)
    with transaction(db):
        db.query(MenuItemDisabledOption).filter(
            MenuItemDisabledOption.tenant_id == tenant_id,
            MenuItemDisabledOption.menu_item_id == item_id,
            MenuItemDisabledOption.modifier_group_id == group_id,
        ).delete(synchronize_session=False)
        db.delete(binding)
    logger.info("%s group detached tenant_id=%s item_id=%s group_id=%s", BINDING_PREFIX, tenant_id, item_id, group_id)


def ensure_global_change_confirmed(db: Session, tenant_id: int, group_id: str, confirmed: bool) -> list[int]:
    """Refuse an option rewrite that would silently reach several items.

    Returns the ids of the bound items. Raises ``ConflictError`` carrying them
    when more than one item is bound and the caller did not confirm.
    """
    get_modifier_group(db, tenant_id, group_id)
    affected = [item.id for item in list_group_usage(db, tenant_id, group_id)]
    if len(affected) > 1 and not confirmed:
        raise ConflictError(
            f"This modifier group is used by {len(affected)} items; confirm the change to update all of them",
            affected_item_ids=affected,
        )
    return affected
