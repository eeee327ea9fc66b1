"""Tenant-wide modifier groups and their options.

A group is a shared template: every item bound to it sees the same options,
so editing a group changes the menu of every one of those items. Rewriting the
options gives each option a fresh id and forgets which options were switched
off per item.
"""

from __future__ import annotations

import logging
import time
import uuid
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from menuhub.core.database import transaction
from menuhub.core.errors import ConflictError, NotFound, ValidationError
from menuhub.models.menu_item import MenuItem
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.modifier_group import GROUP_TYPE_BOOLEAN, GROUP_TYPE_SINGLE, ModifierGroup
from menuhub.models.modifier_option import ModifierOption
from menuhub.schemas.modifiers import ModifierGroupCreate, ModifierGroupUpdate, ModifierOptionIn
from menuhub.utils.slug import slugify_identifier

logger = logging.getLogger(__name__)
MODIFIERS_PREFIX = "[MODIFIERS]"


def generate_group_id(name: str) -> str:
    slug = slugify_identifier(name) or "group"
    return f"custom_{slug}_{int(time.time() * 1000)}"


def _new_option_id() -> str:
    return f"opt_{uuid.uuid4().hex}"


def validate_group_rules(
    *,
    group_type: str,
    min_selections: int,
    max_selections: Optional[int],
    options: Iterable[Any],
) -> None:
    options = list(options)
    problems: list[str] = []

    if min_selections < 0:
        problems.append("min_selections must be zero or more")
    if max_selections is not None:
        if max_selections < 1:
            problems.append("max_selections must be at least 1")
        if max_selections < min_selections:
            problems.append("max_selections must not be lower than min_selections")
    if group_type in (GROUP_TYPE_SINGLE, GROUP_TYPE_BOOLEAN) and (max_selections is None or max_selections > 1):
        problems.append(f"a {group_type} group allows at most one selection")
    if group_type == GROUP_TYPE_BOOLEAN and len(options) != 1:
        problems.append("a boolean group needs exactly one option")
    if group_type == GROUP_TYPE_SINGLE and sum(1 for option in options if option.is_default) > 1:
        problems.append("a single group can have only one default option")
    if any(not (option.label or "").strip() for option in options):
        problems.append("option labels cannot be empty")

    if problems:
        raise ValidationError(problems=problems)


def _effective_max(group_type: str, max_selections: Optional[int], explicit: bool) -> Optional[int]:
    # single and boolean groups are capped at one choice unless told otherwise
    if not explicit and max_selections is None and group_type in (GROUP_TYPE_SINGLE, GROUP_TYPE_BOOLEAN):
        return 1
    return max_selections


def _replace_options(db: Session, group: ModifierGroup, options: list[ModifierOptionIn]) -> None:
    db.query(MenuItemDisabledOption).filter(
        MenuItemDisabledOption.tenant_id == group.tenant_id,
        MenuItemDisabledOption.modifier_group_id == group.id,
    ).delete(synchronize_session=False)
    db.query(ModifierOption).filter(
        ModifierOption.tenant_id == group.tenant_id,
        ModifierOption.modifier_group_id == group.id,
    ).delete(synchronize_session=False)
    for index, option in enumerate(options):
        db.add(
            ModifierOption(
                id=_new_option_id(),
                tenant_id=group.tenant_id,
                modifier_group_id=group.id,
                label=option.label.strip(),
                price_modifier=Decimal(option.price_modifier),
                is_default=option.is_default,
                position=index,
            )
        )


def list_modifier_groups(db: Session, tenant_id: int) -> list[ModifierGroup]:
    return (
        db.query(ModifierGroup)
        .filter(ModifierGroup.tenant_id == tenant_id)
        .order_by(ModifierGroup.position.asc(), ModifierGroup.created_at.asc(), ModifierGroup.id.asc())
        .all()
    )


def get_modifier_group(db: Session, tenant_id: int, group_id: str) -> ModifierGroup:
    group = (
        db.query(ModifierGroup)
        .filter(ModifierGroup.tenant_id == tenant_id, ModifierGroup.id == group_id)
        .first()
    )
    if group is None:
        raise NotFound("Modifier group", group_id)
    return group


def list_group_options(db: Session, tenant_id: int, group_ids: Iterable[str]) -> dict[str, list[ModifierOption]]:
    group_ids = list(group_ids)
    if not group_ids:
        return {}
    options = (
        db.query(ModifierOption)
        .filter(ModifierOption.tenant_id == tenant_id, ModifierOption.modifier_group_id.in_(group_ids))
        .order_by(ModifierOption.position.asc(), ModifierOption.id.asc())
        .all()
    )
    by_group: dict[str, list[ModifierOption]] = {group_id: [] for group_id in group_ids}
    for option in options:
        by_group[option.modifier_group_id].append(option)
    return by_group


def create_modifier_group(db: Session, tenant_id: int, payload: ModifierGroupCreate) -> ModifierGroup:
    max_selections = _effective_max(payload.type, payload.max_selections, "max_selections" in payload.model_fields_set)
    validate_group_rules(
        group_type=payload.type,
        min_selections=payload.min_selections,
        max_selections=max_selections,
        options=payload.options,
    )

    group_id = payload.id or generate_group_id(payload.name)
    existing = (
        db.query(ModifierGroup.id)
        .filter(ModifierGroup.tenant_id == tenant_id, ModifierGroup.id == group_id)
        .first()
    )
    if existing is not None:
        raise ConflictError("A modifier group with this id already exists")

    position = payload.position
    if position is None:
        current_max = (
            db.query(func.max(ModifierGroup.position)).filter(ModifierGroup.tenant_id == tenant_id).scalar()
        )
        position = 0 if current_max is None else current_max + 1

    with transaction(db):
        group = ModifierGroup(
            id=group_id,
            tenant_id=tenant_id,
            name=payload.name.strip(),
            type=payload.type,
            required=payload.required,
            min_selections=payload.min_selections,
            max_selections=max_selections,
            position=position,
        )
        db.add(group)
        db.flush()
        _replace_options(db, group, payload.options)

    logger.info("%s group created tenant_id=%s group_id=%s", MODIFIERS_PREFIX, tenant_id, group_id)
    db.refresh(group)
    return group


def update_modifier_group(
    db: Session,
    tenant_id: int,
    group_id: str,
    payload: ModifierGroupUpdate,
) -> ModifierGroup:
    """Partial update. Passing ``options`` rewrites every option of the group."""
    group = get_modifier_group(db, tenant_id, group_id)
    fields = payload.model_fields_set

    group_type = payload.type if "type" in fields and payload.type else group.type
    min_selections = group.min_selections
    if "min_selections" in fields and payload.min_selections is not None:
        min_selections = payload.min_selections
    if "max_selections" in fields:
        max_selections = payload.max_selections
    else:
        max_selections = group.max_selections
        if group_type in (GROUP_TYPE_SINGLE, GROUP_TYPE_BOOLEAN) and (max_selections is None or max_selections > 1):
            max_selections = 1

    if "options" in fields and payload.options is not None:
        options_to_check = payload.options
    else:
        options_to_check = list_group_options(db, tenant_id, [group.id])[group.id]
    validate_group_rules(
        group_type=group_type,
        min_selections=min_selections,
        max_selections=max_selections,
        options=options_to_check,
    )

    with transaction(db):
        if "name" in fields and payload.name:
            group.name = payload.name.strip()
        if "required" in fields and payload.required is not None:
            group.required = payload.required
        if "position" in fields and payload.position is not None:
            group.position = payload.position
        group.type = group_type
        group.min_selections = min_selections
        group.max_selections = max_selections
        if "options" in fields and payload.options is not None:
            _replace_options(db, group, payload.options)

    logger.info(
        "%s group updated tenant_id=%s group_id=%s options_rewritten=%s",
        MODIFIERS_PREFIX,
        tenant_id,
        group_id,
        "options" in fields,
    )
    db.refresh(group)
    return group


def delete_modifier_group(db: Session, tenant_id: int, group_id: str) -> None:
    group = get_modifier_group(db, tenant_id, group_id)
    with transaction(db):
        db.query(MenuItemDisabledOption).filter(
            MenuItemDisabledOption.tenant_id == tenant_id,
            MenuItemDisabledOption.modifier_group_id == group.id,
        ).delete(synchronize_session=False)
        db.query(MenuItemModifierGroup).filter(
            MenuItemModifierGroup.tenant_id == tenant_id,
            MenuItemModifierGroup.modifier_group_id == group.id,
        ).delete(synchronize_session=False)
        db.query(ModifierOption).filter(
            ModifierOption.tenant_id == tenant_id,
            ModifierOption.modifier_group_id == group.id,
        ).delete(synchronize_session=False)
        db.delete(group)
    logger.info("%s group deleted tenant_id=%s group_id=%s", MODIFIERS_PREFIX, tenant_id, group_id)


def list_group_usage(db: Session, tenant_id: int, group_id: str) -> list[MenuItem]:
    """Items of the tenant currently bound to the group."""
    group = get_modifier_group(db, tenant_id, group_id)
    return (
        db.query(MenuItem)
        .join(
            MenuItemModifierGroup,
            (MenuItemModifierGroup.menu_item_id == MenuItem.id)
            & (MenuItemModifierGroup.tenant_id == MenuItem.tenant_id),
        )
        .filter(
            MenuItem.tenant_id == tenant_id,
            MenuItemModifierGroup.modifier_group_id == group.id,
        )
        .order_by(MenuItem.name.asc(), MenuItem.id.asc())
        .all()
    )


def group_to_dict(group: ModifierGroup, options: Iterable[ModifierOption]) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "type": group.type,
        "required": bool(group.required),
        "min_selections": int(group.min_selections or 0),
        "max_selections": group.max_selections,
        "position": int(group.position or 0),
        "options": [
            {
                "id": option.id,
                "label": option.label,
                "price_modifier": Decimal(option.price_modifier or 0),
                "is_default": bool(option.is_default),
                "position": int(option.position or 0),
            }
            for option in options
        ],
    }
