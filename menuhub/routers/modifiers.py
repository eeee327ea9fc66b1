from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.modifiers import (
    GroupUsageItem,
    ModifierGroupCreate,
    ModifierGroupOut,
    ModifierGroupUpdate,
)
from menuhub.services import modifier_registry
from menuhub.services.admin_audit import log_admin_action
from menuhub.services.modifier_binding import ensure_global_change_confirmed

router = APIRouter(prefix="/api/admin/modifiers", tags=["modifiers"])


def _group_payload(db: Session, tenant_id: int, group) -> dict:
    options = modifier_registry.list_group_options(db, tenant_id, [group.id]).get(group.id, [])
    return modifier_registry.group_to_dict(group, options)


@router.get("/groups", response_model=List[ModifierGroupOut])
def list_groups(
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    groups = modifier_registry.list_modifier_groups(db, tenant_id)
    options = modifier_registry.list_group_options(db, tenant_id, [group.id for group in groups])
    return [modifier_registry.group_to_dict(group, options.get(group.id, [])) for group in groups]


@router.post("/groups", response_model=ModifierGroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: ModifierGroupCreate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    group = modifier_registry.create_modifier_group(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="create_modifier_group",
        entity_type="modifier_group",
        entity_id=group.id,
    )
    return _group_payload(db, tenant_id, group)


@router.get("/groups/{group_id}", response_model=ModifierGroupOut)
def get_group(
    group_id: str,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    group = modifier_registry.get_modifier_group(db, tenant_id, group_id)
    return _group_payload(db, tenant_id, group)


@router.patch("/groups/{group_id}", response_model=ModifierGroupOut)
def update_group(
    group_id: str,
    payload: ModifierGroupUpdate,
    confirm_global_change: bool = Query(default=False),
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    affected_item_ids: list[int] = []
    if payload.options is not None:
        affected_item_ids = ensure_global_change_confirmed(db, tenant_id, group_id, confirm_global_change)
    group = modifier_registry.update_modifier_group(db, tenant_id, group_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_modifier_group",
        entity_type="modifier_group",
        entity_id=group.id,
        meta={
            "fields": sorted(payload.model_fields_set),
            "affected_item_ids": affected_item_ids,
        },
    )
    return _group_payload(db, tenant_id, group)


@router.delete("/groups/{group_id}")
def delete_group(
    group_id: str,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    modifier_registry.delete_modifier_group(db, tenant_id, group_id)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="delete_modifier_group",
        entity_type="modifier_group",
        entity_id=group_id,
    )
    return {"deleted": True}


@router.get("/groups/{group_id}/usage", response_model=List[GroupUsageItem])
def get_group_usage(
    group_id: str,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return [
        {"id": item.id, "name": item.name, "category_id": item.category_id}
        for item in modifier_registry.list_group_usage(db, tenant_id, group_id)
    ]
