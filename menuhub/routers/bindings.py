from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.menu import MenuItemNode
from menuhub.schemas.modifiers import AssignGroupsRequest, OptionEnablementUpdate
from menuhub.services import modifier_binding
from menuhub.services.admin_audit import log_admin_action
from menuhub.services.menu_assembly import assemble_item

router = APIRouter(prefix="/api/admin/menu-items", tags=["modifier-bindings"])


@router.get("/{item_id}/modifier-groups")
def list_item_groups(
    item_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return {
        "item_id": item_id,
        "group_ids": modifier_binding.list_item_group_ids(db, tenant_id, item_id),
        "disabled_option_ids": sorted(modifier_binding.disabled_option_ids(db, tenant_id, item_id)),
    }


@router.put("/{item_id}/modifier-groups", response_model=MenuItemNode)
def assign_item_groups(
    item_id: int,
    payload: AssignGroupsRequest,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    bound = modifier_binding.assign_modifier_groups(db, tenant_id, item_id, payload.group_ids)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="assign_modifier_groups",
        entity_type="menu_item",
        entity_id=item_id,
        meta={"group_ids": bound},
    )
    return assemble_item(db, tenant_id, item_id)


@router.delete("/{item_id}/modifier-groups/{group_id}", response_model=MenuItemNode)
def detach_item_group(
    item_id: int,
    group_id: str,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    modifier_binding.detach_modifier_group(db, tenant_id, item_id, group_id)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="detach_modifier_group",
        entity_type="menu_item",
        entity_id=item_id,
        meta={"group_id": group_id},
    )
    return assemble_item(db, tenant_id, item_id)


@router.patch("/{item_id}/modifier-groups/{group_id}/options/{option_id}", response_model=MenuItemNode)
def toggle_item_option(
    item_id: int,
    group_id: str,
    option_id: str,
    payload: OptionEnablementUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    modifier_binding.set_option_enabled(db, tenant_id, item_id, group_id, option_id, payload.enabled)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="enable_option" if payload.enabled else "disable_option",
        entity_type="menu_item",
        entity_id=item_id,
        meta={"group_id": group_id, "option_id": option_id},
    )
    return assemble_item(db, tenant_id, item_id)
