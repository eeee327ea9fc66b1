from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.catalog import CategoryCreate, CategoryOut, CategoryUpdate, ReorderRequest
from menuhub.services import catalog
from menuhub.services.admin_audit import log_admin_action

router = APIRouter(prefix="/api/admin/categories", tags=["categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return catalog.list_categories(db, tenant_id)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    category = catalog.create_category(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="create_category",
        entity_type="category",
        entity_id=category.id,
    )
    return category


@router.post("/reorder", response_model=List[CategoryOut])
def reorder_categories(
    payload: ReorderRequest,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return catalog.reorder_categories(db, tenant_id, payload.ids)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return catalog.get_category(db, tenant_id, category_id)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    category = catalog.update_category(db, tenant_id, category_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_category",
        entity_type="category",
        entity_id=category.id,
        meta=payload.model_dump(exclude_unset=True),
    )
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    removed_item_ids = catalog.delete_category(db, tenant_id, category_id)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="delete_category",
        entity_type="category",
        entity_id=category_id,
        meta={"removed_item_ids": removed_item_ids},
    )
    return {"deleted": True, "removed_item_ids": removed_item_ids}
