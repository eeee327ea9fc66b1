from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.promotions import PromotionCreate, PromotionOut, PromotionReorder, PromotionUpdate
from menuhub.services import promotions
from menuhub.services.admin_audit import log_admin_action
from menuhub.services.object_storage import ObjectStorage, get_object_storage

router = APIRouter(prefix="/api/admin/promotions", tags=["promotions"])


class PromotionActiveUpdate(BaseModel):
    is_active: Optional[bool] = None


def get_cleanup_storage(delete_image: bool = Query(default=False)) -> Optional[ObjectStorage]:
    return get_object_storage() if delete_image else None


@router.get("", response_model=List[PromotionOut])
def list_promotions(
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return promotions.list_promotions(db, tenant_id)


@router.post("", response_model=PromotionOut, status_code=status.HTTP_201_CREATED)
def create_promotion(
    payload: PromotionCreate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    promotion = promotions.create_promotion(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="create_promotion",
        entity_type="promotion",
        entity_id=promotion.id,
    )
    return promotion


@router.post("/reorder", response_model=List[PromotionOut])
def reorder_promotions(
    payload: PromotionReorder,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return promotions.reorder_promotions(db, tenant_id, payload.ids)


@router.get("/{promotion_id}", response_model=PromotionOut)
def get_promotion(
    promotion_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return promotions.get_promotion(db, tenant_id, promotion_id)


@router.patch("/{promotion_id}", response_model=PromotionOut)
def update_promotion(
    promotion_id: int,
    payload: PromotionUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    promotion = promotions.update_promotion(db, tenant_id, promotion_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_promotion",
        entity_type="promotion",
        entity_id=promotion.id,
        meta={"fields": sorted(payload.model_fields_set)},
    )
    return promotion


@router.patch("/{promotion_id}/active", response_model=PromotionOut)
def set_promotion_active(
    promotion_id: int,
    payload: PromotionActiveUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return promotions.set_promotion_active(db, tenant_id, promotion_id, payload.is_active)


@router.delete("/{promotion_id}")
def delete_promotion(
    promotion_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    storage: Optional[ObjectStorage] = Depends(get_cleanup_storage),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    promotions.delete_promotion(db, tenant_id, promotion_id, storage=storage)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="delete_promotion",
        entity_type="promotion",
        entity_id=promotion_id,
        meta={"image_deleted": storage is not None},
    )
    return {"deleted": True}
