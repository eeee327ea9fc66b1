from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.catalog import AvailabilityUpdate, MenuItemCreate, MenuItemUpdate
from menuhub.schemas.menu import CategoryNode, MenuItemNode
from menuhub.services import catalog
from menuhub.services.admin_audit import log_admin_action
from menuhub.services.menu_assembly import assemble_item, assemble_menu
from menuhub.services.object_storage import ObjectStorage, discard_stored_image, get_object_storage

router = APIRouter(prefix="/api/admin", tags=["menu-items"])


class ItemReorderRequest(BaseModel):
    category_id: int
    ids: List[int] = Field(default_factory=list)


@router.get("/menu", response_model=List[CategoryNode])
def get_admin_menu(
    category_id: Optional[int] = Query(default=None),
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return assemble_menu(db, tenant_id, category_id=category_id, public=False)


@router.get("/menu-items", response_model=List[MenuItemNode])
def list_menu_items(
    category_id: Optional[int] = Query(default=None),
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    items = catalog.list_menu_items(db, tenant_id, category_id=category_id)
    return [assemble_item(db, tenant_id, item.id) for item in items]


@router.post("/menu-items", response_model=MenuItemNode, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    payload: MenuItemCreate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    item = catalog.create_menu_item(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="create_menu_item",
        entity_type="menu_item",
        entity_id=item.id,
    )
    return assemble_item(db, tenant_id, item.id)


@router.post("/menu-items/reorder", response_model=List[MenuItemNode])
def reorder_menu_items(
    payload: ItemReorderRequest,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    items = catalog.reorder_menu_items(db, tenant_id, payload.category_id, payload.ids)
    return [assemble_item(db, tenant_id, item.id) for item in items]


@router.get("/menu-items/{item_id}", response_model=MenuItemNode)
def get_menu_item(
    item_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    return assemble_item(db, tenant_id, item_id)


@router.patch("/menu-items/{item_id}", response_model=MenuItemNode)
def update_menu_item(
    item_id: int,
    payload: MenuItemUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    catalog.update_menu_item(db, tenant_id, item_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_menu_item",
        entity_type="menu_item",
        entity_id=item_id,
        meta={"fields": sorted(payload.model_fields_set)},
    )
    return assemble_item(db, tenant_id, item_id)


@router.delete("/menu-items/{item_id}")
def delete_menu_item(
    item_id: int,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    catalog.delete_menu_item(db, tenant_id, item_id)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="delete_menu_item",
        entity_type="menu_item",
        entity_id=item_id,
    )
    return {"deleted": True}


@router.patch("/menu-items/{item_id}/availability", response_model=MenuItemNode)
def set_menu_item_availability(
    item_id: int,
    payload: AvailabilityUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    catalog.set_item_availability(db, tenant_id, item_id, payload.is_available)
    return assemble_item(db, tenant_id, item_id)


@router.post("/menu-items/{item_id}/image", response_model=MenuItemNode)
def upload_menu_item_image(
    item_id: int,
    image: UploadFile = File(...),
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    item = catalog.get_menu_item(db, tenant_id, item_id)
    previous_url = item.image_url
    image_url = storage.upload(image, tenant_id=tenant_id, folder="menu-items")
    catalog.set_item_image(db, tenant_id, item_id, image_url)
    if previous_url and previous_url != image_url:
        discard_stored_image(storage, previous_url)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="upload_menu_item_image",
        entity_type="menu_item",
        entity_id=item_id,
    )
    return assemble_item(db, tenant_id, item_id)
