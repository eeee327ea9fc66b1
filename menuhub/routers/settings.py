from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.schemas.settings import (
    BrandingOut,
    BrandingUpdate,
    OperatingHoursUpdate,
    TenantSettingsOut,
    TenantSettingsUpdate,
)
from menuhub.services import tenant_settings
from menuhub.services.admin_audit import log_admin_action

router = APIRouter(prefix="/api/admin/settings", tags=["settings"])
SETTINGS_ACCESS = require_role(["admin", "owner"])


@router.get("", response_model=TenantSettingsOut)
def get_settings(
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(SETTINGS_ACCESS),
):
    return tenant_settings.get_settings(db, tenant_id)


@router.patch("", response_model=TenantSettingsOut)
def update_settings(
    payload: TenantSettingsUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(SETTINGS_ACCESS),
):
    settings = tenant_settings.update_settings(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_settings",
        entity_type="tenant_settings",
        entity_id=settings.id,
        meta={"fields": sorted(payload.model_fields_set)},
    )
    return settings


@router.get("/branding", response_model=BrandingOut)
def get_branding(
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(SETTINGS_ACCESS),
):
    return tenant_settings.get_tenant(db, tenant_id)


@router.patch("/branding", response_model=BrandingOut)
def update_branding(
    payload: BrandingUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(SETTINGS_ACCESS),
):
    tenant = tenant_settings.update_branding(db, tenant_id, payload)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_branding",
        entity_type="tenant",
        entity_id=tenant_id,
        meta=payload.model_dump(exclude_unset=True),
    )
    return tenant


@router.put("/operating-hours", response_model=BrandingOut)
def update_operating_hours(
    payload: OperatingHoursUpdate,
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(SETTINGS_ACCESS),
):
    tenant = tenant_settings.update_operating_hours(db, tenant_id, payload.operating_hours)
    log_admin_action(
        db,
        tenant_id=tenant_id,
        user_id=user.id,
        action="update_operating_hours",
        entity_type="tenant",
        entity_id=tenant_id,
    )
    return tenant
