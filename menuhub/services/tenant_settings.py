from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.orm import Session

from menuhub.core.database import transaction
from menuhub.core.errors import NotFound, ValidationError
from menuhub.models.tenant import Tenant
from menuhub.models.tenant_settings import TenantSettings
from menuhub.schemas.settings import WEEKDAYS, BrandingUpdate, TenantSettingsUpdate

logger = logging.getLogger(__name__)
SETTINGS_PREFIX = "[TENANT_SETTINGS]"

DEFAULT_OPERATING_HOURS = {
    "monday": {"open": "09:00", "close": "22:00", "closed": False},
    "tuesday": {"open": "09:00", "close": "22:00", "closed": False},
    "wednesday": {"open": "09:00", "close": "22:00", "closed": False},
    "thursday": {"open": "09:00", "close": "22:00", "closed": False},
    "friday": {"open": "09:00", "close": "23:00", "closed": False},
    "saturday": {"open": "09:00", "close": "23:00", "closed": False},
    "sunday": {"open": "10:00", "close": "21:00", "closed": False},
}


def get_tenant(db: Session, tenant_id: int) -> Tenant:
    tenant = (
        db.query(Tenant)
        .filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None))
        .first()
    )
    if tenant is None:
        raise NotFound("Restaurant", tenant_id)
    return tenant


def _hours_to_json(hours: Mapping[str, Any]) -> dict:
    unknown = [day for day in hours if day.lower() not in WEEKDAYS]
    if unknown:
        raise ValidationError(problems=[f"Unknown weekday: {day}" for day in unknown])
    result = {}
    for day, value in hours.items():
        result[day.lower()] = value.model_dump() if hasattr(value, "model_dump") else dict(value)
    return result


def get_settings(db: Session, tenant_id: int) -> TenantSettings:
    """Return the settings row, creating it from the tenant record on first read."""
    settings = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
    if settings is not None:
        return settings

    tenant = get_tenant(db, tenant_id)
    with transaction(db):
        settings = TenantSettings(
            tenant_id=tenant.id,
            restaurant_name=tenant.restaurant_name,
            business_hours=tenant.operating_hours or DEFAULT_OPERATING_HOURS,
            logo_url=tenant.logo_url,
            online_ordering_enabled=True,
            currency="USD",
            contact_phone=tenant.phone,
            contact_email=tenant.email or tenant.billing_email,
        )
        db.add(settings)
    db.refresh(settings)
    logger.info("%s defaults created tenant_id=%s", SETTINGS_PREFIX, tenant_id)
    return settings


def update_settings(db: Session, tenant_id: int, payload: TenantSettingsUpdate) -> TenantSettings:
    settings = get_settings(db, tenant_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("business_hours") is not None:
        changes["business_hours"] = _hours_to_json(payload.business_hours)
    if changes.get("currency"):
        changes["currency"] = changes["currency"].upper()

    with transaction(db):
        for field, value in changes.items():
            if field in {"online_ordering_enabled", "currency", "restaurant_name"} and value is None:
                continue
            setattr(settings, field, value)
    db.refresh(settings)
    return settings


def update_branding(db: Session, tenant_id: int, payload: BrandingUpdate) -> Tenant:
    tenant = get_tenant(db, tenant_id)
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db):
        for field, value in changes.items():
            setattr(tenant, field, value)
        if "logo_url" in changes:
            settings = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
            if settings is not None:
                settings.logo_url = changes["logo_url"]
    db.refresh(tenant)
    logger.info("%s branding updated tenant_id=%s fields=%s", SETTINGS_PREFIX, tenant_id, sorted(changes))
    return tenant


def update_operating_hours(db: Session, tenant_id: int, hours: Mapping[str, Any]) -> Tenant:
    tenant = get_tenant(db, tenant_id)
    with transaction(db):
        tenant.operating_hours = _hours_to_json(hours)
    db.refresh(tenant)
    return tenant
