from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class DayHours(BaseModel):
    open: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    close: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    closed: bool = False


class TenantSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    restaurant_name: Optional[str] = None
    business_hours: Optional[Dict[str, DayHours]] = None
    logo_url: Optional[str] = None
    online_ordering_enabled: bool
    currency: str
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class TenantSettingsUpdate(BaseModel):
    restaurant_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    business_hours: Optional[Dict[str, DayHours]] = None
    logo_url: Optional[str] = None
    online_ordering_enabled: Optional[bool] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    contact_email: Optional[str] = None


class BrandingUpdate(BaseModel):
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    secondary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class BrandingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    restaurant_name: str
    subdomain: str
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    operating_hours: Optional[Dict[str, DayHours]] = None


class OperatingHoursUpdate(BaseModel):
    operating_hours: Dict[str, DayHours]
