from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from menuhub.schemas.settings import WEEKDAYS, DayHours

PlanName = Literal["basic", "professional", "enterprise"]
BillingCycle = Literal["monthly", "yearly"]


class OnboardingRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=200)
    owner_name: Optional[str] = Field(default=None, max_length=120)
    phone: str = Field(..., min_length=5, max_length=50)

    restaurant_name: str = Field(..., min_length=2, max_length=120)
    business_name: Optional[str] = Field(default=None, max_length=200)
    cuisine_types: List[str] = Field(default_factory=list)
    operating_hours: Optional[Dict[str, DayHours]] = None
    logo_url: Optional[str] = Field(default=None, max_length=500)

    address_line1: str = Field(..., min_length=1, max_length=200)
    address_line2: Optional[str] = Field(default=None, max_length=200)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=2, max_length=80)

    subdomain: str = Field(..., min_length=1, max_length=63)
    plan: PlanName
    billing_cycle: BillingCycle

    checkout_session_id: Optional[str] = None
    payment_customer_id: Optional[str] = None
    payment_subscription_id: Optional[str] = None

    @field_validator("operating_hours")
    @classmethod
    def known_weekdays(cls, value):
        if value is None:
            return value
        unknown = [day for day in value if day.lower() not in WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown weekday: {', '.join(unknown)}")
        return {day.lower(): hours for day, hours in value.items()}


class SubdomainCheckRequest(BaseModel):
    subdomain: str = Field(..., max_length=100)


class SubdomainCheckResponse(BaseModel):
    subdomain: str
    available: bool
    reason: Optional[str] = None


class EmailCheckRequest(BaseModel):
    email: EmailStr


class EmailCheckResponse(BaseModel):
    status: Literal["available", "registered", "incomplete"]
    subdomain: Optional[str] = None


class OnboardingResponse(BaseModel):
    success: bool
    tenant_id: Optional[int] = None
    user_id: Optional[str] = None
    subdomain: Optional[str] = None
    menu_url: Optional[str] = None
    admin_url: Optional[str] = None
    qr_code_data_url: Optional[str] = None
    skipped_steps: List[str] = Field(default_factory=list)
