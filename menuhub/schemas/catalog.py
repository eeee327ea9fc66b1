from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    icon: Optional[str] = Field(default=None, max_length=60)
    position: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    icon: Optional[str] = Field(default=None, max_length=60)
    position: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    name: str
    icon: Optional[str] = None
    position: int
    is_active: bool
    created_at: Optional[datetime] = None


class ReorderRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class VariantIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    price: Money


class FlatPricingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["flat"]
    price: Money


class LegacySizesPricingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["legacy_sizes"]
    price_medium: Money
    price_grande: Money


class VariantsPricingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["variants"]
    variants: List[VariantIn] = Field(..., min_length=1)

    @field_validator("variants")
    @classmethod
    def unique_variant_names(cls, variants: List[VariantIn]) -> List[VariantIn]:
        seen: set[str] = set()
        for variant in variants:
            key = variant.name.strip().lower()
            if key in seen:
                raise ValueError(f"duplicate variant name: {variant.name}")
            seen.add(key)
        return variants


PricingIn = Annotated[
    Union[FlatPricingIn, LegacySizesPricingIn, VariantsPricingIn],
    Field(discriminator="mode"),
]


class IngredientIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    can_exclude: bool = True


def _dedupe_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = (tag.strip() for tag in tags)
    return list(dict.fromkeys(tag for tag in cleaned if tag))


class MenuItemCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    portion: Optional[str] = Field(default=None, max_length=60)
    is_available: bool = True
    position: Optional[int] = Field(default=None, ge=0)
    pricing: PricingIn
    ingredients: List[IngredientIn] = Field(default_factory=list)
    modifier_group_ids: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _dedupe_tags(value)


class MenuItemUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None
    portion: Optional[str] = Field(default=None, max_length=60)
    is_available: Optional[bool] = None
    position: Optional[int] = Field(default=None, ge=0)
    pricing: Optional[PricingIn] = None
    ingredients: Optional[List[IngredientIn]] = None
    modifier_group_ids: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _dedupe_tags(value)


class AvailabilityUpdate(BaseModel):
    is_available: bool
