from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from menuhub.schemas.modifiers import ModifierGroupOut


class VariantNode(BaseModel):
    id: int
    name: str
    price: Decimal
    position: int


class IngredientNode(BaseModel):
    id: int
    name: str
    can_exclude: bool
    position: int


class MenuItemNode(BaseModel):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    portion: Optional[str] = None
    is_available: bool
    position: int
    pricing_mode: str
    price: Optional[Decimal] = None
    price_medium: Optional[Decimal] = None
    price_grande: Optional[Decimal] = None
    variants: List[VariantNode] = Field(default_factory=list)
    ingredients: List[IngredientNode] = Field(default_factory=list)
    modifier_groups: List[ModifierGroupOut] = Field(default_factory=list)


class CategoryNode(BaseModel):
    id: int
    name: str
    icon: Optional[str] = None
    position: int
    is_active: bool
    items: List[MenuItemNode] = Field(default_factory=list)


class PublicRestaurant(BaseModel):
    id: int
    subdomain: str
    restaurant_name: str
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    operating_hours: Optional[dict] = None
    online_ordering_enabled: bool = True
    currency: str = "USD"
