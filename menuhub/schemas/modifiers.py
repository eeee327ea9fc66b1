from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

GroupType = Literal["single", "multiple", "boolean"]


class ModifierOptionIn(BaseModel):
    label: str = Field(..., min_length=1, max_length=255)
    price_modifier: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    is_default: bool = False


class ModifierGroupCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=120, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=120)
    type: GroupType = "single"
    required: bool = False
    min_selections: int = 0
    max_selections: Optional[int] = None
    position: Optional[int] = Field(default=None, ge=0)
    options: List[ModifierOptionIn] = Field(default_factory=list)


class ModifierGroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    type: Optional[GroupType] = None
    required: Optional[bool] = None
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    position: Optional[int] = Field(default=None, ge=0)
    options: Optional[List[ModifierOptionIn]] = None


class ModifierOptionOut(BaseModel):
    id: str
    label: str
    price_modifier: Decimal
    is_default: bool
    position: int


class ModifierGroupOut(BaseModel):
    id: str
    name: str
    type: GroupType
    required: bool
    min_selections: int
    max_selections: Optional[int] = None
    position: int
    options: List[ModifierOptionOut] = Field(default_factory=list)


class GroupUsageItem(BaseModel):
    id: int
    name: str
    category_id: int


class AssignGroupsRequest(BaseModel):
    group_ids: List[str] = Field(default_factory=list)


class OptionEnablementUpdate(BaseModel):
    enabled: bool
