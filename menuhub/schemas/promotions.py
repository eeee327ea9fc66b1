from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PromotionCreate(BaseModel):
    image_url: str = Field(..., min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    link_url: Optional[str] = None
    link_menu_item_id: Optional[int] = None
    position: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PromotionUpdate(BaseModel):
    image_url: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    link_url: Optional[str] = None
    link_menu_item_id: Optional[int] = None
    position: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    image_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    link_url: Optional[str] = None
    link_menu_item_id: Optional[int] = None
    position: int
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionReorder(BaseModel):
    ids: List[int] = Field(default_factory=list)
