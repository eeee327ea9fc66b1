from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class QuoteRequest(BaseModel):
    selection: Optional[Union[int, str]] = None
    option_ids: List[str] = Field(default_factory=list)
    excluded_ingredient_ids: List[int] = Field(default_factory=list)
    quantity: int = Field(default=1, ge=1, le=999)


class QuoteResponse(BaseModel):
    item_id: int
    selection: Optional[Union[int, str]] = None
    option_ids: List[str] = Field(default_factory=list)
    excluded_ingredient_ids: List[int] = Field(default_factory=list)
    quantity: int
    base_price: Decimal
    surcharge: Decimal
    unit_price: Decimal
    total_price: Decimal


class CartLineIn(QuoteRequest):
    item_id: int


class CartQuoteRequest(BaseModel):
    lines: List[CartLineIn] = Field(..., min_length=1, max_length=100)


class CartQuoteResponse(BaseModel):
    lines: List[QuoteResponse]
    total_price: Decimal
