"""Customer-facing menu endpoints. The tenant comes from the request host."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.core.errors import ValidationError
from menuhub.deps import get_request_tenant_id
from menuhub.schemas.menu import CategoryNode, MenuItemNode, PublicRestaurant
from menuhub.schemas.pricing import CartQuoteRequest, CartQuoteResponse, QuoteRequest, QuoteResponse
from menuhub.schemas.promotions import PromotionOut
from menuhub.services.menu_assembly import assemble_item, assemble_menu
from menuhub.services.pricing import CartLine, compose_cart, compose_line_price, pricing_from_payload
from menuhub.services.promotions import list_active_promotions
from menuhub.services.selection_rules import validate_ingredient_exclusions, validate_modifier_selection
from menuhub.services.tenant_settings import get_settings, get_tenant

logger = logging.getLogger(__name__)
QUOTE_PREFIX = "[QUOTE]"

router = APIRouter(prefix="/api/public", tags=["public-menu"])


def _orderable_item(db: Session, tenant_id: int, item_id: int, request: QuoteRequest) -> dict:
    node = assemble_item(db, tenant_id, item_id, public=True)
    if not node["is_available"]:
        raise ValidationError("This item is currently unavailable", item_id=item_id)
    validate_modifier_selection(node["modifier_groups"], request.option_ids)
    validate_ingredient_exclusions(node["ingredients"], request.excluded_ingredient_ids)
    return node


def _quote_body(item_id: int, selection, option_ids, quantity: int, price, excluded_ids=()) -> dict:
    return {
        "item_id": item_id,
        "selection": selection,
        "option_ids": list(option_ids),
        "excluded_ingredient_ids": list(excluded_ids),
        "quantity": quantity,
        "base_price": price.base_price,
        "surcharge": price.surcharge,
        "unit_price": price.unit_price,
        "total_price": price.total_price,
    }


@router.get("/menu", response_model=List[CategoryNode])
def get_public_menu(
    category_id: Optional[int] = Query(default=None),
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    return assemble_menu(db, tenant_id, category_id=category_id, public=True)


@router.get("/menu/items/{item_id}", response_model=MenuItemNode)
def get_public_item(
    item_id: int,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    return assemble_item(db, tenant_id, item_id, public=True)


@router.get("/promotions", response_model=List[PromotionOut])
def get_public_promotions(
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    return list_active_promotions(db, tenant_id)


@router.get("/restaurant", response_model=PublicRestaurant)
def get_public_restaurant(
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    tenant = get_tenant(db, tenant_id)
    settings = get_settings(db, tenant_id)
    return {
        "id": tenant.id,
        "subdomain": tenant.subdomain,
        "restaurant_name": settings.restaurant_name or tenant.restaurant_name,
        "logo_url": tenant.logo_url or settings.logo_url,
        "primary_color": tenant.primary_color,
        "secondary_color": tenant.secondary_color,
        "operating_hours": tenant.operating_hours or settings.business_hours,
        "online_ordering_enabled": bool(settings.online_ordering_enabled),
        "currency": settings.currency,
    }


@router.post("/menu/items/{item_id}/quote", response_model=QuoteResponse)
def quote_item(
    item_id: int,
    payload: QuoteRequest,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    node = _orderable_item(db, tenant_id, item_id, payload)
    price = compose_line_price(
        pricing_from_payload(node),
        selection=payload.selection,
        selected_option_ids=payload.option_ids,
        modifier_groups=node["modifier_groups"],
        quantity=payload.quantity,
    )
    logger.info(
        "%s item quoted tenant_id=%s item_id=%s quantity=%s total=%s",
        QUOTE_PREFIX,
        tenant_id,
        item_id,
        payload.quantity,
        price.total_price,
    )
    return _quote_body(
        item_id,
        payload.selection,
        sorted(set(payload.option_ids)),
        payload.quantity,
        price,
        sorted(set(payload.excluded_ingredient_ids)),
    )


@router.post("/cart/quote", response_model=CartQuoteResponse)
def quote_cart(
    payload: CartQuoteRequest,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    nodes: dict[int, dict] = {}
    lines: list[CartLine] = []
    for line in payload.lines:
        if line.item_id not in nodes:
            nodes[line.item_id] = _orderable_item(db, tenant_id, line.item_id, line)
        else:
            validate_modifier_selection(nodes[line.item_id]["modifier_groups"], line.option_ids)
            validate_ingredient_exclusions(nodes[line.item_id]["ingredients"], line.excluded_ingredient_ids)
        node = nodes[line.item_id]
        lines.append(
            CartLine(
                item_id=line.item_id,
                pricing=pricing_from_payload(node),
                modifier_groups=node["modifier_groups"],
                selection=line.selection,
                selected_option_ids=line.option_ids,
                excluded_ingredient_ids=line.excluded_ingredient_ids,
                quantity=line.quantity,
            )
        )

    quote = compose_cart(lines)
    logger.info(
        "%s cart quoted tenant_id=%s lines=%s total=%s",
        QUOTE_PREFIX,
        tenant_id,
        len(quote.lines),
        quote.total_price,
    )
    return {
        "lines": [
            _quote_body(
                line.item_id,
                line.selection,
                line.selected_option_ids,
                line.price.quantity,
                line.price,
                line.excluded_ingredient_ids,
            )
            for line in quote.lines
        ],
        "total_price": quote.total_price,
    }
