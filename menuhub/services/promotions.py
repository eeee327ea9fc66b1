from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from menuhub.core.database import transaction
from menuhub.core.errors import NotFound, ValidationError
from menuhub.models.menu_item import MenuItem
from menuhub.models.promotional_image import PromotionalImage
from menuhub.schemas.promotions import PromotionCreate, PromotionUpdate
from menuhub.services.object_storage import ObjectStorage, discard_stored_image

logger = logging.getLogger(__name__)
PROMOTIONS_PREFIX = "[PROMOTIONS]"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they were stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_running(promotion: PromotionalImage, now: Optional[datetime] = None) -> bool:
    """Active flag set and ``now`` inside the optional start/end window."""
    if not promotion.is_active:
        return False
    now = _as_utc(now) or datetime.now(timezone.utc)
    start = _as_utc(promotion.start_date)
    end = _as_utc(promotion.end_date)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def list_promotions(db: Session, tenant_id: int) -> list[PromotionalImage]:
    return (
        db.query(PromotionalImage)
        .filter(PromotionalImage.tenant_id == tenant_id)
        .order_by(PromotionalImage.position.asc(), PromotionalImage.id.asc())
        .all()
    )


def list_active_promotions(db: Session, tenant_id: int, now: Optional[datetime] = None) -> list[PromotionalImage]:
    candidates = (
        db.query(PromotionalImage)
        .filter(PromotionalImage.tenant_id == tenant_id, PromotionalImage.is_active.is_(True))
        .order_by(PromotionalImage.position.asc(), PromotionalImage.id.asc())
        .all()
    )
    return [promotion for promotion in candidates if is_running(promotion, now)]


def get_promotion(db: Session, tenant_id: int, promotion_id: int) -> PromotionalImage:
    promotion = (
        db.query(PromotionalImage)
        .filter(PromotionalImage.tenant_id == tenant_id, PromotionalImage.id == promotion_id)
        .first()
    )
    if promotion is None:
        raise NotFound("Promotion", promotion_id)
    return promotion


def _check_linked_item(db: Session, tenant_id: int, item_id: Optional[int]) -> None:
    if item_id is None:
        return
    exists = db.query(MenuItem.id).filter(MenuItem.tenant_id == tenant_id, MenuItem.id == item_id).first()
    if exists is None:
        raise ValidationError("Linked menu item not found", link_menu_item_id=item_id)


def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    start, end = _as_utc(start), _as_utc(end)
    if start is not None and end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")


def create_promotion(db: Session, tenant_id: int, payload: PromotionCreate) -> PromotionalImage:
    _check_window(payload.start_date, payload.end_date)
    _check_linked_item(db, tenant_id, payload.link_menu_item_id)

    position = payload.position
    if position is None:
        current = (
            db.query(func.max(PromotionalImage.position))
            .filter(PromotionalImage.tenant_id == tenant_id)
            .scalar()
        )
        position = 0 if current is None else int(current) + 1

    with transaction(db):
        promotion = PromotionalImage(
            tenant_id=tenant_id,
            image_url=payload.image_url,
            title=payload.title,
            description=payload.description,
            link_url=payload.link_url,
            link_menu_item_id=payload.link_menu_item_id,
            position=position,
            is_active=payload.is_active,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
        db.add(promotion)
    db.refresh(promotion)
    logger.info("%s created tenant_id=%s promotion_id=%s", PROMOTIONS_PREFIX, tenant_id, promotion.id)
    return promotion


def update_promotion(db: Session, tenant_id: int, promotion_id: int, payload: PromotionUpdate) -> PromotionalImage:
    promotion = get_promotion(db, tenant_id, promotion_id)
    changes = payload.model_dump(exclude_unset=True)

    start = changes.get("start_date", promotion.start_date)
    end = changes.get("end_date", promotion.end_date)
    _check_window(start, end)
    if "link_menu_item_id" in changes:
        _check_linked_item(db, tenant_id, changes["link_menu_item_id"])

    with transaction(db):
        for field, value in changes.items():
            if field in {"image_url", "position", "is_active"} and value is None:
                continue
            setattr(promotion, field, value)
    db.refresh(promotion)
    return promotion


def delete_promotion(
    db: Session,
    tenant_id: int,
    promotion_id: int,
    *,
    storage: Optional[ObjectStorage] = None,
) -> None:
    """Delete the promotion; with ``storage`` also remove its stored image."""
    promotion = get_promotion(db, tenant_id, promotion_id)
    image_url = promotion.image_url
    with transaction(db):
        db.delete(promotion)
    logger.info("%s deleted tenant_id=%s promotion_id=%s", PROMOTIONS_PREFIX, tenant_id, promotion_id)

    if storage is not None:
        discard_stored_image(storage, image_url)


def reorder_promotions(db: Session, tenant_id: int, ids: Iterable[int]) -> list[PromotionalImage]:
    ordered = list(dict.fromkeys(ids))
    owned = {
        promotion.id: promotion
        for promotion in db.query(PromotionalImage)
        .filter(PromotionalImage.tenant_id == tenant_id, PromotionalImage.id.in_(ordered))
        .all()
    } if ordered else {}
    with transaction(db):
        for index, promotion_id in enumerate(ordered):
            promotion = owned.get(promotion_id)
            if promotion is not None:
                promotion.position = index
    return list_promotions(db, tenant_id)


def set_promotion_active(
    db: Session,
    tenant_id: int,
    promotion_id: int,
    is_active: Optional[bool] = None,
) -> PromotionalImage:
    promotion = get_promotion(db, tenant_id, promotion_id)
    with transaction(db):
        promotion.is_active = (not promotion.is_active) if is_active is None else is_active
    db.refresh(promotion)
    return promotion
