from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from menuhub.core.database import Base

PRICING_FLAT = "flat"
PRICING_LEGACY_SIZES = "legacy_sizes"
PRICING_VARIANTS = "variants"
PRICING_MODES = (PRICING_FLAT, PRICING_LEGACY_SIZES, PRICING_VARIANTS)


class MenuItem(Base):
    __tablename__ = "menu_items"
    __table_args__ = (
        Index("ix_menu_items_tenant_category", "tenant_id", "category_id"),
        CheckConstraint(
            "(pricing_mode = 'flat' AND price IS NOT NULL"
            " AND price_medium IS NULL AND price_grande IS NULL)"
            " OR (pricing_mode = 'legacy_sizes' AND price IS NULL"
            " AND price_medium IS NOT NULL AND price_grande IS NOT NULL)"
            " OR (pricing_mode = 'variants' AND price IS NULL"
            " AND price_medium IS NULL AND price_grande IS NULL)",
            name="ck_menu_items_single_pricing_mode",
        ),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("menu_categories.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    image_url = Column(Text, nullable=True)
    portion = Column(String(60), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    pricing_mode = Column(String(20), nullable=False, default=PRICING_FLAT)
    price = Column(Numeric(10, 2), nullable=True)
    price_medium = Column(Numeric(10, 2), nullable=True)
    price_grande = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
