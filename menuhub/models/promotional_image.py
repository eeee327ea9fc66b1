from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func

from menuhub.core.database import Base


class PromotionalImage(Base):
    __tablename__ = "promotional_images"
    __table_args__ = (Index("ix_promotional_images_tenant_position", "tenant_id", "position"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    image_url = Column(Text, nullable=False)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    link_url = Column(Text, nullable=True)
    link_menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
