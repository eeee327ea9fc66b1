from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, func

from menuhub.core.database import Base


class MenuCategory(Base):
    __tablename__ = "menu_categories"
    __table_args__ = (Index("ix_menu_categories_tenant_position", "tenant_id", "position"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    icon = Column(String(60), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
