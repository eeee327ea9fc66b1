from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from menuhub.core.database import Base


class MenuItemIngredient(Base):
    __tablename__ = "menu_item_ingredients"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, index=True, nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), index=True, nullable=False)
    name = Column(String(120), nullable=False)
    can_exclude = Column(Boolean, default=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)
