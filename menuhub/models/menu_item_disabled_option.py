from sqlalchemy import Column, ForeignKey, ForeignKeyConstraint, Index, Integer, String

from menuhub.core.database import Base


class MenuItemDisabledOption(Base):
    """An option of a bound group that is switched off for one item.

    No row means the option is enabled for that item.
    """

    __tablename__ = "menu_item_disabled_options"
    __table_args__ = (
        Index(
            "ix_menu_item_disabled_options_item_option",
            "tenant_id",
            "menu_item_id",
            "modifier_option_id",
            unique=True,
        ),
        Index("ix_menu_item_disabled_options_group", "tenant_id", "modifier_group_id"),
        ForeignKeyConstraint(
            ["tenant_id", "modifier_group_id"],
            ["modifier_groups.tenant_id", "modifier_groups.id"],
        ),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, index=True, nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    modifier_group_id = Column(String(120), nullable=False)
    modifier_option_id = Column(String(120), ForeignKey("modifier_options.id"), nullable=False)
