from sqlalchemy import Boolean, Column, ForeignKeyConstraint, Index, Integer, Numeric, String

from menuhub.core.database import Base


class ModifierOption(Base):
    __tablename__ = "modifier_options"
    __table_args__ = (
        ForeignKeyConstraint(
            ["tenant_id", "modifier_group_id"],
            ["modifier_groups.tenant_id", "modifier_groups.id"],
        ),
        Index("ix_modifier_options_tenant_group", "tenant_id", "modifier_group_id"),
    )

    id = Column(String(120), primary_key=True)
    tenant_id = Column(Integer, nullable=False)
    modifier_group_id = Column(String(120), nullable=False)
    label = Column(String(255), nullable=False)
    price_modifier = Column(Numeric(10, 2), default=0, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)
