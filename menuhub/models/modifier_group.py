from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, func

from menuhub.core.database import Base

GROUP_TYPE_SINGLE = "single"
GROUP_TYPE_MULTIPLE = "multiple"
GROUP_TYPE_BOOLEAN = "boolean"
GROUP_TYPES = (GROUP_TYPE_SINGLE, GROUP_TYPE_MULTIPLE, GROUP_TYPE_BOOLEAN)


class ModifierGroup(Base):
    """Group ids are unique within a tenant; two restaurants may both own ``milk``."""

    __tablename__ = "modifier_groups"
    __table_args__ = (Index("ix_modifier_groups_tenant_position", "tenant_id", "position"),)

    tenant_id = Column(Integer, primary_key=True)
    id = Column(String(120), primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String(20), nullable=False, default=GROUP_TYPE_SINGLE)
    required = Column(Boolean, default=False, nullable=False)
    min_selections = Column(Integer, default=0, nullable=False)
    max_selections = Column(Integer, nullable=True)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
