from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from menuhub.core.database import Base


class TenantSettings(Base):
    __tablename__ = "tenant_settings"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True, unique=True)
    restaurant_name = Column(String, nullable=True)
    business_hours = Column(JSON, nullable=True)
    logo_url = Column(Text, nullable=True)
    online_ordering_enabled = Column(Boolean, nullable=False, default=True)
    currency = Column(String(3), nullable=False, default="USD")
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
