from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, func

from menuhub.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    subdomain = Column(String(63), unique=True, index=True, nullable=False)
    restaurant_name = Column(String, nullable=False)
    business_name = Column(String, nullable=False)
    billing_email = Column(String, index=True, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)

    address_line1 = Column(String, nullable=True)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(80), nullable=True)
    cuisine_types = Column(JSON, nullable=False, default=list)
    operating_hours = Column(JSON, nullable=True)

    # Branding
    logo_url = Column(Text, nullable=True)
    primary_color = Column(String(20), nullable=True)
    secondary_color = Column(String(20), nullable=True)

    subscription_tier = Column(String(30), nullable=False, default="basic")
    subscription_status = Column(String(30), nullable=False, default="active")

    qr_code_data_url = Column(Text, nullable=True)
    qr_generated_at = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
