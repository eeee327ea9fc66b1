from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from menuhub.core.database import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    plan = Column(String(30), nullable=False)
    billing_cycle = Column(String(20), nullable=False, default="monthly")
    status = Column(String(30), nullable=False, default="trialing")
    checkout_session_id = Column(String, nullable=True, index=True)
    payment_customer_id = Column(String, nullable=True)
    payment_subscription_id = Column(String, nullable=True)
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
