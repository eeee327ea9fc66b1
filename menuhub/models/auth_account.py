from sqlalchemy import Column, DateTime, String, Text, func

from menuhub.core.database import Base


class AuthAccount(Base):
    """Identity record owned by the local auth provider."""

    __tablename__ = "auth_accounts"

    id = Column(String(64), primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    metadata_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
