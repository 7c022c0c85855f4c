from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from storefront.db.base import Base

USER_ROLES = (0, 1)  # 0: customer, 1: administrator


class User(Base):
    """Store user. Only the password hash is stored, never the password."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    role = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
