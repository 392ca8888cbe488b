"""Store and customer address models"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Float, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from patisserie.clock import utcnow
from patisserie.database import Base


class StoreAddress(Base):
    """Patisserie branch; admins, drivers and orders are scoped to one"""
    __tablename__ = "store_addresses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(Text)
    city = Column(String(100))
    phone = Column(String(20))
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    staff = relationship("User", back_populates="store_address")


class UserAddress(Base):
    """Customer shipping address"""
    __tablename__ = "user_addresses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    label = Column(String(100))  # Home, Work, ...
    address = Column(Text, nullable=False)
    city = Column(String(100))
    phone = Column(String(20))
    latitude = Column(Float)
    longitude = Column(Float)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="addresses")
