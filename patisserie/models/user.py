"""User model for customers, drivers and store staff"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from patisserie.clock import utcnow
from patisserie.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class User(Base):
    """Customers, delivery drivers and store admins"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    name = Column(String(255))
    phone = Column(String(20))
    image_url = Column(String(500))

    # Role and store scope (drivers and admins work for one store)
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER, nullable=False)
    store_address_id = Column(UUID(as_uuid=True), ForeignKey("store_addresses.id"))

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    store_address = relationship("StoreAddress", back_populates="staff")
    addresses = relationship("UserAddress", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER
