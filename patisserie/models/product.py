"""Product model (referenced by order lines; catalog management lives elsewhere)"""

import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Float, Text
from sqlalchemy.dialects.postgresql import UUID

from patisserie.clock import utcnow
from patisserie.database import Base


class Product(Base):
    """Catalog product"""
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100))  # Cakes, Pastries, Breads, ...
    price_cents = Column(Integer, nullable=False)  # Price in cents to avoid float issues
    image_url = Column(String(500))
    ratings_average = Column(Float)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
