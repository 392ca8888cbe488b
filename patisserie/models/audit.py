"""Audit log model"""

import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID

from patisserie.clock import utcnow
from patisserie.database import Base


class AuditLog(Base):
    """Audit trail for order lifecycle and payment actions"""
    __tablename__ = "audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    store_id = Column(UUID(as_uuid=True))

    # Actor information
    actor_id = Column(UUID(as_uuid=True))  # User ID or null for system
    actor_role = Column(String(50))  # customer, driver, admin, system

    # Action details
    action = Column(String(100), nullable=False)  # order.create, order.cancel, payment.add, ...
    resource_type = Column(String(50), default="order")
    resource_id = Column(UUID(as_uuid=True), index=True)

    # Change data
    data_json = Column(JSON)  # {"from": 0, "to": 1, ...}

    created_at = Column(DateTime, default=utcnow)
