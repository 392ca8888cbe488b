"""Named sequence counters"""

from sqlalchemy import Column, String, Integer, DateTime

from patisserie.clock import utcnow
from patisserie.database import Base


class Counter(Base):
    """One row per counter name; created lazily, reset at the start of each local day"""
    __tablename__ = "counters"

    name = Column(String(100), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
    period = Column(String(10), nullable=False)  # Local date of the last reset, YYYY-MM-DD
    last_reset = Column(DateTime, nullable=False, default=utcnow)
