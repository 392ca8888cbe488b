"""Daily order-number sequence"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from patisserie.clock import local_date, utcnow
from patisserie.config import settings
from patisserie.database import dialect_insert
from patisserie.models.counter import Counter

logger = structlog.get_logger()


async def next_daily_order_number(
    db: AsyncSession,
    name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    """Increment and return the counter, restarting at 1 on a new local day.

    The read-compare-reset-increment runs as a single upsert, so concurrent
    callers never observe the same value. The row stays locked until the
    caller's transaction ends; the caller commits.
    """
    name = name or settings.order_counter_name
    now = now or utcnow()
    period = local_date(now).isoformat()

    table = Counter.__table__
    insert = dialect_insert(db)
    stmt = insert(table).values(name=name, value=1, period=period, last_reset=now)
    same_day = table.c.period == stmt.excluded.period
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.name],
        set_={
            "value": case((same_day, table.c.value + 1), else_=1),
            "last_reset": case((same_day, table.c.last_reset), else_=stmt.excluded.last_reset),
            "period": stmt.excluded.period,
        },
    )
    await db.execute(stmt)

    result = await db.execute(select(table.c.value).where(table.c.name == name))
    value = result.scalar_one()

    logger.debug("Counter incremented", counter=name, period=period, value=value)
    return value
