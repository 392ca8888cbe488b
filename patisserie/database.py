"""Database engine and session management"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from patisserie.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """Yield a database session per request"""
    async with SessionLocal() as session:
        yield session


_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession):
    """INSERT construct with ON CONFLICT support for the session's backend"""
    dialect = db.get_bind().dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on {dialect}")
