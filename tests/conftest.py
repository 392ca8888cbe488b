"""Test configuration and fixtures"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from uuid import uuid4

from patisserie.main import app
from patisserie.database import Base, get_db
from patisserie.models.store import StoreAddress, UserAddress
from patisserie.models.user import User, UserRole
from patisserie.models.product import Product
from patisserie.api.auth import create_access_token, get_password_hash
from patisserie.services import CartItemInput, CreateOrderInput, create_order


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed database for tests that need several concurrent sessions"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def seed_store(session):
    """Store, staff, a customer with an address and two products"""
    store = StoreAddress(id=uuid4(), name="Downtown", address="1 Main St", city="Cairo")
    session.add(store)
    await session.flush()

    admin = User(
        id=uuid4(),
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        name="Store Admin",
        role=UserRole.ADMIN,
        store_address_id=store.id,
    )
    driver = User(
        id=uuid4(),
        email="driver@example.com",
        hashed_password=get_password_hash("driverpass123"),
        name="Driver One",
        phone="+201000000001",
        role=UserRole.DRIVER,
        store_address_id=store.id,
    )
    other_driver = User(
        id=uuid4(),
        email="driver2@example.com",
        hashed_password=get_password_hash("driverpass123"),
        name="Driver Two",
        role=UserRole.DRIVER,
        store_address_id=store.id,
    )
    customer = User(
        id=uuid4(),
        email="customer@example.com",
        hashed_password=get_password_hash("customerpass123"),
        name="Test Customer",
        phone="+201000000002",
        role=UserRole.CUSTOMER,
    )
    session.add_all([admin, driver, other_driver, customer])
    await session.flush()

    address = UserAddress(id=uuid4(), user_id=customer.id, label="Home", address="5 Nile St", city="Cairo")
    products = [
        Product(id=uuid4(), title="Chocolate Cake", category="Cakes", price_cents=1000),
        Product(id=uuid4(), title="Croissant", category="Pastries", price_cents=500),
    ]
    session.add(address)
    session.add_all(products)
    await session.commit()

    return {
        "store": store,
        "admin": admin,
        "driver": driver,
        "other_driver": other_driver,
        "customer": customer,
        "address": address,
        "products": products,
    }


@pytest.fixture
async def seeded(test_db):
    """Seeded store in the in-memory database"""
    return await seed_store(test_db)


@pytest.fixture
async def shared_seeded(session_factory):
    """Seeded store in the file-backed database"""
    async with session_factory() as session:
        return await seed_store(session)


@pytest.fixture
def test_store(seeded):
    return seeded["store"]


@pytest.fixture
def test_admin(seeded):
    return seeded["admin"]


@pytest.fixture
def test_driver(seeded):
    return seeded["driver"]


@pytest.fixture
def test_other_driver(seeded):
    return seeded["other_driver"]


@pytest.fixture
def test_customer(seeded):
    return seeded["customer"]


@pytest.fixture
def test_address(seeded):
    return seeded["address"]


@pytest.fixture
def test_products(seeded):
    return seeded["products"]


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header factory"""
    def make(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return make


async def create_test_order(db, actor, products, now=None, **overrides):
    """Place an order for two cakes and a croissant (2500 cents before tax and shipping)"""
    fields = {
        "items": [
            CartItemInput(product_id=products[0].id, quantity=2, price_cents=1000),
            CartItemInput(product_id=products[1].id, quantity=1, price_cents=500),
        ],
    }
    fields.update(overrides)
    return await create_order(db, actor, CreateOrderInput(**fields), now=now)


@pytest.fixture
def place_order():
    """Order factory, see ``create_test_order``"""
    return create_test_order
