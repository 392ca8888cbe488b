#!/usr/bin/env python3
"""
Seed script to create a demo store, staff, a customer and products
"""

import asyncio
import uuid

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from patisserie.database import SessionLocal, engine, Base
    from patisserie.models.store import StoreAddress, UserAddress
    from patisserie.models.product import Product
    from patisserie.models.user import User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo store already exists
        from sqlalchemy import select
        result = await db.execute(
            select(StoreAddress).where(StoreAddress.name == "Maison Sucre Zamalek")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo store...")

        store = StoreAddress(
            id=uuid.uuid4(),
            name="Maison Sucre Zamalek",
            address="12 Brazil Street",
            city="Cairo",
            phone="+20227350000",
            latitude=30.0626,
            longitude=31.2197,
        )
        db.add(store)
        await db.flush()

        print(f"Created store: {store.name} (ID: {store.id})")

        # Staff
        admin = User(
            email="admin@maisonsucre.com",
            hashed_password=pwd_context.hash("admin123"),
            name="Store Admin",
            role=UserRole.ADMIN,
            store_address_id=store.id,
        )
        driver = User(
            email="driver@maisonsucre.com",
            hashed_password=pwd_context.hash("driver123"),
            name="Karim Driver",
            phone="+201001112223",
            role=UserRole.DRIVER,
            store_address_id=store.id,
        )
        customer = User(
            email="customer@example.com",
            hashed_password=pwd_context.hash("customer123"),
            name="Nour Customer",
            phone="+201009998887",
            role=UserRole.CUSTOMER,
        )
        db.add_all([admin, driver, customer])
        await db.flush()

        db.add(
            UserAddress(
                user_id=customer.id,
                label="Home",
                address="7 Shagaret El Dor Street",
                city="Cairo",
                phone=customer.phone,
            )
        )

        # Products
        products = [
            {"title": "Chocolate Fudge Cake", "category": "Cakes", "price_cents": 45000},
            {"title": "Strawberry Tart", "category": "Tarts", "price_cents": 9500},
            {"title": "Butter Croissant", "category": "Pastries", "price_cents": 3500},
            {"title": "Pain au Chocolat", "category": "Pastries", "price_cents": 4000},
            {"title": "Pistachio Eclair", "category": "Pastries", "price_cents": 5500},
            {"title": "Sourdough Loaf", "category": "Breads", "price_cents": 7000},
        ]

        for product_data in products:
            db.add(Product(is_active=True, **product_data))

        await db.commit()

        print(f"""
Demo data created successfully!

Store: {store.name}
  ID: {store.id}

Users:
  Store Admin:
    Email: admin@maisonsucre.com
    Password: admin123
  Driver:
    Email: driver@maisonsucre.com
    Password: driver123
  Customer:
    Email: customer@example.com
    Password: customer123

Products: {len(products)} items created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
