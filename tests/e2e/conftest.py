"""
E2E test fixtures for the mentoring pricing backend.

Provides:
- An in-process FastAPI test app with the pricing, discount and bundle routes
- httpx AsyncClient wired via ASGI transport (no network needed)
- An async SQLite database session (in-memory) for isolation
- Pre-populated seed data: one session pricing rule, two discount rules and
  one bundle package

The full route -> service -> rule store -> DB flow is exercised.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

from src.models.base import Base


@compiles(JSONB, "sqlite")
def compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# ---------------------------------------------------------------------------
# Test IDs (stable across tests so cross-references work)
# ---------------------------------------------------------------------------

SESSION_RULE_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
BULK_DISCOUNT_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")
CAPPED_DISCOUNT_ID = uuid.UUID("cccccccc-cccc-cccc-cccc-cccccccccccc")
BUNDLE_ID = uuid.UUID("dddddddd-dddd-dddd-dddd-dddddddddddd")

API = "/api/v1"


# ---------------------------------------------------------------------------
# Async engine + session factory (in-memory SQLite)
# ---------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def _test_engine():
    """Create a fresh in-memory database with the schema for one test."""
    engine = create_async_engine(TEST_DB_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(_test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session inside a transaction that is rolled back afterwards."""
    session_factory = async_sessionmaker(
        bind=_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        await session.begin()
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

async def _seed_data(db: AsyncSession) -> None:
    """Insert minimum seed data for E2E tests."""
    from src.models import (
        BundlePackage,
        BundleType,
        DiscountRule,
        DiscountType,
        PricingCategory,
        PricingRule,
    )

    now = datetime.now(timezone.utc)

    session_rule = PricingRule(
        id=SESSION_RULE_ID,
        rule_name="Standard Session Pricing",
        category=PricingCategory.SESSION_PRICING,
        base_price=Decimal("100000"),
        mentor_share_percent=Decimal("70"),
        platform_fee_percent=Decimal("30"),
        discount_tiers=[
            {"session_count": 5, "discount_percentage": "10"},
            {"session_count": 10, "discount_percentage": "15"},
        ],
        special_rates={
            "new_student_discount": "10",
            "loyalty_discount": "10",
            "referral_discount": "5",
        },
        is_active=True,
    )

    bulk = DiscountRule(
        id=BULK_DISCOUNT_ID,
        name="Bulk Five",
        description="10% off five sessions or more",
        type=DiscountType.PERCENTAGE,
        value=Decimal("10"),
        min_sessions=5,
        is_active=True,
        created_at=now - timedelta(minutes=2),
    )
    capped = DiscountRule(
        id=CAPPED_DISCOUNT_ID,
        name="Twenty Off",
        description="20% off, at most 50",
        type=DiscountType.PERCENTAGE,
        value=Decimal("20"),
        max_discount=Decimal("50"),
        applicable_roles=["siswa"],
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
        is_active=True,
        created_at=now - timedelta(minutes=1),
    )

    bundle = BundlePackage(
        id=BUNDLE_ID,
        name="Paket 4 Sesi",
        description="Four sessions in a month",
        type=BundleType.MONTHLY,
        session_count=4,
        original_price=Decimal("400000"),
        discount_percentage=Decimal("10"),
        final_price=Decimal("360000.00"),
        validity_days=30,
        features=["Priority booking"],
        is_active=True,
    )

    db.add_all([session_rule, bulk, capped, bundle])
    await db.flush()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """A database session with seed data already inserted."""
    await _seed_data(db_session)
    return db_session


# ---------------------------------------------------------------------------
# FastAPI test application
# ---------------------------------------------------------------------------

def _create_test_app(db_session_override: AsyncSession):
    """Build a FastAPI app with all routes registered and the DB dependency
    overridden to use the test session."""
    from fastapi import FastAPI

    from src.api.deps import get_db
    from src.api.routes.bundles import router as bundles_router
    from src.api.routes.discounts import router as discounts_router
    from src.api.routes.pricing import router as pricing_router

    app = FastAPI(title="Mentoring Pricing Test")

    async def _override_get_db():
        yield db_session_override

    app.dependency_overrides[get_db] = _override_get_db

    app.include_router(pricing_router, prefix=API)
    app.include_router(discounts_router, prefix=API)
    app.include_router(bundles_router, prefix=API)

    return app


async def _client_for(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    app = _create_test_app(session)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def client(seeded_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient connected to the test app via ASGI transport."""
    async for ac in _client_for(seeded_db):
        yield ac


@pytest_asyncio.fixture
async def empty_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client against an empty database (no rules at all)."""
    async for ac in _client_for(db_session):
        yield ac
