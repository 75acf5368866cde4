"""
Shared pytest fixtures for the mentoring pricing unit tests.

Provides mock database sessions and sample domain objects that mirror
production ORM models without requiring a live database connection.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models import (
    BundlePackage,
    BundleType,
    DiscountRule,
    DiscountType,
    PricingCategory,
    PricingRule,
)


# ---------------------------------------------------------------------------
# Database session mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db() -> AsyncMock:
    """Async mock of ``AsyncSession``.

    Provides a mock that supports ``db.execute()``, ``db.add()``,
    ``db.flush()``, ``db.delete()`` and ``db.commit()`` out of the box.
    Individual tests can configure ``mock_db.execute.return_value`` to
    control query results.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


# ---------------------------------------------------------------------------
# Pricing rule fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pricing_rule() -> PricingRule:
    """An active session pricing rule with unordered tiers and special rates."""
    rule = MagicMock(spec=PricingRule)
    rule.id = uuid.uuid4()
    rule.rule_name = "Standard Session Pricing"
    rule.category = PricingCategory.SESSION_PRICING
    rule.base_price = Decimal("100000")
    rule.mentor_share_percent = Decimal("70")
    rule.platform_fee_percent = Decimal("30")
    rule.discount_tiers = [
        {"session_count": 10, "discount_percentage": "15"},
        {"session_count": 3, "discount_percentage": "5"},
        {"session_count": 5, "discount_percentage": "10"},
    ]
    rule.special_rates = {
        "new_student_discount": "10",
        "loyalty_discount": "10",
        "referral_discount": "5",
    }
    rule.is_active = True
    rule.effective_date = datetime(2025, 1, 1, tzinfo=timezone.utc)
    rule.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    rule.updated_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return rule


# ---------------------------------------------------------------------------
# Discount rule fixtures
# ---------------------------------------------------------------------------


def make_discount_rule(**overrides) -> DiscountRule:
    """Build a mock discount rule with no eligibility constraints."""
    rule = MagicMock(spec=DiscountRule)
    rule.id = uuid.uuid4()
    rule.name = "Promo"
    rule.description = ""
    rule.type = DiscountType.PERCENTAGE
    rule.value = Decimal("10")
    rule.min_sessions = None
    rule.max_sessions = None
    rule.min_amount = None
    rule.max_discount = None
    rule.applicable_roles = None
    rule.valid_from = None
    rule.valid_until = None
    rule.is_active = True
    rule.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    rule.updated_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for key, value in overrides.items():
        setattr(rule, key, value)
    return rule


@pytest.fixture
def percentage_rule() -> DiscountRule:
    """20% off, capped at 50."""
    return make_discount_rule(
        name="Twenty Off",
        type=DiscountType.PERCENTAGE,
        value=Decimal("20"),
        max_discount=Decimal("50"),
    )


@pytest.fixture
def fixed_rule() -> DiscountRule:
    """A flat 500 off."""
    return make_discount_rule(
        name="Flat 500",
        type=DiscountType.FIXED_AMOUNT,
        value=Decimal("500"),
    )


# ---------------------------------------------------------------------------
# Bundle fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_bundle() -> BundlePackage:
    """A quarterly bundle at 15% off 100000."""
    bundle = MagicMock(spec=BundlePackage)
    bundle.id = uuid.uuid4()
    bundle.name = "Paket 12 Sesi"
    bundle.description = "Twelve sessions"
    bundle.type = BundleType.QUARTERLY
    bundle.session_count = 12
    bundle.original_price = Decimal("100000")
    bundle.discount_percentage = Decimal("15")
    bundle.final_price = Decimal("85000.00")
    bundle.validity_days = 90
    bundle.features = []
    bundle.is_active = True
    bundle.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    bundle.updated_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return bundle
