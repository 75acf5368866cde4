"""
Rule Store -- read/write access to pricing rules, discount rules and bundles.

The calculators only read from here; the bundle synchronizer is the one
writer (``insert_bundle`` / ``patch_bundle``).  Lookups that target a single
record return ``None`` when nothing matches and leave it to the calling
service to decide whether that is an error.

Several active pricing rules may share a category in storage.  The engine
needs exactly one, so ``get_active_rule_by_category`` resolves the conflict
deterministically: most recently updated first, then most recently created,
then by id.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import (
    BundlePackage,
    BundleType,
    DiscountRule,
    DiscountType,
    PricingCategory,
    PricingRule,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

async def get_active_rule_by_category(
    db: AsyncSession,
    category: PricingCategory,
) -> Optional[PricingRule]:
    """Return the single active pricing rule for a category, or None."""
    stmt = (
        select(PricingRule)
        .where(
            PricingRule.category == category,
            PricingRule.is_active == True,  # noqa: E712
        )
        .order_by(
            PricingRule.updated_at.desc(),
            PricingRule.created_at.desc(),
            PricingRule.id,
        )
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_pricing_rule(
    db: AsyncSession,
    rule_id: uuid.UUID,
) -> Optional[PricingRule]:
    result = await db.execute(select(PricingRule).where(PricingRule.id == rule_id))
    return result.scalar_one_or_none()


async def list_pricing_rules(
    db: AsyncSession,
    category: Optional[PricingCategory] = None,
    active_only: bool = False,
) -> Sequence[PricingRule]:
    stmt = select(PricingRule)
    if category is not None:
        stmt = stmt.where(PricingRule.category == category)
    if active_only:
        stmt = stmt.where(PricingRule.is_active == True)  # noqa: E712
    stmt = stmt.order_by(PricingRule.created_at, PricingRule.id)
    result = await db.execute(stmt)
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Discount rules
# ---------------------------------------------------------------------------

async def list_active_discount_rules(db: AsyncSession) -> Sequence[DiscountRule]:
    """All active discount rules in stable store order (creation, then id)."""
    return await list_discount_rules(db, active_only=True)


async def get_discount_rule(
    db: AsyncSession,
    rule_id: uuid.UUID,
) -> Optional[DiscountRule]:
    result = await db.execute(select(DiscountRule).where(DiscountRule.id == rule_id))
    return result.scalar_one_or_none()


async def list_discount_rules(
    db: AsyncSession,
    discount_type: Optional[DiscountType] = None,
    active_only: bool = False,
) -> Sequence[DiscountRule]:
    stmt = select(DiscountRule)
    if discount_type is not None:
        stmt = stmt.where(DiscountRule.type == discount_type)
    if active_only:
        stmt = stmt.where(DiscountRule.is_active == True)  # noqa: E712
    stmt = stmt.order_by(DiscountRule.created_at, DiscountRule.id)
    result = await db.execute(stmt)
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------

async def get_bundle(
    db: AsyncSession,
    bundle_id: uuid.UUID,
) -> Optional[BundlePackage]:
    result = await db.execute(
        select(BundlePackage).where(BundlePackage.id == bundle_id)
    )
    return result.scalar_one_or_none()


async def list_bundles(
    db: AsyncSession,
    bundle_type: Optional[BundleType] = None,
    active_only: bool = False,
) -> Sequence[BundlePackage]:
    stmt = select(BundlePackage)
    if bundle_type is not None:
        stmt = stmt.where(BundlePackage.type == bundle_type)
    if active_only:
        stmt = stmt.where(BundlePackage.is_active == True)  # noqa: E712
    stmt = stmt.order_by(BundlePackage.created_at, BundlePackage.id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def insert_bundle(db: AsyncSession, **data: Any) -> BundlePackage:
    """Insert a bundle row and flush so the generated id is available."""
    bundle = BundlePackage(**data)
    db.add(bundle)
    await db.flush()
    return bundle


async def patch_bundle(
    db: AsyncSession,
    bundle: BundlePackage,
    changes: dict[str, Any],
) -> BundlePackage:
    """Apply ``changes`` to an already-loaded bundle and flush."""
    for key, value in changes.items():
        setattr(bundle, key, value)
    bundle.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return bundle
