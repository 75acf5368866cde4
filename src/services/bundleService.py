"""
Bundle Price Synchronizer.

Keeps ``BundlePackage.final_price`` derived from ``original_price`` and
``discount_percentage``:

    final_price = original_price x (1 - discount_percentage / 100)

The price is computed at insert time and recomputed on every update from
the merged (new-or-existing) inputs, so a partial update that only touches
one of the two still re-derives the price from the other's stored value.
Callers can never set ``final_price`` directly.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.models import BundlePackage, BundleType
from src.services import ruleStore

logger = logging.getLogger(__name__)


PRICE_QUANTUM = Decimal("0.01")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class BundleNotFoundError(Exception):
    """Raised when a bundle package cannot be found by ID."""

    def __init__(self, bundle_id: uuid.UUID) -> None:
        self.bundle_id = bundle_id
        super().__init__(f"Bundle package with id '{bundle_id}' not found.")


# ---------------------------------------------------------------------------
# Price derivation
# ---------------------------------------------------------------------------

def compute_final_price(original_price: Decimal, discount_percentage: Decimal) -> Decimal:
    """Apply the bundle discount to the original price.

    The result is rounded half-up to the 0.01 scale of the ``final_price``
    column so the value returned to the caller is exactly the one stored.
    """
    original = Decimal(str(original_price))
    pct = Decimal(str(discount_percentage))
    final = original - original * pct / Decimal("100")
    return final.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_bundle(
    db: AsyncSession,
    name: str,
    type: BundleType,
    session_count: int,
    original_price: Decimal,
    discount_percentage: Decimal,
    validity_days: int,
    description: str = "",
    features: Optional[list[str]] = None,
    is_active: bool = True,
) -> BundlePackage:
    """Create a bundle package with its derived final price.

    Args:
        db: Async database session.
        name: Display name.
        type: Bundle type (monthly, quarterly, session_pack, custom).
        session_count: Sessions included in the bundle.
        original_price: Price before the bundle discount.
        discount_percentage: Bundle discount in percent.
        validity_days: Days the bundle stays usable after purchase.
        description: Free-form description.
        features: Marketing bullet points.
        is_active: Whether the bundle is offered (default True).

    Returns:
        The newly-created BundlePackage.
    """
    final_price = compute_final_price(original_price, discount_percentage)
    bundle = await ruleStore.insert_bundle(
        db,
        name=name,
        description=description,
        type=type,
        session_count=session_count,
        original_price=original_price,
        discount_percentage=discount_percentage,
        final_price=final_price,
        validity_days=validity_days,
        features=list(features or []),
        is_active=is_active,
    )
    logger.info(
        "Bundle created: id=%s name=%s original=%s discount=%s%% final=%s",
        bundle.id,
        name,
        original_price,
        discount_percentage,
        final_price,
    )
    return bundle


async def update_bundle(
    db: AsyncSession,
    bundle_id: uuid.UUID,
    **changes: Any,
) -> BundlePackage:
    """Patch a bundle and re-derive its final price.

    Raises:
        BundleNotFoundError: If the bundle does not exist.
    """
    bundle = await _get_bundle_or_raise(db, bundle_id)

    # Every bundle column is required, so a null means "keep the stored value"
    changes = {k: v for k, v in changes.items() if v is not None and k != "final_price"}
    original_price = changes.get("original_price", bundle.original_price)
    discount_percentage = changes.get("discount_percentage", bundle.discount_percentage)
    changes["final_price"] = compute_final_price(original_price, discount_percentage)

    bundle = await ruleStore.patch_bundle(db, bundle, changes)
    logger.info(
        "Bundle updated: id=%s fields=%s final=%s",
        bundle_id,
        sorted(changes),
        bundle.final_price,
    )
    return bundle


async def remove_bundle(db: AsyncSession, bundle_id: uuid.UUID) -> None:
    bundle = await _get_bundle_or_raise(db, bundle_id)
    await db.delete(bundle)
    await db.flush()
    logger.info("Bundle deleted: id=%s", bundle_id)


async def set_bundle_active(
    db: AsyncSession,
    bundle_id: uuid.UUID,
    is_active: bool,
) -> BundlePackage:
    bundle = await _get_bundle_or_raise(db, bundle_id)
    bundle = await ruleStore.patch_bundle(db, bundle, {"is_active": is_active})
    logger.info("Bundle %s set active=%s", bundle_id, is_active)
    return bundle


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_bundle(db: AsyncSession, bundle_id: uuid.UUID) -> BundlePackage:
    return await _get_bundle_or_raise(db, bundle_id)


async def list_bundles(
    db: AsyncSession,
    bundle_type: Optional[BundleType] = None,
    active_only: bool = False,
) -> Sequence[BundlePackage]:
    return await ruleStore.list_bundles(db, bundle_type=bundle_type, active_only=active_only)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _get_bundle_or_raise(
    db: AsyncSession,
    bundle_id: uuid.UUID,
) -> BundlePackage:
    bundle = await ruleStore.get_bundle(db, bundle_id)
    if bundle is None:
        raise BundleNotFoundError(bundle_id)
    return bundle
