"""
Session Price Calculator.

Turns the active ``session_pricing`` rule into a price for a requested
number of mentoring sessions:

- Total = base price x session count
- Volume tier: the qualifying tier with the largest session threshold
  (not necessarily the largest discount)
- Special rates, compounding against the running total in a fixed order:
  new student -> loyalty -> referral
- Mentor and platform earnings are percentages of the final discounted
  price, each rounded half-up on its own.  They are not reconciled with the
  rounded total.

The rule is read once per call and frozen into a ``PricingRuleSnapshot``;
all arithmetic after that happens in ``quote_session_price`` on Decimals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.models import PricingCategory, PricingRule
from src.services import ruleStore

logger = logging.getLogger(__name__)


HUNDRED = Decimal("100")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class NoActiveRuleError(Exception):
    """Raised when a category has no active pricing rule."""

    def __init__(self, category: PricingCategory) -> None:
        self.category = category
        super().__init__(f"No active pricing rule found for category '{category.value}'.")


# ---------------------------------------------------------------------------
# Snapshot & result DTOs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiscountTier:
    """A volume discount unlocked at ``session_count`` sessions."""
    session_count: int
    discount_percentage: Decimal


@dataclass(frozen=True)
class SpecialRates:
    """Audience discounts, in percent."""
    new_student_discount: Decimal
    loyalty_discount: Decimal
    referral_discount: Decimal


@dataclass(frozen=True)
class PricingRuleSnapshot:
    """Immutable copy of the pricing rule a calculation runs against."""
    rule_name: str
    base_price: Decimal
    mentor_share_percent: Decimal
    platform_fee_percent: Decimal
    discount_tiers: tuple[DiscountTier, ...]
    special_rates: Optional[SpecialRates] = None


@dataclass
class SessionPriceQuote:
    """Computed price for a session purchase."""
    base_price: Decimal
    total_price: int
    mentor_earnings: int
    platform_earnings: int
    discount_applied: Decimal
    tier_used: Optional[DiscountTier]
    currency: str = "IDR"


# ---------------------------------------------------------------------------
# Core service methods
# ---------------------------------------------------------------------------

async def calculate_session_price(
    db: AsyncSession,
    session_count: int,
    is_new_student: bool = False,
    is_loyal_customer: bool = False,
    is_referral: bool = False,
) -> SessionPriceQuote:
    """Price ``session_count`` sessions against the active session pricing rule.

    Args:
        db: Async database session.
        session_count: Number of sessions being bought (>= 1).
        is_new_student: Apply the new-student special rate.
        is_loyal_customer: Apply the loyalty special rate.
        is_referral: Apply the referral special rate.

    Returns:
        SessionPriceQuote with the rounded total and the revenue split.

    Raises:
        ValueError: If session_count is below 1.
        NoActiveRuleError: If no active session_pricing rule exists.
    """
    if session_count < 1:
        raise ValueError(f"session_count must be at least 1 (got {session_count})")

    rule = await ruleStore.get_active_rule_by_category(
        db, PricingCategory.SESSION_PRICING
    )
    if rule is None:
        raise NoActiveRuleError(PricingCategory.SESSION_PRICING)

    snapshot = snapshot_rule(rule)
    quote = quote_session_price(
        snapshot,
        session_count,
        is_new_student=is_new_student,
        is_loyal_customer=is_loyal_customer,
        is_referral=is_referral,
    )

    logger.debug(
        "Session price for %d session(s) under rule '%s': total=%d mentor=%d platform=%d tier=%s",
        session_count,
        snapshot.rule_name,
        quote.total_price,
        quote.mentor_earnings,
        quote.platform_earnings,
        quote.tier_used.session_count if quote.tier_used else None,
    )
    return quote


async def get_current_pricing(db: AsyncSession) -> dict[PricingCategory, PricingRule]:
    """Return the active rule for every category that has one."""
    current: dict[PricingCategory, PricingRule] = {}
    for category in PricingCategory:
        rule = await ruleStore.get_active_rule_by_category(db, category)
        if rule is not None:
            current[category] = rule
    return current


def quote_session_price(
    snapshot: PricingRuleSnapshot,
    session_count: int,
    is_new_student: bool = False,
    is_loyal_customer: bool = False,
    is_referral: bool = False,
) -> SessionPriceQuote:
    """Pure price computation over a rule snapshot."""
    total = snapshot.base_price * session_count

    tier = select_tier(snapshot.discount_tiers, session_count)
    if tier is not None:
        total -= total * tier.discount_percentage / HUNDRED

    if snapshot.special_rates is not None:
        total = _apply_special_rates(
            total,
            snapshot.special_rates,
            is_new_student=is_new_student,
            is_loyal_customer=is_loyal_customer,
            is_referral=is_referral,
        )

    mentor_earnings = round_half_up(total * snapshot.mentor_share_percent / HUNDRED)
    platform_earnings = round_half_up(total * snapshot.platform_fee_percent / HUNDRED)

    return SessionPriceQuote(
        base_price=snapshot.base_price,
        total_price=round_half_up(total),
        mentor_earnings=mentor_earnings,
        platform_earnings=platform_earnings,
        discount_applied=tier.discount_percentage if tier else Decimal("0"),
        tier_used=tier,
        currency=settings.currency,
    )


def select_tier(
    tiers: Iterable[DiscountTier],
    session_count: int,
) -> Optional[DiscountTier]:
    """Pick the qualifying tier with the largest session threshold.

    Tiers may arrive in any order.  Returns None when no tier qualifies.
    """
    qualifying = [t for t in tiers if t.session_count <= session_count]
    if not qualifying:
        return None
    return max(qualifying, key=lambda t: t.session_count)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole currency unit, halves going up."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def snapshot_rule(rule: PricingRule) -> PricingRuleSnapshot:
    """Freeze an ORM pricing rule into a ``PricingRuleSnapshot``."""
    tiers = tuple(
        DiscountTier(
            session_count=int(t["session_count"]),
            discount_percentage=_to_decimal(t["discount_percentage"]),
        )
        for t in (rule.discount_tiers or [])
    )

    special_rates: Optional[SpecialRates] = None
    if rule.special_rates:
        special_rates = SpecialRates(
            new_student_discount=_to_decimal(rule.special_rates.get("new_student_discount", 0)),
            loyalty_discount=_to_decimal(rule.special_rates.get("loyalty_discount", 0)),
            referral_discount=_to_decimal(rule.special_rates.get("referral_discount", 0)),
        )

    return PricingRuleSnapshot(
        rule_name=rule.rule_name,
        base_price=_to_decimal(rule.base_price),
        mentor_share_percent=_to_decimal(rule.mentor_share_percent),
        platform_fee_percent=_to_decimal(rule.platform_fee_percent),
        discount_tiers=tiers,
        special_rates=special_rates,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _apply_special_rates(
    total: Decimal,
    rates: SpecialRates,
    is_new_student: bool,
    is_loyal_customer: bool,
    is_referral: bool,
) -> Decimal:
    """Apply the audience discounts in order: new student, loyalty, referral.

    Each discount is taken from the already-discounted running total, so
    two 10% rates leave 81% of the price, not 80%.
    """
    if is_new_student:
        total -= total * rates.new_student_discount / HUNDRED
    if is_loyal_customer:
        total -= total * rates.loyalty_discount / HUNDRED
    if is_referral:
        total -= total * rates.referral_discount / HUNDRED
    return total


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
