"""
Discount Rule Matcher & Applier.

Promotional discount rules are independent of the session pricing rule and
many may be active at once.  The matcher returns every eligible rule in
store order; picking a winner among them is up to the caller.

Eligibility (all conjunctive, inclusive bounds, checked after is_active):
- min_sessions / max_sessions against the requested session count
- min_amount against the amount being discounted (skipped if no amount)
- applicable_roles against the caller's role (skipped if no role)
- valid_from / valid_until against the current time

Numeric bounds that are unset or zero impose no constraint.

Applying a rule never raises for a missing or inactive rule: the result is
a zero discount so checkout is never blocked by a stale rule id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models import DiscountRule, DiscountType
from src.services import ruleStore

logger = logging.getLogger(__name__)


HUNDRED = Decimal("100")


@dataclass
class DiscountResult:
    """Outcome of applying one discount rule to an amount."""
    discount_amount: Decimal
    final_amount: Decimal
    rule_name: Optional[str] = None
    rule_type: Optional[str] = None


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def is_rule_applicable(
    rule: DiscountRule,
    session_count: int,
    amount: Optional[Decimal] = None,
    user_role: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Check a single rule against a request."""
    if not rule.is_active:
        return False

    if rule.min_sessions and session_count < rule.min_sessions:
        return False
    if rule.max_sessions and session_count > rule.max_sessions:
        return False

    if rule.min_amount and amount and Decimal(str(amount)) < rule.min_amount:
        return False

    if rule.applicable_roles is not None and user_role:
        if user_role not in rule.applicable_roles:
            return False

    current = _as_utc(now or datetime.now(timezone.utc))
    if rule.valid_from is not None and current < _as_utc(rule.valid_from):
        return False
    if rule.valid_until is not None and current > _as_utc(rule.valid_until):
        return False

    return True


def iter_applicable_rules(
    rules: Iterable[DiscountRule],
    session_count: int,
    amount: Optional[Decimal] = None,
    user_role: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Iterator[DiscountRule]:
    """Lazily yield the rules that match, preserving input order."""
    current = now or datetime.now(timezone.utc)
    for rule in rules:
        if is_rule_applicable(rule, session_count, amount, user_role, current):
            yield rule


async def find_applicable_rules(
    db: AsyncSession,
    session_count: int,
    amount: Optional[Decimal] = None,
    user_role: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[DiscountRule]:
    """Return every active discount rule eligible for the request.

    Rules are read fresh on each call; nothing is cached between calls.

    Args:
        db: Async database session.
        session_count: Number of sessions in the request.
        amount: Amount the discount would apply to, if known.
        user_role: Role of the buyer, if known.
        now: Evaluation time (defaults to the current UTC time).

    Returns:
        Matching rules in store order.
    """
    rules = await ruleStore.list_active_discount_rules(db)
    matches = list(iter_applicable_rules(rules, session_count, amount, user_role, now))
    logger.debug(
        "Discount matching: sessions=%d amount=%s role=%s -> %d of %d rule(s)",
        session_count,
        amount,
        user_role,
        len(matches),
        len(rules),
    )
    return matches


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def apply_discount(
    rule: Optional[DiscountRule],
    original_amount: Decimal,
    session_count: int,
) -> DiscountResult:
    """Compute the discount a rule gives on ``original_amount``.

    ``session_count`` is accepted for session-scaled rules but does not
    enter the current formulas.
    """
    original = Decimal(str(original_amount))

    if rule is None or not rule.is_active:
        return DiscountResult(discount_amount=Decimal("0"), final_amount=original)

    if rule.type == DiscountType.PERCENTAGE:
        discount = original * rule.value / HUNDRED
    elif rule.type == DiscountType.FIXED_AMOUNT:
        discount = Decimal(rule.value)
    else:
        raise ValueError(f"Unsupported discount type: {rule.type!r}")

    if rule.max_discount and discount > rule.max_discount:
        discount = Decimal(rule.max_discount)

    final = max(Decimal("0"), original - discount)

    return DiscountResult(
        discount_amount=discount,
        final_amount=final,
        rule_name=rule.name,
        rule_type=rule.type.value,
    )


async def calculate_discount(
    db: AsyncSession,
    rule_id: uuid.UUID,
    original_amount: Decimal,
    session_count: int,
) -> DiscountResult:
    """Load a discount rule by id and apply it.

    A missing or inactive rule yields a zero discount instead of an error.
    """
    rule = await ruleStore.get_discount_rule(db, rule_id)
    if rule is None or not rule.is_active:
        logger.info(
            "Discount rule %s %s; no discount applied",
            rule_id,
            "not found" if rule is None else "is inactive",
        )
    return apply_discount(rule, original_amount, session_count)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _as_utc(value: Any) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
