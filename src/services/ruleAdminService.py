"""
Rule administration -- create, update, delete and toggle pricing rules and
discount rules.

Writes are validated against the merged record (existing values overlaid
with the incoming changes), so a partial update cannot leave a rule in a
state a full create would have rejected.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.models import DiscountRule, DiscountType, PricingCategory, PricingRule
from src.services import ruleStore

logger = logging.getLogger(__name__)


PRICING_RULE_FIELDS = (
    "rule_name",
    "category",
    "base_price",
    "mentor_share_percent",
    "platform_fee_percent",
    "discount_tiers",
    "special_rates",
    "is_active",
    "effective_date",
)

DISCOUNT_RULE_FIELDS = (
    "name",
    "description",
    "type",
    "value",
    "min_sessions",
    "max_sessions",
    "min_amount",
    "max_discount",
    "applicable_roles",
    "valid_from",
    "valid_until",
    "is_active",
)

SPECIAL_RATE_KEYS = ("new_student_discount", "loyalty_discount", "referral_discount")

# Columns an update may clear with an explicit null.  A null for any other
# field means "keep the stored value".
NULLABLE_PRICING_FIELDS = frozenset({"special_rates", "effective_date"})
NULLABLE_DISCOUNT_FIELDS = frozenset({
    "min_sessions",
    "max_sessions",
    "min_amount",
    "max_discount",
    "applicable_roles",
    "valid_from",
    "valid_until",
})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PricingRuleNotFoundError(Exception):
    """Raised when a pricing rule cannot be found by ID."""

    def __init__(self, rule_id: uuid.UUID) -> None:
        self.rule_id = rule_id
        super().__init__(f"Pricing rule with id '{rule_id}' not found.")


class DiscountRuleNotFoundError(Exception):
    """Raised when a discount rule cannot be found by ID."""

    def __init__(self, rule_id: uuid.UUID) -> None:
        self.rule_id = rule_id
        super().__init__(f"Discount rule with id '{rule_id}' not found.")


class RuleValidationError(Exception):
    """Raised when rule data is internally inconsistent."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


class PricingRuleValidationError(RuleValidationError):
    """Raised when a pricing rule fails validation."""


class DiscountRuleValidationError(RuleValidationError):
    """Raised when a discount rule fails validation."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_pricing_rule(data: dict[str, Any]) -> None:
    """Validate a full pricing rule record.

    Raises:
        PricingRuleValidationError: listing every problem found.
    """
    errors: list[str] = []

    if Decimal(str(data["base_price"])) < 0:
        errors.append("base_price must not be negative")

    mentor = Decimal(str(data["mentor_share_percent"]))
    platform = Decimal(str(data["platform_fee_percent"]))
    for label, pct in (("mentor_share_percent", mentor), ("platform_fee_percent", platform)):
        if not _is_percentage(pct):
            errors.append(f"{label} must be between 0 and 100")
    if settings.enforce_share_consistency and mentor + platform > 100:
        errors.append(
            f"mentor_share_percent + platform_fee_percent exceeds 100 ({mentor + platform})"
        )

    seen: set[int] = set()
    for tier in data.get("discount_tiers") or []:
        count = int(tier["session_count"])
        if count < 1:
            errors.append(f"tier session_count must be at least 1 (got {count})")
        if count in seen:
            errors.append(f"duplicate tier for session_count {count}")
        seen.add(count)
        if not _is_percentage(Decimal(str(tier["discount_percentage"]))):
            errors.append(f"tier discount_percentage for {count} sessions must be between 0 and 100")

    rates = data.get("special_rates")
    if rates:
        for key in SPECIAL_RATE_KEYS:
            if not _is_percentage(Decimal(str(rates.get(key, 0)))):
                errors.append(f"special rate {key} must be between 0 and 100")

    if errors:
        raise PricingRuleValidationError(errors)


def validate_discount_rule(data: dict[str, Any]) -> None:
    errors: list[str] = []

    value = Decimal(str(data["value"]))
    if value < 0:
        errors.append("value must not be negative")
    if data["type"] == DiscountType.PERCENTAGE and value > 100:
        errors.append("percentage discount value must not exceed 100")

    min_sessions = data.get("min_sessions")
    max_sessions = data.get("max_sessions")
    if min_sessions and max_sessions and min_sessions > max_sessions:
        errors.append("min_sessions must not exceed max_sessions")

    valid_from = data.get("valid_from")
    valid_until = data.get("valid_until")
    if valid_from is not None and valid_until is not None and _as_utc(valid_from) > _as_utc(valid_until):
        errors.append("valid_from must not be after valid_until")

    if errors:
        raise DiscountRuleValidationError(errors)


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

async def create_pricing_rule(db: AsyncSession, **fields: Any) -> PricingRule:
    data = _normalize_pricing_fields(fields)
    validate_pricing_rule(data)

    rule = PricingRule(**data)
    db.add(rule)
    await db.flush()
    logger.info(
        "Pricing rule created: id=%s name=%s category=%s active=%s",
        rule.id,
        rule.rule_name,
        rule.category.value,
        rule.is_active,
    )
    return rule


async def update_pricing_rule(
    db: AsyncSession,
    rule_id: uuid.UUID,
    **changes: Any,
) -> PricingRule:
    rule = await get_pricing_rule(db, rule_id)
    changes = _normalize_pricing_fields(_drop_nulls(changes, NULLABLE_PRICING_FIELDS))

    merged = {name: getattr(rule, name) for name in PRICING_RULE_FIELDS}
    merged.update(changes)
    validate_pricing_rule(merged)

    _apply_changes(rule, changes)
    await db.flush()
    logger.info("Pricing rule updated: id=%s fields=%s", rule_id, sorted(changes))
    return rule


async def delete_pricing_rule(db: AsyncSession, rule_id: uuid.UUID) -> None:
    rule = await get_pricing_rule(db, rule_id)
    await db.delete(rule)
    await db.flush()
    logger.info("Pricing rule deleted: id=%s", rule_id)


async def toggle_pricing_rule(db: AsyncSession, rule_id: uuid.UUID) -> PricingRule:
    rule = await get_pricing_rule(db, rule_id)
    _apply_changes(rule, {"is_active": not rule.is_active})
    await db.flush()
    logger.info("Pricing rule %s toggled to active=%s", rule_id, rule.is_active)
    return rule


async def get_pricing_rule(db: AsyncSession, rule_id: uuid.UUID) -> PricingRule:
    rule = await ruleStore.get_pricing_rule(db, rule_id)
    if rule is None:
        raise PricingRuleNotFoundError(rule_id)
    return rule


async def list_pricing_rules(
    db: AsyncSession,
    category: Optional[PricingCategory] = None,
    active_only: bool = False,
) -> Sequence[PricingRule]:
    return await ruleStore.list_pricing_rules(db, category=category, active_only=active_only)


# ---------------------------------------------------------------------------
# Discount rules
# ---------------------------------------------------------------------------

async def create_discount_rule(db: AsyncSession, **fields: Any) -> DiscountRule:
    data = {k: v for k, v in fields.items() if k in DISCOUNT_RULE_FIELDS}
    data.setdefault("description", "")
    validate_discount_rule(data)

    rule = DiscountRule(**data)
    db.add(rule)
    await db.flush()
    logger.info(
        "Discount rule created: id=%s name=%s type=%s value=%s",
        rule.id,
        rule.name,
        rule.type.value,
        rule.value,
    )
    return rule


async def update_discount_rule(
    db: AsyncSession,
    rule_id: uuid.UUID,
    **changes: Any,
) -> DiscountRule:
    rule = await get_discount_rule(db, rule_id)
    changes = {
        k: v
        for k, v in _drop_nulls(changes, NULLABLE_DISCOUNT_FIELDS).items()
        if k in DISCOUNT_RULE_FIELDS
    }

    merged = {name: getattr(rule, name) for name in DISCOUNT_RULE_FIELDS}
    merged.update(changes)
    validate_discount_rule(merged)

    _apply_changes(rule, changes)
    await db.flush()
    logger.info("Discount rule updated: id=%s fields=%s", rule_id, sorted(changes))
    return rule


async def delete_discount_rule(db: AsyncSession, rule_id: uuid.UUID) -> None:
    rule = await get_discount_rule(db, rule_id)
    await db.delete(rule)
    await db.flush()
    logger.info("Discount rule deleted: id=%s", rule_id)


async def toggle_discount_rule(db: AsyncSession, rule_id: uuid.UUID) -> DiscountRule:
    rule = await get_discount_rule(db, rule_id)
    _apply_changes(rule, {"is_active": not rule.is_active})
    await db.flush()
    logger.info("Discount rule %s toggled to active=%s", rule_id, rule.is_active)
    return rule


async def get_discount_rule(db: AsyncSession, rule_id: uuid.UUID) -> DiscountRule:
    rule = await ruleStore.get_discount_rule(db, rule_id)
    if rule is None:
        raise DiscountRuleNotFoundError(rule_id)
    return rule


async def list_discount_rules(
    db: AsyncSession,
    discount_type: Optional[DiscountType] = None,
    active_only: bool = False,
) -> Sequence[DiscountRule]:
    return await ruleStore.list_discount_rules(
        db, discount_type=discount_type, active_only=active_only
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _normalize_pricing_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Keep known columns and store tiers/rates as plain JSON values."""
    data = {k: v for k, v in fields.items() if k in PRICING_RULE_FIELDS}
    if "discount_tiers" in data:
        data["discount_tiers"] = _tiers_to_json(data["discount_tiers"] or [])
    if data.get("special_rates"):
        data["special_rates"] = {
            key: _json_number(data["special_rates"].get(key, 0)) for key in SPECIAL_RATE_KEYS
        }
    return data


def _drop_nulls(changes: dict[str, Any], nullable: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in changes.items() if v is not None or k in nullable}


def _tiers_to_json(tiers: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "session_count": int(t["session_count"]),
            "discount_percentage": _json_number(t["discount_percentage"]),
        }
        for t in tiers
    ]


def _json_number(value: Any) -> str:
    # Decimals are kept as strings in JSON columns to avoid float drift.
    return str(Decimal(str(value)))


def _apply_changes(rule: Any, changes: dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(rule, key, value)
    rule.updated_at = datetime.now(timezone.utc)


def _is_percentage(value: Decimal) -> bool:
    return Decimal("0") <= value <= Decimal("100")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
