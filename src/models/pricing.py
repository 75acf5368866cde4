"""
SQLAlchemy models for pricing_rules and discount_rules.

A pricing rule holds the per-category session price configuration (base
price, revenue split, volume tiers and special audience rates).  Discount
rules are independent promotional rules with their own eligibility
predicates and no link back to a pricing rule.
"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class PricingCategory(str, enum.Enum):
    SESSION_PRICING = "session_pricing"
    BUNDLE_DISCOUNT = "bundle_discount"
    MENTOR_COMMISSION = "mentor_commission"
    PLATFORM_FEE = "platform_fee"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class PricingRule(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "pricing_rules"

    rule_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[PricingCategory] = mapped_column(
        Enum(PricingCategory, name="pricing_category"),
        nullable=False,
        index=True,
    )

    # Price per single session before any discount
    base_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Revenue split, both expressed against the final discounted price
    mentor_share_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False
    )
    platform_fee_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False
    )

    # [{"session_count": 5, "discount_percentage": 10}, ...] in any order
    discount_tiers: Mapped[Any] = mapped_column(
        JSONB, nullable=False, default=list
    )

    # {"new_student_discount": .., "loyalty_discount": .., "referral_discount": ..}
    special_rates: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True
    )
    # Advisory only; the calculator filters on is_active
    effective_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<PricingRule(id={self.id}, name={self.rule_name}, "
            f"category={self.category}, active={self.is_active})>"
        )


class DiscountRule(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "discount_rules"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType, name="discount_type"),
        nullable=False,
        index=True,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Eligibility predicates (all optional; NULL = no constraint)
    min_sessions: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_sessions: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    min_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2), nullable=True
    )
    applicable_roles: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)
    valid_from: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    valid_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Cap on the absolute discount amount
    max_discount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<DiscountRule(id={self.id}, name={self.name}, "
            f"type={self.type}, value={self.value}, active={self.is_active})>"
        )
