"""
Pydantic v2 schemas for the session pricing API.

Covers:
- Session price quotes
- Pricing rule administration (create / update / read)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models import PricingCategory


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

class DiscountTierIn(BaseModel):
    session_count: int = Field(ge=1, description="Sessions needed to unlock the tier")
    discount_percentage: Decimal = Field(ge=0, le=100)


class SpecialRatesIn(BaseModel):
    new_student_discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    loyalty_discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    referral_discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class DiscountTierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_count: int
    discount_percentage: Decimal


class SpecialRatesOut(BaseModel):
    new_student_discount: Decimal
    loyalty_discount: Decimal
    referral_discount: Decimal


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class PricingRuleCreateRequest(BaseModel):
    """Body for creating a pricing rule."""

    rule_name: str = Field(min_length=1, max_length=200)
    category: PricingCategory
    base_price: Decimal = Field(ge=0, description="Price per single session")
    mentor_share_percent: Decimal = Field(ge=0, le=100)
    platform_fee_percent: Decimal = Field(ge=0, le=100)
    discount_tiers: list[DiscountTierIn] = Field(default_factory=list)
    special_rates: Optional[SpecialRatesIn] = None
    is_active: bool = True
    effective_date: Optional[datetime] = None


class PricingRuleUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    rule_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[PricingCategory] = None
    base_price: Optional[Decimal] = Field(default=None, ge=0)
    mentor_share_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    platform_fee_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount_tiers: Optional[list[DiscountTierIn]] = None
    special_rates: Optional[SpecialRatesIn] = None
    is_active: Optional[bool] = None
    effective_date: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class SessionPriceOut(BaseModel):
    """Computed price for a number of sessions."""

    model_config = ConfigDict(from_attributes=True)

    base_price: Decimal
    total_price: int = Field(description="Discounted total, rounded half-up")
    mentor_earnings: int
    platform_earnings: int
    discount_applied: Decimal = Field(
        description="Tier discount percentage applied (0 if no tier qualified)",
    )
    tier_used: Optional[DiscountTierOut] = None
    currency: str


class PricingRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rule_name: str
    category: PricingCategory
    base_price: Decimal
    mentor_share_percent: Decimal
    platform_fee_percent: Decimal
    discount_tiers: list[DiscountTierOut]
    special_rates: Optional[SpecialRatesOut] = None
    is_active: bool
    effective_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
