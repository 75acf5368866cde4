"""
Pydantic v2 schemas for discount rules and discount calculation.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models import DiscountType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class DiscountRuleCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    type: DiscountType
    value: Decimal = Field(ge=0)
    min_sessions: Optional[int] = Field(default=None, ge=0)
    max_sessions: Optional[int] = Field(default=None, ge=0)
    min_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    applicable_roles: Optional[list[str]] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True


class DiscountRuleUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = Field(default=None, ge=0)
    min_sessions: Optional[int] = Field(default=None, ge=0)
    max_sessions: Optional[int] = Field(default=None, ge=0)
    min_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    applicable_roles: Optional[list[str]] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None


class DiscountCalculationRequest(BaseModel):
    original_amount: Decimal = Field(ge=0)
    session_count: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class DiscountRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    type: DiscountType
    value: Decimal
    min_sessions: Optional[int] = None
    max_sessions: Optional[int] = None
    min_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    applicable_roles: Optional[list[str]] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DiscountResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    discount_amount: Decimal
    final_amount: Decimal
    rule_name: Optional[str] = None
    rule_type: Optional[str] = None
