"""
Pydantic v2 schemas for bundle packages.

``final_price`` is response-only: it is always derived server-side.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models import BundleType


class BundleCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    type: BundleType
    session_count: int = Field(ge=1)
    original_price: Decimal = Field(ge=0)
    discount_percentage: Decimal = Field(ge=0, le=100)
    validity_days: int = Field(ge=1)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True


class BundleUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    session_count: Optional[int] = Field(default=None, ge=1)
    original_price: Optional[Decimal] = Field(default=None, ge=0)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    validity_days: Optional[int] = Field(default=None, ge=1)
    features: Optional[list[str]] = None
    is_active: Optional[bool] = None


class BundleActiveRequest(BaseModel):
    is_active: bool


class BundleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    type: BundleType
    session_count: int
    original_price: Decimal
    discount_percentage: Decimal
    final_price: Decimal
    validity_days: int
    features: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime
