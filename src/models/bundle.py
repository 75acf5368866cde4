"""
SQLAlchemy model for bundle_packages.

``final_price`` is derived from ``original_price`` and
``discount_percentage``; it is written only by the bundle service.
"""

import enum
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Enum, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class BundleType(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SESSION_PACK = "session_pack"
    CUSTOM = "custom"


class BundlePackage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "bundle_packages"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[BundleType] = mapped_column(
        Enum(BundleType, name="bundle_type"),
        nullable=False,
        index=True,
    )

    session_count: Mapped[int] = mapped_column(Integer, nullable=False)
    original_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False
    )
    final_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)
    features: Mapped[Any] = mapped_column(JSONB, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<BundlePackage(id={self.id}, name={self.name}, "
            f"final={self.final_price}, active={self.is_active})>"
        )
