"""
Mentoring Pricing SQLAlchemy Models
===================================

Central import point for all ORM models. Import ``Base`` from here for
``create_all`` in tests and for the seed script.

Usage::

    from src.models import Base, PricingRule, DiscountRule, BundlePackage
"""

# -- Base & Mixins --
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# -- Pricing & discount rules --
from .pricing import DiscountRule, DiscountType, PricingCategory, PricingRule

# -- Bundles --
from .bundle import BundlePackage, BundleType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Pricing
    "PricingRule",
    "PricingCategory",
    "DiscountRule",
    "DiscountType",
    # Bundles
    "BundlePackage",
    "BundleType",
]
