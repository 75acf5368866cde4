"""
Session Pricing API routes
==========================

Endpoints for session price quotes and pricing rule administration.

  GET    /api/v1/pricing/session-price            -- Quote a number of sessions
  GET    /api/v1/pricing/current                  -- Active rule per category
  GET    /api/v1/pricing/rules                    -- List pricing rules
  POST   /api/v1/pricing/rules                    -- Create a pricing rule
  GET    /api/v1/pricing/rules/{rule_id}          -- Get a pricing rule
  PATCH  /api/v1/pricing/rules/{rule_id}          -- Update a pricing rule
  DELETE /api/v1/pricing/rules/{rule_id}          -- Delete a pricing rule
  POST   /api/v1/pricing/rules/{rule_id}/toggle   -- Flip is_active
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.api.deps import DBSession
from src.api.schemas.pricing import (
    DiscountTierOut,
    PricingRuleCreateRequest,
    PricingRuleOut,
    PricingRuleUpdateRequest,
    SessionPriceOut,
)
from src.models import PricingCategory
from src.services import pricingEngine, ruleAdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


# ---------------------------------------------------------------------------
# GET /api/v1/pricing/session-price
# ---------------------------------------------------------------------------

@router.get(
    "/session-price",
    response_model=SessionPriceOut,
    summary="Quote a number of mentoring sessions",
    description=(
        "Prices the requested number of sessions against the active "
        "session_pricing rule.  The best qualifying volume tier is applied "
        "first, then the new-student, loyalty and referral rates in that "
        "order, each against the already-discounted total."
    ),
)
async def get_session_price(
    db: DBSession,
    session_count: int = Query(ge=1, description="Number of sessions"),
    is_new_student: bool = Query(default=False),
    is_loyal_customer: bool = Query(default=False),
    is_referral: bool = Query(default=False),
) -> SessionPriceOut:
    try:
        quote = await pricingEngine.calculate_session_price(
            db,
            session_count=session_count,
            is_new_student=is_new_student,
            is_loyal_customer=is_loyal_customer,
            is_referral=is_referral,
        )
    except pricingEngine.NoActiveRuleError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )

    tier_out = None
    if quote.tier_used is not None:
        tier_out = DiscountTierOut(
            session_count=quote.tier_used.session_count,
            discount_percentage=quote.tier_used.discount_percentage,
        )

    return SessionPriceOut(
        base_price=quote.base_price,
        total_price=quote.total_price,
        mentor_earnings=quote.mentor_earnings,
        platform_earnings=quote.platform_earnings,
        discount_applied=quote.discount_applied,
        tier_used=tier_out,
        currency=quote.currency,
    )


# ---------------------------------------------------------------------------
# GET /api/v1/pricing/current
# ---------------------------------------------------------------------------

@router.get(
    "/current",
    response_model=dict[str, PricingRuleOut],
    summary="Active pricing rule per category",
)
async def get_current_pricing(db: DBSession) -> dict[str, PricingRuleOut]:
    current = await pricingEngine.get_current_pricing(db)
    return {
        category.value: PricingRuleOut.model_validate(rule)
        for category, rule in current.items()
    }


# ---------------------------------------------------------------------------
# Pricing rule administration
# ---------------------------------------------------------------------------

@router.get(
    "/rules",
    response_model=list[PricingRuleOut],
    summary="List pricing rules",
)
async def list_pricing_rules(
    db: DBSession,
    category: Optional[PricingCategory] = Query(default=None),
    active_only: bool = Query(default=False),
) -> list[PricingRuleOut]:
    rules = await ruleAdminService.list_pricing_rules(
        db, category=category, active_only=active_only
    )
    return [PricingRuleOut.model_validate(r) for r in rules]


@router.post(
    "/rules",
    response_model=PricingRuleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pricing rule",
)
async def create_pricing_rule(
    db: DBSession,
    body: PricingRuleCreateRequest,
) -> PricingRuleOut:
    try:
        rule = await ruleAdminService.create_pricing_rule(db, **body.model_dump())
    except ruleAdminService.PricingRuleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        )
    await db.refresh(rule)
    return PricingRuleOut.model_validate(rule)


@router.get(
    "/rules/{rule_id}",
    response_model=PricingRuleOut,
    summary="Get a pricing rule",
)
async def get_pricing_rule(db: DBSession, rule_id: uuid.UUID) -> PricingRuleOut:
    try:
        rule = await ruleAdminService.get_pricing_rule(db, rule_id)
    except ruleAdminService.PricingRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return PricingRuleOut.model_validate(rule)


@router.patch(
    "/rules/{rule_id}",
    response_model=PricingRuleOut,
    summary="Update a pricing rule",
)
async def update_pricing_rule(
    db: DBSession,
    rule_id: uuid.UUID,
    body: PricingRuleUpdateRequest,
) -> PricingRuleOut:
    try:
        rule = await ruleAdminService.update_pricing_rule(
            db, rule_id, **body.model_dump(exclude_unset=True)
        )
    except ruleAdminService.PricingRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    except ruleAdminService.PricingRuleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        )
    await db.refresh(rule)
    return PricingRuleOut.model_validate(rule)


@router.delete(
    "/rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a pricing rule",
)
async def delete_pricing_rule(db: DBSession, rule_id: uuid.UUID) -> Response:
    try:
        await ruleAdminService.delete_pricing_rule(db, rule_id)
    except ruleAdminService.PricingRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/rules/{rule_id}/toggle",
    response_model=PricingRuleOut,
    summary="Toggle a pricing rule on or off",
)
async def toggle_pricing_rule(db: DBSession, rule_id: uuid.UUID) -> PricingRuleOut:
    try:
        rule = await ruleAdminService.toggle_pricing_rule(db, rule_id)
    except ruleAdminService.PricingRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    await db.refresh(rule)
    return PricingRuleOut.model_validate(rule)
