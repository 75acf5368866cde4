"""
Discount Rule API routes
========================

  GET    /api/v1/discounts/applicable              -- Rules eligible for a request
  POST   /api/v1/discounts/{rule_id}/calculate     -- Apply one rule to an amount
  GET    /api/v1/discounts                         -- List discount rules
  POST   /api/v1/discounts                         -- Create a discount rule
  GET    /api/v1/discounts/{rule_id}               -- Get a discount rule
  PATCH  /api/v1/discounts/{rule_id}               -- Update a discount rule
  DELETE /api/v1/discounts/{rule_id}               -- Delete a discount rule
  POST   /api/v1/discounts/{rule_id}/toggle        -- Flip is_active
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.api.deps import DBSession
from src.api.schemas.discount import (
    DiscountCalculationRequest,
    DiscountResultOut,
    DiscountRuleCreateRequest,
    DiscountRuleOut,
    DiscountRuleUpdateRequest,
)
from src.models import DiscountType
from src.services import discountEngine, ruleAdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discounts", tags=["Discounts"])


# ---------------------------------------------------------------------------
# GET /api/v1/discounts/applicable
# ---------------------------------------------------------------------------

@router.get(
    "/applicable",
    response_model=list[DiscountRuleOut],
    summary="List discount rules eligible for a request",
    description=(
        "Returns every active discount rule whose session bounds, minimum "
        "amount, role allow-list and validity window all admit the request, "
        "in store order.  Choosing between several matches is left to the "
        "caller."
    ),
)
async def get_applicable_discounts(
    db: DBSession,
    session_count: int = Query(ge=1),
    amount: Optional[Decimal] = Query(default=None, ge=0),
    user_role: Optional[str] = Query(default=None),
) -> list[DiscountRuleOut]:
    rules = await discountEngine.find_applicable_rules(
        db,
        session_count=session_count,
        amount=amount,
        user_role=user_role,
    )
    return [DiscountRuleOut.model_validate(r) for r in rules]


# ---------------------------------------------------------------------------
# POST /api/v1/discounts/{rule_id}/calculate
# ---------------------------------------------------------------------------

@router.post(
    "/{rule_id}/calculate",
    response_model=DiscountResultOut,
    summary="Apply a discount rule to an amount",
    description=(
        "A missing or inactive rule returns a zero discount rather than an "
        "error.  The final amount never drops below zero."
    ),
)
async def calculate_discount(
    db: DBSession,
    rule_id: uuid.UUID,
    body: DiscountCalculationRequest,
) -> DiscountResultOut:
    result = await discountEngine.calculate_discount(
        db,
        rule_id=rule_id,
        original_amount=body.original_amount,
        session_count=body.session_count,
    )
    return DiscountResultOut(
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
        rule_name=result.rule_name,
        rule_type=result.rule_type,
    )


# ---------------------------------------------------------------------------
# Discount rule administration
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[DiscountRuleOut],
    summary="List discount rules",
)
async def list_discount_rules(
    db: DBSession,
    type: Optional[DiscountType] = Query(default=None),
    active_only: bool = Query(default=False),
) -> list[DiscountRuleOut]:
    rules = await ruleAdminService.list_discount_rules(
        db, discount_type=type, active_only=active_only
    )
    return [DiscountRuleOut.model_validate(r) for r in rules]


@router.post(
    "",
    response_model=DiscountRuleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a discount rule",
)
async def create_discount_rule(
    db: DBSession,
    body: DiscountRuleCreateRequest,
) -> DiscountRuleOut:
    try:
        rule = await ruleAdminService.create_discount_rule(db, **body.model_dump())
    except ruleAdminService.DiscountRuleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        )
    await db.refresh(rule)
    return DiscountRuleOut.model_validate(rule)


@router.get(
    "/{rule_id}",
    response_model=DiscountRuleOut,
    summary="Get a discount rule",
)
async def get_discount_rule(db: DBSession, rule_id: uuid.UUID) -> DiscountRuleOut:
    try:
        rule = await ruleAdminService.get_discount_rule(db, rule_id)
    except ruleAdminService.DiscountRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return DiscountRuleOut.model_validate(rule)


@router.patch(
    "/{rule_id}",
    response_model=DiscountRuleOut,
    summary="Update a discount rule",
)
async def update_discount_rule(
    db: DBSession,
    rule_id: uuid.UUID,
    body: DiscountRuleUpdateRequest,
) -> DiscountRuleOut:
    try:
        rule = await ruleAdminService.update_discount_rule(
            db, rule_id, **body.model_dump(exclude_unset=True)
        )
    except ruleAdminService.DiscountRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    except ruleAdminService.DiscountRuleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        )
    await db.refresh(rule)
    return DiscountRuleOut.model_validate(rule)


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a discount rule",
)
async def delete_discount_rule(db: DBSession, rule_id: uuid.UUID) -> Response:
    try:
        await ruleAdminService.delete_discount_rule(db, rule_id)
    except ruleAdminService.DiscountRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{rule_id}/toggle",
    response_model=DiscountRuleOut,
    summary="Toggle a discount rule on or off",
)
async def toggle_discount_rule(db: DBSession, rule_id: uuid.UUID) -> DiscountRuleOut:
    try:
        rule = await ruleAdminService.toggle_discount_rule(db, rule_id)
    except ruleAdminService.DiscountRuleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    await db.refresh(rule)
    return DiscountRuleOut.model_validate(rule)
