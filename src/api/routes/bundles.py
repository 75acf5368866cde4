"""
Bundle Package API routes
=========================

  GET    /api/v1/bundles                      -- List bundles (filter by type/active)
  POST   /api/v1/bundles                      -- Create a bundle
  GET    /api/v1/bundles/{bundle_id}          -- Get a bundle
  PATCH  /api/v1/bundles/{bundle_id}          -- Update a bundle (re-derives final_price)
  DELETE /api/v1/bundles/{bundle_id}          -- Delete a bundle
  POST   /api/v1/bundles/{bundle_id}/active   -- Set is_active
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.api.deps import DBSession
from src.api.schemas.bundle import (
    BundleActiveRequest,
    BundleCreateRequest,
    BundleOut,
    BundleUpdateRequest,
)
from src.models import BundleType
from src.services import bundleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bundles", tags=["Bundles"])


@router.get(
    "",
    response_model=list[BundleOut],
    summary="List bundle packages",
)
async def list_bundles(
    db: DBSession,
    type: Optional[BundleType] = Query(default=None),
    active_only: bool = Query(default=False),
) -> list[BundleOut]:
    bundles = await bundleService.list_bundles(db, bundle_type=type, active_only=active_only)
    return [BundleOut.model_validate(b) for b in bundles]


@router.post(
    "",
    response_model=BundleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a bundle package",
    description="final_price is derived from original_price and discount_percentage.",
)
async def create_bundle(db: DBSession, body: BundleCreateRequest) -> BundleOut:
    bundle = await bundleService.create_bundle(db, **body.model_dump())
    await db.refresh(bundle)
    return BundleOut.model_validate(bundle)


@router.get(
    "/{bundle_id}",
    response_model=BundleOut,
    summary="Get a bundle package",
)
async def get_bundle(db: DBSession, bundle_id: uuid.UUID) -> BundleOut:
    try:
        bundle = await bundleService.get_bundle(db, bundle_id)
    except bundleService.BundleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return BundleOut.model_validate(bundle)


@router.patch(
    "/{bundle_id}",
    response_model=BundleOut,
    summary="Update a bundle package",
    description=(
        "Partial update.  final_price is recomputed from the merged "
        "original_price and discount_percentage on every update."
    ),
)
async def update_bundle(
    db: DBSession,
    bundle_id: uuid.UUID,
    body: BundleUpdateRequest,
) -> BundleOut:
    try:
        bundle = await bundleService.update_bundle(
            db, bundle_id, **body.model_dump(exclude_unset=True)
        )
    except bundleService.BundleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    await db.refresh(bundle)
    return BundleOut.model_validate(bundle)


@router.delete(
    "/{bundle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a bundle package",
)
async def delete_bundle(db: DBSession, bundle_id: uuid.UUID) -> Response:
    try:
        await bundleService.remove_bundle(db, bundle_id)
    except bundleService.BundleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{bundle_id}/active",
    response_model=BundleOut,
    summary="Activate or deactivate a bundle package",
)
async def set_bundle_active(
    db: DBSession,
    bundle_id: uuid.UUID,
    body: BundleActiveRequest,
) -> BundleOut:
    try:
        bundle = await bundleService.set_bundle_active(db, bundle_id, body.is_active)
    except bundleService.BundleNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    await db.refresh(bundle)
    return BundleOut.model_validate(bundle)
