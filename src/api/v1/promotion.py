# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion API endpoints.

This module provides endpoints for end-of-year promotion:
- GET /classes - List classes with grade ordinal and student count
- GET /preview - Dry run of the next promotion cycle
- POST /cycles - Run a promotion cycle (or replay one from its snapshot)
- POST /students - Manually promote selected students

Graduation permanently deletes the students of the terminal pool and only
happens when the cycle request sets confirm_graduation.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import get_promotion_service
from src.domains.promotion.errors import (
    ClassNotFoundError,
    ConcurrentCycleRejected,
    InvalidPromotionRequest,
    SchoolStoreError,
    SnapshotFailure,
)
from src.domains.promotion.models import (
    ClassListResponse,
    CycleReport,
    ManualPromotionRequest,
    ManualPromotionResponse,
    PromotionPreview,
    TriggerCycleRequest,
)
from src.domains.promotion.service import PromotionService
from src.infrastructure.cache import RedisError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/classes",
    response_model=ClassListResponse,
    summary="List classes",
    description="List every class with its grade ordinal and student count.",
)
async def list_classes(
    service: PromotionService = Depends(get_promotion_service),
) -> ClassListResponse:
    """List classes.

    Raises:
        HTTPException: If the school store is unavailable.
    """
    try:
        return await service.list_classes()
    except SchoolStoreError as e:
        logger.error("Failed to list classes: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not read classes",
        ) from e


@router.get(
    "/preview",
    response_model=PromotionPreview,
    summary="Preview promotion cycle",
    description="Show what the next cycle would do. Nothing is written.",
)
async def preview_cycle(
    max_ordinal: int | None = Query(None, ge=1, description="Defaults to configured max"),
    service: PromotionService = Depends(get_promotion_service),
) -> PromotionPreview:
    """Preview the next promotion cycle.

    Args:
        max_ordinal: Highest grade for this preview.
        service: Promotion service.

    Returns:
        Per class action, totals and graduation count.

    Raises:
        HTTPException: If rosters cannot be captured.
    """
    try:
        return await service.preview(max_ordinal)
    except SnapshotFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e


@router.post(
    "/cycles",
    response_model=CycleReport,
    summary="Run promotion cycle",
    description=(
        "Promote every class one grade up. The terminal pool is graduated "
        "(deleted) only when confirm_graduation is true. Pass the snapshot "
        "of an earlier report to retry that cycle."
    ),
)
async def trigger_cycle(
    data: TriggerCycleRequest,
    service: PromotionService = Depends(get_promotion_service),
) -> CycleReport:
    """Run a promotion cycle.

    Args:
        data: Cycle options.
        service: Promotion service.

    Returns:
        Cycle report, including per-student failures.

    Raises:
        HTTPException: 409 if a cycle is running, 503 if rosters or the
            lock backend cannot be reached.
    """
    logger.info(
        "Promotion cycle requested (max_ordinal=%s, confirm_graduation=%s, replay=%s)",
        data.max_ordinal,
        data.confirm_graduation,
        data.snapshot is not None,
    )

    try:
        return await service.trigger_cycle(data)
    except ConcurrentCycleRejected as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    except SnapshotFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e
    except RedisError as e:
        logger.error("Promotion lock backend failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Promotion lock backend not available",
        ) from e


@router.post(
    "/students",
    response_model=ManualPromotionResponse,
    summary="Promote selected students",
    description="Move hand-picked students from one class to another.",
)
async def promote_students(
    data: ManualPromotionRequest,
    service: PromotionService = Depends(get_promotion_service),
) -> ManualPromotionResponse:
    """Manually promote students.

    Args:
        data: Students and the source and destination classes.
        service: Promotion service.

    Returns:
        Moved, skipped and failed students.

    Raises:
        HTTPException: 400 for an invalid request, 404 for an unknown
            class, 503 if the store fails.
    """
    try:
        return await service.promote_students(data)
    except InvalidPromotionRequest as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except ClassNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except SchoolStoreError as e:
        logger.error("Manual promotion failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not move students",
        ) from e
