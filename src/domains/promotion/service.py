# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion service used by the API layer.

This module provides the PromotionService class for:
- Listing classes with their grade ordinal
- Previewing the next cycle without writing anything
- Triggering a promotion cycle (or replaying one from its snapshot)
- Manually promoting selected students between two classes
"""

from __future__ import annotations

import logging

from src.domains.promotion.errors import (
    ClassNotFoundError,
    InvalidPromotionRequest,
)
from src.domains.promotion.lock import CycleLock
from src.domains.promotion.models import (
    ClassListResponse,
    CycleReport,
    FailureKind,
    FailureRecord,
    ManualPromotionRequest,
    ManualPromotionResponse,
    MoveOutcome,
    PreviewItem,
    PromotionPreview,
    TriggerCycleRequest,
)
from src.domains.promotion.orchestrator import PromotionCycleOrchestrator
from src.domains.promotion.ordinal import DEFAULT_TERMINAL_CLASS_NAME
from src.domains.promotion.plan import build_plan
from src.domains.promotion.registry import ClassRegistry
from src.domains.promotion.snapshot import capture_snapshot
from src.domains.promotion.store import SchoolStore

logger = logging.getLogger(__name__)


class PromotionService:
    """Service for promotion workflows.

    Attributes:
        store: School store.
        lock: Cycle lock shared across requests.
        max_ordinal: Configured highest grade.
        terminal_class_name: Configured terminal pool name.
    """

    def __init__(
        self,
        store: SchoolStore,
        lock: CycleLock,
        max_ordinal: int = 10,
        terminal_class_name: str = DEFAULT_TERMINAL_CLASS_NAME,
    ) -> None:
        """Initialize promotion service.

        Args:
            store: School store for the request.
            lock: Application-wide cycle lock.
            max_ordinal: Default highest grade.
            terminal_class_name: Name of the terminal pool.
        """
        self.store = store
        self.lock = lock
        self.max_ordinal = max_ordinal
        self.terminal_class_name = terminal_class_name

    async def list_classes(self) -> ClassListResponse:
        """List every class with its ordinal and student count.

        Raises:
            SchoolStoreError: If the store cannot be read.
        """
        items = await ClassRegistry(self.store).list_classes()
        return ClassListResponse(items=items, total=len(items))

    async def preview(self, max_ordinal: int | None = None) -> PromotionPreview:
        """Compute what a cycle would do right now.

        Args:
            max_ordinal: Highest grade, defaults to the configured one.

        Returns:
            Per class action and counts. Nothing is written.

        Raises:
            SnapshotFailure: If rosters cannot be captured.
            ValueError: If max_ordinal is below 1.
        """
        max_ordinal = self.max_ordinal if max_ordinal is None else max_ordinal
        snapshot = await capture_snapshot(ClassRegistry(self.store))
        plan = build_plan(snapshot, max_ordinal, self.terminal_class_name)

        items: list[PreviewItem] = []
        for entry in plan.moves:
            items.append(
                PreviewItem(
                    class_id=entry.source_class_id,
                    class_name=entry.source_class_name,
                    ordinal=entry.source_ordinal,
                    student_count=len(entry.student_ids),
                    action="promote",
                    destination_class_name=entry.destination_class_name,
                )
            )
        if plan.sweep is not None:
            items.append(
                PreviewItem(
                    class_id=plan.sweep.class_id,
                    class_name=plan.sweep.class_name,
                    student_count=len(plan.sweep.student_ids),
                    action="graduate",
                )
            )
        for name in plan.unsequenced:
            roster = snapshot.find_by_name(name)
            if roster is None:
                continue
            items.append(
                PreviewItem(
                    class_id=roster.class_id,
                    class_name=roster.name,
                    student_count=len(roster),
                    action="hold",
                )
            )

        return PromotionPreview(
            max_ordinal=max_ordinal,
            terminal_class_name=self.terminal_class_name,
            classes=items,
            total_students=snapshot.total_students,
            graduation_count=plan.graduation_count,
            unsequenced_classes=list(plan.unsequenced),
        )

    async def trigger_cycle(self, request: TriggerCycleRequest) -> CycleReport:
        """Run a promotion cycle.

        Raises:
            ConcurrentCycleRejected: If a cycle is already running.
            SnapshotFailure: If rosters cannot be captured.
        """
        orchestrator = PromotionCycleOrchestrator(
            store=self.store,
            lock=self.lock,
            max_ordinal=self.max_ordinal,
            terminal_class_name=self.terminal_class_name,
        )
        return await orchestrator.run(
            request.max_ordinal,
            confirm_graduation=request.confirm_graduation,
            snapshot=request.snapshot,
        )

    async def promote_students(
        self,
        request: ManualPromotionRequest,
    ) -> ManualPromotionResponse:
        """Move selected students from one class to another.

        Only students still in from_class_id are moved.

        Args:
            request: Students and the two classes.

        Returns:
            Moved and skipped ids plus per-student failures.

        Raises:
            InvalidPromotionRequest: If no student is selected or both
                classes are the same.
            ClassNotFoundError: If either class does not exist.
            SchoolStoreError: If the move itself fails.
        """
        if not request.student_ids:
            raise InvalidPromotionRequest("No students selected")
        if request.from_class_id == request.to_class_id:
            raise InvalidPromotionRequest("Source and destination class must differ")

        source = await self.store.get_class(request.from_class_id)
        if source is None:
            raise ClassNotFoundError(f"Class {request.from_class_id} not found")
        destination = await self.store.get_class(request.to_class_id)
        if destination is None:
            raise ClassNotFoundError(f"Class {request.to_class_id} not found")

        outcomes = await self.store.move_students(
            request.student_ids,
            source.id,
            destination.id,
        )

        response = ManualPromotionResponse(
            from_class_id=source.id,
            to_class_id=destination.id,
        )
        for sid in request.student_ids:
            outcome = outcomes.get(sid, MoveOutcome.NOT_FOUND)
            if outcome is MoveOutcome.MOVED:
                response.moved.append(sid)
            elif outcome is MoveOutcome.ALREADY_MOVED:
                response.skipped.append(sid)
            else:
                response.failures.append(
                    FailureRecord(
                        kind=FailureKind.STUDENT_MOVE,
                        reason=(
                            "student no longer exists"
                            if outcome is MoveOutcome.NOT_FOUND
                            else f"student not in class {source.name}"
                        ),
                        student_id=sid,
                        class_id=source.id,
                        class_name=source.name,
                    )
                )

        logger.info(
            "Manual promotion %s -> %s: %d moved, %d skipped, %d failed",
            source.name,
            destination.name,
            len(response.moved),
            len(response.skipped),
            len(response.failures),
        )

        return response
