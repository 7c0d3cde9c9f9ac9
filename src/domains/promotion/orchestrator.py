# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion cycle orchestrator.

Runs one cycle end to end:

    idle -> snapshotting -> planning -> executing -> sweeping -> reporting -> idle

A failure while snapshotting or planning aborts the cycle before any
write. Failures while executing or sweeping are recorded and the cycle
still completes with a report; successful moves are never rolled back.
Re-running the cycle with the snapshot from its report converges towards
the fully promoted state, because moves and deletions are guarded on the
student's current class.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from src.domains.promotion.errors import ConcurrentCycleRejected, SnapshotFailure
from src.domains.promotion.executor import PromotionExecutor
from src.domains.promotion.lock import CycleLock
from src.domains.promotion.models import (
    CycleReport,
    CycleState,
    GraduationStatus,
    SnapshotModel,
    SweepReport,
)
from src.domains.promotion.ordinal import DEFAULT_TERMINAL_CLASS_NAME
from src.domains.promotion.plan import PromotionPlan, build_plan
from src.domains.promotion.registry import ClassRegistry
from src.domains.promotion.snapshot import RosterSnapshot, capture_snapshot, verify_snapshot
from src.domains.promotion.store import SchoolStore
from src.domains.promotion.sweeper import GraduationSweeper
from src.utils.datetime import elapsed_ms, utc_now
from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)


class PromotionCycleOrchestrator:
    """Entry point of a promotion cycle.

    Attributes:
        store: School store the cycle reads and writes.
        lock: Single-flight guard shared by every orchestrator of the app.
        max_ordinal: Default highest grade.
        terminal_class_name: Name of the terminal pool.
    """

    def __init__(
        self,
        store: SchoolStore,
        lock: CycleLock,
        max_ordinal: int = 10,
        terminal_class_name: str = DEFAULT_TERMINAL_CLASS_NAME,
    ) -> None:
        self.store = store
        self.lock = lock
        self.max_ordinal = max_ordinal
        self.terminal_class_name = terminal_class_name
        self._state = CycleState.IDLE

    @property
    def state(self) -> CycleState:
        """Current state of this orchestrator's cycle."""
        return self._state

    async def run(
        self,
        max_ordinal: int | None = None,
        *,
        confirm_graduation: bool = False,
        snapshot: SnapshotModel | None = None,
    ) -> CycleReport:
        """Run one promotion cycle.

        Args:
            max_ordinal: Highest grade, defaults to the configured one.
            confirm_graduation: Must be True for the terminal pool to be
                deleted. Otherwise the sweep is reported as pending.
            snapshot: Snapshot of an earlier report, to retry that cycle
                instead of capturing a new one.

        Returns:
            The cycle report.

        Raises:
            ValueError: If max_ordinal is below 1.
            ConcurrentCycleRejected: If another cycle is running.
            SnapshotFailure: If rosters cannot be captured. Nothing was
                written.
        """
        max_ordinal = self.max_ordinal if max_ordinal is None else max_ordinal
        if max_ordinal < 1:
            raise ValueError(f"max_ordinal must be at least 1, got {max_ordinal}")

        if not await self.lock.acquire():
            logger.warning("Rejected promotion cycle: another cycle is running")
            raise ConcurrentCycleRejected()

        cycle_id = str(uuid4())
        bind_context(cycle_id=cycle_id)
        try:
            return await self._run_locked(
                cycle_id,
                max_ordinal,
                confirm_graduation=confirm_graduation,
                snapshot_model=snapshot,
            )
        finally:
            self._state = CycleState.IDLE
            clear_context("cycle_id")
            await self.lock.release()

    async def _run_locked(
        self,
        cycle_id: str,
        max_ordinal: int,
        *,
        confirm_graduation: bool,
        snapshot_model: SnapshotModel | None,
    ) -> CycleReport:
        started_at = utc_now()
        registry = ClassRegistry(self.store)

        logger.info(
            "Starting promotion cycle %s (max_ordinal=%d, confirm_graduation=%s, replay=%s)",
            cycle_id,
            max_ordinal,
            confirm_graduation,
            snapshot_model is not None,
        )

        self._state = CycleState.SNAPSHOTTING
        try:
            if snapshot_model is not None:
                snapshot = RosterSnapshot.from_model(snapshot_model)
                await verify_snapshot(snapshot, registry)
            else:
                snapshot = await capture_snapshot(registry)
        except SnapshotFailure as e:
            logger.error("Promotion cycle %s aborted, no changes made: %s", cycle_id, e)
            raise

        self._state = CycleState.PLANNING
        plan = build_plan(snapshot, max_ordinal, self.terminal_class_name)

        self._state = CycleState.EXECUTING
        execution = await PromotionExecutor(registry).execute(plan.moves)

        self._state = CycleState.SWEEPING
        sweep, status = await self._sweep(plan, confirm_graduation)

        self._state = CycleState.REPORTING
        finished_at = utc_now()
        report = CycleReport(
            cycle_id=cycle_id,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=elapsed_ms(started_at, finished_at),
            max_ordinal=max_ordinal,
            terminal_class_name=self.terminal_class_name,
            replayed=snapshot_model is not None,
            per_class_move_counts=execution.summaries,
            classes_created=execution.classes_created,
            students_graduated=sweep.graduated if sweep else 0,
            graduated_student_ids=sweep.graduated_student_ids if sweep else [],
            graduation_status=status,
            pending_graduation_count=(
                plan.graduation_count if status is GraduationStatus.PENDING_CONFIRMATION else 0
            ),
            unsequenced_classes=list(plan.unsequenced),
            failures=[*execution.failures, *(sweep.failures if sweep else [])],
            snapshot=snapshot.to_model(),
        )

        logger.info(
            "Finished promotion cycle %s: %d moved, %d classes created, "
            "%d graduated (%s), %d failures",
            cycle_id,
            report.total_moved,
            len(report.classes_created),
            report.students_graduated,
            report.graduation_status.value,
            len(report.failures),
        )

        return report

    async def _sweep(
        self,
        plan: PromotionPlan,
        confirm_graduation: bool,
    ) -> tuple[SweepReport | None, GraduationStatus]:
        if plan.sweep is None:
            return None, GraduationStatus.NOTHING_TO_GRADUATE

        if not confirm_graduation:
            logger.info(
                "Graduation of %d students pending confirmation",
                plan.graduation_count,
            )
            return None, GraduationStatus.PENDING_CONFIRMATION

        report = await GraduationSweeper(self.store).sweep(plan.sweep)
        return report, GraduationStatus.COMPLETED
