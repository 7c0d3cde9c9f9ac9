# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion executor: applies the move entries of a plan.

For each entry the destination class is resolved (created if missing)
and the cohort is moved with a guarded batch update: a student moves only
while their class is still the entry's source class. Nothing here raises
for a single class or student; problems are recorded in the report and
the remaining entries still run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.domains.promotion.errors import ClassResolutionFailure, SchoolStoreError
from src.domains.promotion.models import (
    ClassMoveSummary,
    ExecutionReport,
    FailureKind,
    FailureRecord,
    MoveOutcome,
)
from src.domains.promotion.plan import MoveEntry
from src.domains.promotion.registry import ClassRegistry

logger = logging.getLogger(__name__)

_MOVE_FAILURE_REASONS = {
    MoveOutcome.STALE: "student no longer in source class",
    MoveOutcome.NOT_FOUND: "student no longer exists",
}


class PromotionExecutor:
    """Applies move entries through a ClassRegistry.

    Attributes:
        registry: Registry of the cycle, also used to reach the store.
    """

    def __init__(self, registry: ClassRegistry) -> None:
        self.registry = registry

    async def execute(self, moves: Iterable[MoveEntry]) -> ExecutionReport:
        """Apply every move entry.

        Entries are disjoint by source class, so their order does not
        change the outcome.

        Args:
            moves: Move entries of a plan.

        Returns:
            Per-class summaries, classes created and recorded failures.
        """
        report = ExecutionReport()

        for entry in moves:
            summary, failures = await self._execute_entry(entry)
            report.summaries.append(summary)
            report.failures.extend(failures)

        report.classes_created = self.registry.created

        logger.info(
            "Executed %d move entries: %d moved, %d failures, %d classes created",
            len(report.summaries),
            report.total_moved,
            len(report.failures),
            len(report.classes_created),
        )

        return report

    async def _execute_entry(
        self,
        entry: MoveEntry,
    ) -> tuple[ClassMoveSummary, list[FailureRecord]]:
        summary = ClassMoveSummary(
            source_class_id=entry.source_class_id,
            source_class_name=entry.source_class_name,
            destination_class_name=entry.destination_class_name,
            planned=len(entry.student_ids),
        )

        try:
            destination = await self.registry.find_or_create(entry.destination_class_name)
        except ClassResolutionFailure as e:
            logger.error(
                "Cannot resolve '%s' for %s, leaving %d students in place: %s",
                entry.destination_class_name,
                entry.source_class_name,
                len(entry.student_ids),
                e.reason,
            )
            summary.failed = len(entry.student_ids)
            failure = FailureRecord(
                kind=FailureKind.CLASS_RESOLUTION,
                reason=str(e),
                class_id=entry.source_class_id,
                class_name=entry.destination_class_name,
            )
            return summary, [failure]

        summary.destination_class_id = destination.id

        try:
            outcomes = await self.registry.store.move_students(
                entry.student_ids,
                entry.source_class_id,
                destination.id,
            )
        except SchoolStoreError as e:
            logger.error(
                "Moving %s -> %s failed: %s",
                entry.source_class_name,
                destination.name,
                e,
            )
            summary.failed = len(entry.student_ids)
            batch_failures = [
                FailureRecord(
                    kind=FailureKind.STUDENT_MOVE,
                    reason=str(e),
                    student_id=sid,
                    class_id=entry.source_class_id,
                    class_name=entry.source_class_name,
                )
                for sid in entry.student_ids
            ]
            return summary, batch_failures

        failures: list[FailureRecord] = []
        for sid in entry.student_ids:
            outcome = outcomes.get(sid, MoveOutcome.NOT_FOUND)
            if outcome is MoveOutcome.MOVED:
                summary.moved += 1
            elif outcome is MoveOutcome.ALREADY_MOVED:
                summary.skipped += 1
            else:
                summary.failed += 1
                failures.append(
                    FailureRecord(
                        kind=FailureKind.STUDENT_MOVE,
                        reason=_MOVE_FAILURE_REASONS[outcome],
                        student_id=sid,
                        class_id=entry.source_class_id,
                        class_name=entry.source_class_name,
                    )
                )

        logger.info(
            "Promoted %s -> %s: %d moved, %d skipped, %d failed",
            entry.source_class_name,
            destination.name,
            summary.moved,
            summary.skipped,
            summary.failed,
        )

        return summary, failures
