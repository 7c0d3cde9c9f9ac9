# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Graduation sweeper: permanently deletes graduated students.

The sweeper only acts on the terminal pool roster captured in the cycle's
snapshot. Students promoted into the pool by the same cycle are not in
that roster and stay until the next cycle.

Deletion is irreversible. The orchestrator only calls the sweeper when the
administrator confirmed graduation for this cycle.
"""

from __future__ import annotations

import logging

from src.domains.promotion.errors import SchoolStoreError
from src.domains.promotion.models import (
    DeleteOutcome,
    FailureKind,
    FailureRecord,
    SweepReport,
)
from src.domains.promotion.plan import SweepEntry
from src.domains.promotion.store import SchoolStore

logger = logging.getLogger(__name__)


class GraduationSweeper:
    """Deletes the pre-cycle members of the terminal pool.

    Attributes:
        store: School store used for deletions.
    """

    def __init__(self, store: SchoolStore) -> None:
        self.store = store

    async def sweep(self, entry: SweepEntry) -> SweepReport:
        """Delete every student of the snapshot terminal roster.

        A student already gone is skipped (a replayed cycle). A student
        that left the terminal pool since the snapshot is not deleted and
        is reported as a graduation failure.

        Args:
            entry: Sweep entry of the cycle's plan.

        Returns:
            Graduated ids, skips and recorded failures.
        """
        report = SweepReport(
            class_id=entry.class_id,
            class_name=entry.class_name,
            candidates=len(entry.student_ids),
        )
        if not entry.student_ids:
            return report

        try:
            outcomes = await self.store.delete_students(entry.student_ids, entry.class_id)
        except SchoolStoreError as e:
            logger.error("Graduating %s failed: %s", entry.class_name, e)
            report.failures = [
                FailureRecord(
                    kind=FailureKind.GRADUATION,
                    reason=str(e),
                    student_id=sid,
                    class_id=entry.class_id,
                    class_name=entry.class_name,
                )
                for sid in entry.student_ids
            ]
            return report

        for sid in entry.student_ids:
            outcome = outcomes.get(sid, DeleteOutcome.NOT_FOUND)
            if outcome is DeleteOutcome.DELETED:
                report.graduated_student_ids.append(sid)
            elif outcome is DeleteOutcome.NOT_FOUND:
                report.skipped += 1
            else:
                report.failures.append(
                    FailureRecord(
                        kind=FailureKind.GRADUATION,
                        reason="student no longer in terminal class",
                        student_id=sid,
                        class_id=entry.class_id,
                        class_name=entry.class_name,
                    )
                )

        logger.info(
            "Graduated %d of %d students from %s (%d skipped, %d failed)",
            report.graduated,
            report.candidates,
            entry.class_name,
            report.skipped,
            len(report.failures),
        )

        return report
