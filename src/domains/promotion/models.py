# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data models for the promotion domain.

This module defines Pydantic models and enums for:
- Store records (classes and students as the store returns them)
- Per-student outcomes of guarded moves and deletions
- Execution, sweep and cycle reports
- API requests and responses (preview, trigger, manual promotion)
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.utils.datetime import utc_now


class MoveOutcome(str, Enum):
    """Result of a guarded move for one student.

    - MOVED: class_id matched the source and was updated
    - ALREADY_MOVED: class_id already equals the destination (replay)
    - STALE: class_id is neither source nor destination
    - NOT_FOUND: the student no longer exists
    """

    MOVED = "moved"
    ALREADY_MOVED = "already_moved"
    STALE = "stale"
    NOT_FOUND = "not_found"


class DeleteOutcome(str, Enum):
    """Result of a guarded graduation delete for one student."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    STALE = "stale"


class FailureKind(str, Enum):
    """Failure taxonomy recorded in reports."""

    SNAPSHOT = "snapshot_failure"
    CLASS_RESOLUTION = "class_resolution_failure"
    STUDENT_MOVE = "student_move_failure"
    GRADUATION = "graduation_failure"


class CycleState(str, Enum):
    """Promotion cycle state machine."""

    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    PLANNING = "planning"
    EXECUTING = "executing"
    SWEEPING = "sweeping"
    REPORTING = "reporting"


class GraduationStatus(str, Enum):
    """What happened to the terminal pool during a cycle."""

    COMPLETED = "completed"
    PENDING_CONFIRMATION = "pending_confirmation"
    NOTHING_TO_GRADUATE = "nothing_to_graduate"


# =============================================================================
# Store records
# =============================================================================


class ClassRecord(BaseModel):
    """A class as returned by the school store."""

    id: str
    name: str
    teacher_id: str | None = None
    student_count: int = 0


class StudentRecord(BaseModel):
    """A student as returned by the school store."""

    id: str
    class_id: str | None = None


class ClassInfo(BaseModel):
    """Registry view of a class, including its derived ordinal."""

    id: str
    name: str
    ordinal: int | None = Field(None, description="Grade parsed from the name")
    teacher_id: str | None = None
    student_count: int = 0


class ClassListResponse(BaseModel):
    """List of classes known to the registry."""

    items: list[ClassInfo]
    total: int


# =============================================================================
# Reports
# =============================================================================


class FailureRecord(BaseModel):
    """One recorded failure of a cycle or manual promotion."""

    kind: FailureKind
    reason: str
    student_id: str | None = None
    class_id: str | None = None
    class_name: str | None = None


class ClassMoveSummary(BaseModel):
    """Per source class result of the execute step."""

    source_class_id: str
    source_class_name: str
    destination_class_name: str
    destination_class_id: str | None = None
    planned: int = 0
    moved: int = 0
    skipped: int = 0
    failed: int = 0


class ExecutionReport(BaseModel):
    """Result of PromotionExecutor.execute."""

    summaries: list[ClassMoveSummary] = Field(default_factory=list)
    classes_created: list[ClassInfo] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list)

    @property
    def total_moved(self) -> int:
        return sum(s.moved for s in self.summaries)


class SweepReport(BaseModel):
    """Result of GraduationSweeper.sweep."""

    class_id: str | None = None
    class_name: str | None = None
    candidates: int = 0
    graduated_student_ids: list[str] = Field(default_factory=list)
    skipped: int = 0
    failures: list[FailureRecord] = Field(default_factory=list)

    @property
    def graduated(self) -> int:
        return len(self.graduated_student_ids)


class ClassRosterModel(BaseModel):
    """Serialized roster of one class inside a snapshot."""

    class_id: str
    name: str
    student_ids: list[str] = Field(default_factory=list)


class SnapshotModel(BaseModel):
    """Serialized roster snapshot, returned in reports for replay."""

    captured_at: datetime
    classes: list[ClassRosterModel] = Field(default_factory=list)


class CycleReport(BaseModel):
    """Summary of one promotion cycle shown to the administrator."""

    cycle_id: str
    started_at: datetime
    finished_at: datetime = Field(default_factory=utc_now)
    duration_ms: int = 0
    max_ordinal: int
    terminal_class_name: str
    replayed: bool = False
    per_class_move_counts: list[ClassMoveSummary] = Field(default_factory=list)
    classes_created: list[ClassInfo] = Field(default_factory=list)
    students_graduated: int = 0
    graduated_student_ids: list[str] = Field(default_factory=list)
    graduation_status: GraduationStatus = GraduationStatus.NOTHING_TO_GRADUATE
    pending_graduation_count: int = 0
    unsequenced_classes: list[str] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list)
    snapshot: SnapshotModel

    @property
    def total_moved(self) -> int:
        return sum(s.moved for s in self.per_class_move_counts)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


# =============================================================================
# Preview
# =============================================================================


class PreviewItem(BaseModel):
    """What the next cycle would do with one class."""

    class_id: str
    class_name: str
    ordinal: int | None = None
    student_count: int
    action: Literal["promote", "graduate", "hold"]
    destination_class_name: str | None = None


class PromotionPreview(BaseModel):
    """Dry run of a cycle, computed from a snapshot without writing."""

    max_ordinal: int
    terminal_class_name: str
    classes: list[PreviewItem] = Field(default_factory=list)
    total_students: int = 0
    graduation_count: int = 0
    unsequenced_classes: list[str] = Field(default_factory=list)


# =============================================================================
# Requests
# =============================================================================


class TriggerCycleRequest(BaseModel):
    """Request body for triggering a promotion cycle."""

    max_ordinal: int | None = Field(None, ge=1, description="Defaults to configured max")
    confirm_graduation: bool = Field(
        False,
        description="Must be true for the terminal pool to be deleted",
    )
    snapshot: SnapshotModel | None = Field(
        None,
        description="Snapshot of a previous report, to retry that same cycle",
    )


class ManualPromotionRequest(BaseModel):
    """Move hand-picked students from one class to another."""

    student_ids: list[str] = Field(..., min_length=1)
    from_class_id: str
    to_class_id: str

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, v: list[str]) -> list[str]:
        """Drop duplicate ids while keeping order."""
        return list(dict.fromkeys(v))


class ManualPromotionResponse(BaseModel):
    """Result of a manual promotion."""

    from_class_id: str
    to_class_id: str
    moved: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list)
