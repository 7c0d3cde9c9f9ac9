# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests

The in-memory school store mirrors the guarded move and delete semantics
of SqlSchoolStore so promotion cycles can be exercised without PostgreSQL.
"""

from collections.abc import Sequence

import pytest

from src.domains.promotion.errors import ClassNameExistsError, SchoolStoreError
from src.domains.promotion.models import (
    ClassRecord,
    DeleteOutcome,
    MoveOutcome,
    StudentRecord,
)
from src.domains.promotion.store import SchoolStore


# =============================================================================
# In-memory school store
# =============================================================================


class InMemorySchoolStore(SchoolStore):
    """School store kept in dictionaries.

    Attributes:
        classes: Class id to (name, teacher_id).
        students: Student id to class id.
        fail_reads: Raise SchoolStoreError on every read.
        fail_create: Class names whose creation raises SchoolStoreError.
        fail_moves_from: Source class ids whose moves raise SchoolStoreError.
        fail_deletes: Raise SchoolStoreError on deletions.
    """

    def __init__(self) -> None:
        self.classes: dict[str, tuple[str, str | None]] = {}
        self.students: dict[str, str | None] = {}
        self.created_names: list[str] = []
        self.move_calls: list[tuple[tuple[str, ...], str, str]] = []
        self.delete_calls: list[tuple[tuple[str, ...], str]] = []
        self.fail_reads = False
        self.fail_create: set[str] = set()
        self.fail_moves_from: set[str] = set()
        self.fail_deletes = False
        self._class_seq = 0
        self._student_seq = 0

    # ---- seeding helpers ----

    def add_class(self, name: str, students: int = 0, teacher_id: str | None = None) -> str:
        self._class_seq += 1
        class_id = f"class-{self._class_seq:03d}"
        self.classes[class_id] = (name, teacher_id)
        for _ in range(students):
            self.add_student(class_id)
        return class_id

    def add_student(self, class_id: str | None) -> str:
        self._student_seq += 1
        student_id = f"student-{self._student_seq:04d}"
        self.students[student_id] = class_id
        return student_id

    def class_id_of(self, name: str) -> str | None:
        for class_id, (class_name, _) in self.classes.items():
            if class_name == name:
                return class_id
        return None

    def roster(self, name: str) -> list[str]:
        class_id = self.class_id_of(name)
        return sorted(sid for sid, cid in self.students.items() if cid == class_id)

    @property
    def write_count(self) -> int:
        return len(self.created_names) + len(self.move_calls) + len(self.delete_calls)

    # ---- SchoolStore ----

    def _record(self, class_id: str) -> ClassRecord:
        name, teacher_id = self.classes[class_id]
        count = sum(1 for cid in self.students.values() if cid == class_id)
        return ClassRecord(id=class_id, name=name, teacher_id=teacher_id, student_count=count)

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise SchoolStoreError("store unavailable")

    async def list_classes(self) -> list[ClassRecord]:
        self._check_reads()
        records = [self._record(class_id) for class_id in self.classes]
        return sorted(records, key=lambda r: r.name)

    async def get_class(self, class_id: str) -> ClassRecord | None:
        self._check_reads()
        if class_id not in self.classes:
            return None
        return self._record(class_id)

    async def find_class_by_name(self, name: str) -> ClassRecord | None:
        self._check_reads()
        class_id = self.class_id_of(name)
        return self._record(class_id) if class_id else None

    async def list_students_by_class(self, class_id: str) -> list[StudentRecord]:
        self._check_reads()
        return [
            StudentRecord(id=sid, class_id=cid)
            for sid, cid in sorted(self.students.items())
            if cid == class_id
        ]

    async def create_class(self, name: str, teacher_id: str | None = None) -> ClassRecord:
        if name in self.fail_create:
            raise SchoolStoreError(f"Failed to create class '{name}'")
        if self.class_id_of(name) is not None:
            raise ClassNameExistsError(f"Class '{name}' already exists")
        class_id = self.add_class(name, teacher_id=teacher_id)
        self.created_names.append(name)
        return self._record(class_id)

    async def move_students(
        self,
        student_ids: Sequence[str],
        from_class_id: str,
        to_class_id: str,
    ) -> dict[str, MoveOutcome]:
        if from_class_id in self.fail_moves_from:
            raise SchoolStoreError(f"Failed to move students from {from_class_id}")
        self.move_calls.append((tuple(student_ids), from_class_id, to_class_id))

        outcomes: dict[str, MoveOutcome] = {}
        for sid in student_ids:
            if sid not in self.students:
                outcomes[sid] = MoveOutcome.NOT_FOUND
            elif self.students[sid] == from_class_id:
                self.students[sid] = to_class_id
                outcomes[sid] = MoveOutcome.MOVED
            elif self.students[sid] == to_class_id:
                outcomes[sid] = MoveOutcome.ALREADY_MOVED
            else:
                outcomes[sid] = MoveOutcome.STALE
        return outcomes

    async def delete_students(
        self,
        student_ids: Sequence[str],
        class_id: str,
    ) -> dict[str, DeleteOutcome]:
        if self.fail_deletes:
            raise SchoolStoreError(f"Failed to delete students of class {class_id}")
        self.delete_calls.append((tuple(student_ids), class_id))

        outcomes: dict[str, DeleteOutcome] = {}
        for sid in student_ids:
            if sid not in self.students:
                outcomes[sid] = DeleteOutcome.NOT_FOUND
            elif self.students[sid] == class_id:
                del self.students[sid]
                outcomes[sid] = DeleteOutcome.DELETED
            else:
                outcomes[sid] = DeleteOutcome.STALE
        return outcomes


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemorySchoolStore:
    """Provide an empty in-memory school store."""
    return InMemorySchoolStore()


@pytest.fixture
def ten_grade_store(store: InMemorySchoolStore) -> InMemorySchoolStore:
    """Classes 1 to 10 with three students each and no terminal pool."""
    for grade in range(1, 11):
        store.add_class(f"Class {grade}", students=3)
    return store


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
