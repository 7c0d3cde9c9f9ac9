# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for roster snapshots."""

from datetime import datetime, timezone

import pytest

from src.domains.promotion.errors import SnapshotFailure
from src.domains.promotion.models import ClassRosterModel, SnapshotModel
from src.domains.promotion.registry import ClassRegistry
from src.domains.promotion.snapshot import (
    ClassRoster,
    RosterSnapshot,
    capture_snapshot,
    verify_snapshot,
)


class TestCaptureSnapshot:
    """Tests for capture_snapshot."""

    @pytest.mark.asyncio
    async def test_captures_every_roster(self, store) -> None:
        """Test every class and its students are captured."""
        c1 = store.add_class("Class 1", students=2)
        c2 = store.add_class("Class 2", students=1)
        store.add_class("Class 3")

        snapshot = await capture_snapshot(ClassRegistry(store))

        assert len(snapshot) == 3
        assert snapshot.total_students == 3
        assert snapshot.get(c1).student_ids == tuple(store.roster("Class 1"))
        assert snapshot.get(c2).ordinal == 2
        assert snapshot.find_by_name("Class 3").student_ids == ()

    @pytest.mark.asyncio
    async def test_is_not_affected_by_later_writes(self, store) -> None:
        """Test moving students after capture leaves the snapshot unchanged."""
        c1 = store.add_class("Class 1", students=2)
        c2 = store.add_class("Class 2")
        snapshot = await capture_snapshot(ClassRegistry(store))

        await store.move_students(store.roster("Class 1"), c1, c2)

        assert len(snapshot.get(c1)) == 2
        assert len(snapshot.get(c2)) == 0

    @pytest.mark.asyncio
    async def test_store_failure_raises_snapshot_failure(self, store) -> None:
        """Test read errors abort with SnapshotFailure."""
        store.add_class("Class 1", students=1)
        store.fail_reads = True

        with pytest.raises(SnapshotFailure):
            await capture_snapshot(ClassRegistry(store))

    @pytest.mark.asyncio
    async def test_duplicate_names_raise_snapshot_failure(self, store) -> None:
        """Test two classes with one name abort the snapshot."""
        store.add_class("Class 1")
        store.add_class("Class 1")

        with pytest.raises(SnapshotFailure, match="Class 1"):
            await capture_snapshot(ClassRegistry(store))

    @pytest.mark.asyncio
    async def test_two_classes_of_one_grade_raise_snapshot_failure(self, store) -> None:
        store.add_class("Class 5")
        store.add_class("5B")

        with pytest.raises(SnapshotFailure, match="share a grade"):
            await capture_snapshot(ClassRegistry(store))


class TestRosterSnapshot:
    """Tests for RosterSnapshot."""

    def test_rosters_are_read_only(self) -> None:
        """Test the roster mapping cannot be mutated."""
        snapshot = RosterSnapshot(rosters={"c1": ClassRoster("c1", "Class 1", ("s1",))})

        with pytest.raises(TypeError):
            snapshot.rosters["c2"] = ClassRoster("c2", "Class 2")  # type: ignore[index]

    def test_model_round_trip_keeps_rosters(self) -> None:
        """Test a snapshot survives serialization into a report."""
        captured_at = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)
        snapshot = RosterSnapshot(
            rosters={
                "c1": ClassRoster("c1", "Class 1", ("s1", "s2")),
                "pool": ClassRoster("pool", "Last Year Students", ("g1",)),
            },
            captured_at=captured_at,
        )

        restored = RosterSnapshot.from_model(snapshot.to_model())

        assert restored.captured_at == captured_at
        assert restored.get("c1").student_ids == ("s1", "s2")
        assert restored.find_by_name("Last Year Students").class_id == "pool"

    def test_from_model_rejects_repeated_class(self) -> None:
        """Test a tampered snapshot listing a class twice is rejected."""
        model = SnapshotModel(
            captured_at=datetime.now(timezone.utc),
            classes=[
                ClassRosterModel(class_id="c1", name="Class 1"),
                ClassRosterModel(class_id="c1", name="Class 1"),
            ],
        )

        with pytest.raises(SnapshotFailure):
            RosterSnapshot.from_model(model)

    def test_from_model_rejects_duplicate_names(self) -> None:
        """Test two ids sharing a name are rejected."""
        model = SnapshotModel(
            captured_at=datetime.now(timezone.utc),
            classes=[
                ClassRosterModel(class_id="c1", name="Class 1"),
                ClassRosterModel(class_id="c2", name="Class 1"),
            ],
        )

        with pytest.raises(SnapshotFailure):
            RosterSnapshot.from_model(model)


class TestVerifySnapshot:
    """Tests for checking a replayed snapshot against the store."""

    @pytest.mark.asyncio
    async def test_accepts_unchanged_classes(self, store) -> None:
        store.add_class("Class 1", students=2)
        store.add_class("Last Year Students", students=1)
        snapshot = await capture_snapshot(ClassRegistry(store))

        await verify_snapshot(snapshot, ClassRegistry(store))

    @pytest.mark.asyncio
    async def test_rejects_renamed_class(self, store) -> None:
        """Test a class listed under a name it does not have is rejected."""
        class_5 = store.add_class("Class 5", students=4)
        snapshot = RosterSnapshot(
            rosters={
                class_5: ClassRoster(
                    class_5, "Last Year Students", tuple(store.roster("Class 5"))
                )
            }
        )

        with pytest.raises(SnapshotFailure, match="Last Year Students"):
            await verify_snapshot(snapshot, ClassRegistry(store))

    @pytest.mark.asyncio
    async def test_rejects_unknown_class(self, store) -> None:
        store.add_class("Class 1")
        snapshot = RosterSnapshot(rosters={"class-999": ClassRoster("class-999", "Class 2")})

        with pytest.raises(SnapshotFailure, match="class-999"):
            await verify_snapshot(snapshot, ClassRegistry(store))

    @pytest.mark.asyncio
    async def test_store_failure_raises_snapshot_failure(self, store) -> None:
        store.add_class("Class 1")
        snapshot = await capture_snapshot(ClassRegistry(store))
        store.fail_reads = True

        with pytest.raises(SnapshotFailure):
            await verify_snapshot(snapshot, ClassRegistry(store))
