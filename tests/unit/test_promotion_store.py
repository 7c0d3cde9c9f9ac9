# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the SQL school store."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.domains.promotion.errors import ClassNameExistsError, SchoolStoreError
from src.domains.promotion.models import DeleteOutcome, MoveOutcome
from src.domains.promotion.store import SqlSchoolStore
from src.infrastructure.database.models.school import SchoolClass


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def school_store(mock_db):
    """Create school store with mock database."""
    return SqlSchoolStore(db=mock_db)


def _returning(ids: list[str]) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = ids
    return result


def _rows(rows: list[tuple]) -> MagicMock:
    result = MagicMock()
    result.all.return_value = rows
    return result


def _db_error(cls=OperationalError):
    return cls("statement", {}, Exception("connection lost"))


class TestReads:
    """Tests for class and roster reads."""

    @pytest.mark.asyncio
    async def test_list_classes_includes_counts(self, school_store, mock_db) -> None:
        class_ = SchoolClass(id="c1", name="Class 1", teacher_id="t1")
        mock_db.execute.return_value = _rows([(class_, 4)])

        records = await school_store.list_classes()

        assert len(records) == 1
        assert records[0].id == "c1"
        assert records[0].teacher_id == "t1"
        assert records[0].student_count == 4

    @pytest.mark.asyncio
    async def test_read_error_is_wrapped(self, school_store, mock_db) -> None:
        mock_db.execute.side_effect = _db_error()

        with pytest.raises(SchoolStoreError) as exc_info:
            await school_store.list_classes()

        assert isinstance(exc_info.value.original_error, OperationalError)

    @pytest.mark.asyncio
    async def test_find_class_by_name_missing(self, school_store, mock_db) -> None:
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        assert await school_store.find_class_by_name("Class 11") is None

    @pytest.mark.asyncio
    async def test_list_students_by_class(self, school_store, mock_db) -> None:
        mock_db.execute.return_value = _rows([("s1", "c1"), ("s2", "c1")])

        students = await school_store.list_students_by_class("c1")

        assert [s.id for s in students] == ["s1", "s2"]
        assert all(s.class_id == "c1" for s in students)


class TestCreateClass:
    """Tests for create_class."""

    @pytest.mark.asyncio
    async def test_create_commits_and_returns_record(self, school_store, mock_db) -> None:
        record = await school_store.create_class("Last Year Students")

        mock_db.add.assert_called_once()
        added = mock_db.add.call_args.args[0]
        assert added.name == "Last Year Students"
        assert added.teacher_id is None
        mock_db.commit.assert_awaited_once()
        assert record.name == "Last Year Students"

    @pytest.mark.asyncio
    async def test_duplicate_name_raises(self, school_store, mock_db) -> None:
        mock_db.commit.side_effect = _db_error(IntegrityError)

        with pytest.raises(ClassNameExistsError):
            await school_store.create_class("Class 2")

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_errors_raise_store_error(self, school_store, mock_db) -> None:
        mock_db.commit.side_effect = _db_error()

        with pytest.raises(SchoolStoreError) as exc_info:
            await school_store.create_class("Class 2")

        assert not isinstance(exc_info.value, ClassNameExistsError)


class TestMoveStudents:
    """Tests for guarded moves."""

    @pytest.mark.asyncio
    async def test_classifies_each_student(self, school_store, mock_db) -> None:
        """Test moved, already moved, stale and missing students."""
        mock_db.execute.side_effect = [
            _returning(["s1"]),
            _rows([("s2", "dest"), ("s3", "other")]),
        ]

        outcomes = await school_store.move_students(["s1", "s2", "s3", "s4"], "src", "dest")

        assert outcomes == {
            "s1": MoveOutcome.MOVED,
            "s2": MoveOutcome.ALREADY_MOVED,
            "s3": MoveOutcome.STALE,
            "s4": MoveOutcome.NOT_FOUND,
        }
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_all_moved_skips_lookup(self, school_store, mock_db) -> None:
        mock_db.execute.return_value = _returning(["s1", "s2"])

        outcomes = await school_store.move_students(["s1", "s2"], "src", "dest")

        assert set(outcomes.values()) == {MoveOutcome.MOVED}
        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, school_store, mock_db) -> None:
        assert await school_store.move_students([], "src", "dest") == {}
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_lookup_after_commit_keeps_moved(self, school_store, mock_db) -> None:
        """Test committed moves are still reported when classifying the rest fails."""
        mock_db.execute.side_effect = [_returning(["s1"]), _db_error()]

        outcomes = await school_store.move_students(["s1", "s2"], "src", "dest")

        assert outcomes == {"s1": MoveOutcome.MOVED, "s2": MoveOutcome.STALE}
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_rolls_back(self, school_store, mock_db) -> None:
        mock_db.execute.side_effect = _db_error()

        with pytest.raises(SchoolStoreError):
            await school_store.move_students(["s1"], "src", "dest")

        mock_db.rollback.assert_awaited_once()


class TestDeleteStudents:
    """Tests for guarded deletions."""

    @pytest.mark.asyncio
    async def test_classifies_each_student(self, school_store, mock_db) -> None:
        mock_db.execute.side_effect = [
            _returning(["s1"]),
            _rows([("s2", "class-10")]),
        ]

        outcomes = await school_store.delete_students(["s1", "s2", "s3"], "pool")

        assert outcomes == {
            "s1": DeleteOutcome.DELETED,
            "s2": DeleteOutcome.STALE,
            "s3": DeleteOutcome.NOT_FOUND,
        }

    @pytest.mark.asyncio
    async def test_failed_lookup_after_commit_keeps_deleted(
        self, school_store, mock_db
    ) -> None:
        mock_db.execute.side_effect = [_returning(["s1", "s2"]), _db_error()]

        outcomes = await school_store.delete_students(["s1", "s2", "s3"], "pool")

        assert outcomes == {
            "s1": DeleteOutcome.DELETED,
            "s2": DeleteOutcome.DELETED,
            "s3": DeleteOutcome.STALE,
        }
        mock_db.commit.assert_awaited_once()
