# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models and migrations.

Tests model definitions and the initial school migration.
"""

import importlib

from src.infrastructure.database.models import Base, SchoolClass, Student


class TestSchoolClassModel:
    """Tests for the SchoolClass model."""

    def test_table_name(self) -> None:
        assert SchoolClass.__tablename__ == "classes"

    def test_name_is_unique(self) -> None:
        table = Base.metadata.tables["classes"]
        unique_columns = [
            [column.name for column in constraint.columns]
            for constraint in table.constraints
            if constraint.__class__.__name__ == "UniqueConstraint"
        ]

        assert ["name"] in unique_columns

    def test_teacher_is_optional(self) -> None:
        assert SchoolClass.__table__.c.teacher_id.nullable is True

    def test_repr(self) -> None:
        class_ = SchoolClass(id="c1", name="Class 1")

        assert "Class 1" in repr(class_)


class TestStudentModel:
    """Tests for the Student model."""

    def test_class_fk_sets_null_on_delete(self) -> None:
        column = Student.__table__.c.class_id
        foreign_key = next(iter(column.foreign_keys))

        assert column.nullable is True
        assert foreign_key.target_fullname == "classes.id"
        assert foreign_key.ondelete == "SET NULL"

    def test_class_id_is_indexed(self) -> None:
        assert Student.__table__.c.class_id.index is True


class TestInitialMigration:
    """Tests for the initial school migration module."""

    def test_is_the_first_revision(self) -> None:
        module = importlib.import_module(
            "src.infrastructure.database.migrations.school.001_initial_schema"
        )

        assert module.revision == "001_school_initial"
        assert module.down_revision is None
        assert callable(module.upgrade)
        assert callable(module.downgrade)
