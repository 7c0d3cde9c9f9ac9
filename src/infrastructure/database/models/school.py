# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class and student models.

Only the columns the promotion engine reads or writes are modelled here.
The grade level of a class is not stored: it is derived from the class
name (see src.domains.promotion.ordinal).
"""

from uuid import uuid4

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin


def _new_id() -> str:
    return str(uuid4())


class SchoolClass(TimestampMixin, Base):
    """A class (grade/section) students are assigned to.

    Class names are unique; the promotion cycle relies on this to resolve
    destination classes by name without creating duplicates.
    """

    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("name", name="uq_classes_name"),)

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)

    students: Mapped[list["Student"]] = relationship(back_populates="school_class")

    def __repr__(self) -> str:
        return f"<SchoolClass {self.name!r} ({self.id})>"


class Student(TimestampMixin, Base):
    """A student. class_id is null while the student is unassigned."""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    class_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    school_class: Mapped[SchoolClass | None] = relationship(back_populates="students")

    def __repr__(self) -> str:
        return f"<Student {self.id} class={self.class_id}>"
