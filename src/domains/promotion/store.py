# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School store: the collaborator the promotion engine reads and writes.

SchoolStore is the abstract contract (list classes, list a roster, create
a class, move students, delete students). SqlSchoolStore implements it on
the school database with SQLAlchemy async sessions.

Moves and deletes are batch operations that still report an outcome per
student id. Both are guarded on the student's current class, which is what
makes re-running a cycle safe.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.promotion.errors import ClassNameExistsError, SchoolStoreError
from src.domains.promotion.models import (
    ClassRecord,
    DeleteOutcome,
    MoveOutcome,
    StudentRecord,
)
from src.infrastructure.database.models.school import SchoolClass, Student

logger = logging.getLogger(__name__)


class SchoolStore(ABC):
    """Abstract access to classes and students."""

    @abstractmethod
    async def list_classes(self) -> list[ClassRecord]:
        """List every class with its current student count."""

    @abstractmethod
    async def get_class(self, class_id: str) -> ClassRecord | None:
        """Get a class by id."""

    @abstractmethod
    async def find_class_by_name(self, name: str) -> ClassRecord | None:
        """Get a class by exact name."""

    @abstractmethod
    async def list_students_by_class(self, class_id: str) -> list[StudentRecord]:
        """List students of a class ordered by id."""

    @abstractmethod
    async def create_class(self, name: str, teacher_id: str | None = None) -> ClassRecord:
        """Create a class.

        Raises:
            ClassNameExistsError: If a class with this name already exists.
        """

    @abstractmethod
    async def move_students(
        self,
        student_ids: Sequence[str],
        from_class_id: str,
        to_class_id: str,
    ) -> dict[str, MoveOutcome]:
        """Move students whose class is still from_class_id."""

    @abstractmethod
    async def delete_students(
        self,
        student_ids: Sequence[str],
        class_id: str,
    ) -> dict[str, DeleteOutcome]:
        """Delete students whose class is still class_id."""


class SqlSchoolStore(SchoolStore):
    """SchoolStore backed by the school database.

    Every write commits before returning, so each batch is durable on its
    own and a later failure never rolls it back.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the store.

        Args:
            db: Async database session for the school database.
        """
        self.db = db

    async def list_classes(self) -> list[ClassRecord]:
        count_query = (
            select(Student.class_id, func.count().label("student_count"))
            .where(Student.class_id.is_not(None))
            .group_by(Student.class_id)
            .subquery()
        )
        query = (
            select(SchoolClass, func.coalesce(count_query.c.student_count, 0))
            .outerjoin(count_query, count_query.c.class_id == SchoolClass.id)
            .order_by(SchoolClass.name)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise SchoolStoreError("Failed to list classes", e) from e

        return [self._to_record(class_, count) for class_, count in result.all()]

    async def get_class(self, class_id: str) -> ClassRecord | None:
        query = select(SchoolClass).where(SchoolClass.id == class_id)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise SchoolStoreError(f"Failed to get class {class_id}", e) from e

        class_ = result.scalar_one_or_none()
        return self._to_record(class_) if class_ else None

    async def find_class_by_name(self, name: str) -> ClassRecord | None:
        query = select(SchoolClass).where(SchoolClass.name == name)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise SchoolStoreError(f"Failed to find class '{name}'", e) from e

        class_ = result.scalar_one_or_none()
        return self._to_record(class_) if class_ else None

    async def list_students_by_class(self, class_id: str) -> list[StudentRecord]:
        query = (
            select(Student.id, Student.class_id)
            .where(Student.class_id == class_id)
            .order_by(Student.id)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise SchoolStoreError(f"Failed to list students of class {class_id}", e) from e

        return [StudentRecord(id=str(sid), class_id=str(cid)) for sid, cid in result.all()]

    async def create_class(self, name: str, teacher_id: str | None = None) -> ClassRecord:
        class_ = SchoolClass(name=name, teacher_id=teacher_id)
        self.db.add(class_)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ClassNameExistsError(f"Class '{name}' already exists", e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SchoolStoreError(f"Failed to create class '{name}'", e) from e

        await self.db.refresh(class_)

        logger.info("Created class: %s (%s)", class_.name, class_.id)

        return self._to_record(class_)

    async def move_students(
        self,
        student_ids: Sequence[str],
        from_class_id: str,
        to_class_id: str,
    ) -> dict[str, MoveOutcome]:
        ids = list(dict.fromkeys(student_ids))
        if not ids:
            return {}

        # Conditional update: only rows still in the source class move.
        stmt = (
            update(Student)
            .where(Student.id.in_(ids), Student.class_id == from_class_id)
            .values(class_id=to_class_id)
            .returning(Student.id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            moved = {str(sid) for sid in result.scalars().all()}
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SchoolStoreError(
                f"Failed to move students from {from_class_id} to {to_class_id}", e
            ) from e

        current = await self._after_commit_classes(
            [sid for sid in ids if sid not in moved], committed=len(moved)
        )

        outcomes: dict[str, MoveOutcome] = {}
        for sid in ids:
            if sid in moved:
                outcomes[sid] = MoveOutcome.MOVED
            elif current is None:
                outcomes[sid] = MoveOutcome.STALE
            elif sid not in current:
                outcomes[sid] = MoveOutcome.NOT_FOUND
            elif current[sid] == to_class_id:
                outcomes[sid] = MoveOutcome.ALREADY_MOVED
            else:
                outcomes[sid] = MoveOutcome.STALE
        return outcomes

    async def delete_students(
        self,
        student_ids: Sequence[str],
        class_id: str,
    ) -> dict[str, DeleteOutcome]:
        ids = list(dict.fromkeys(student_ids))
        if not ids:
            return {}

        stmt = (
            delete(Student)
            .where(Student.id.in_(ids), Student.class_id == class_id)
            .returning(Student.id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            deleted = {str(sid) for sid in result.scalars().all()}
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SchoolStoreError(f"Failed to delete students of class {class_id}", e) from e

        current = await self._after_commit_classes(
            [sid for sid in ids if sid not in deleted], committed=len(deleted)
        )

        outcomes: dict[str, DeleteOutcome] = {}
        for sid in ids:
            if sid in deleted:
                outcomes[sid] = DeleteOutcome.DELETED
            elif current is None:
                outcomes[sid] = DeleteOutcome.STALE
            elif sid not in current:
                outcomes[sid] = DeleteOutcome.NOT_FOUND
            else:
                outcomes[sid] = DeleteOutcome.STALE
        return outcomes

    async def _after_commit_classes(
        self, student_ids: list[str], committed: int
    ) -> dict[str, str | None] | None:
        """Classify the ids a committed write did not touch.

        The write is already durable at this point, so a failed lookup
        must not turn it into an error. Returns None when the remaining
        ids cannot be classified; callers report them as stale.
        """
        try:
            return await self._current_classes(student_ids)
        except SchoolStoreError as e:
            logger.warning(
                "Committed %d rows but could not classify %d others: %s",
                committed,
                len(student_ids),
                e,
            )
            return None

    async def _current_classes(self, student_ids: list[str]) -> dict[str, str | None]:
        """Map existing student ids to their current class id."""
        if not student_ids:
            return {}

        query = select(Student.id, Student.class_id).where(Student.id.in_(student_ids))
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SchoolStoreError("Failed to read student classes", e) from e

        return {str(sid): (str(cid) if cid else None) for sid, cid in result.all()}

    @staticmethod
    def _to_record(class_: SchoolClass, student_count: int = 0) -> ClassRecord:
        return ClassRecord(
            id=str(class_.id),
            name=class_.name,
            teacher_id=str(class_.teacher_id) if class_.teacher_id else None,
            student_count=int(student_count or 0),
        )
