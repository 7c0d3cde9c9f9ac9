# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class registry: find-or-create classes by name.

The registry is created per promotion cycle. It remembers the classes it
resolved and created during that cycle so a destination needed by several
source classes (several sections promoting into the terminal pool) is
created once and reported once.
"""

from __future__ import annotations

import logging

from src.domains.promotion.errors import (
    ClassNameExistsError,
    ClassResolutionFailure,
    SchoolStoreError,
)
from src.domains.promotion.models import ClassInfo, ClassRecord
from src.domains.promotion.ordinal import ordinal_of
from src.domains.promotion.store import SchoolStore

logger = logging.getLogger(__name__)


class ClassRegistry:
    """Registry of classes backed by a SchoolStore.

    Attributes:
        store: School store used for reads and class creation.
    """

    def __init__(self, store: SchoolStore) -> None:
        self.store = store
        self._by_name: dict[str, ClassInfo] = {}
        self._created: list[ClassInfo] = []

    @property
    def created(self) -> list[ClassInfo]:
        """Classes created through this registry, in creation order."""
        return list(self._created)

    async def list_classes(self) -> list[ClassInfo]:
        """List every class with its ordinal and roster size.

        Raises:
            SchoolStoreError: If the store cannot be read.
        """
        records = await self.store.list_classes()
        return [to_class_info(record) for record in records]

    async def find_by_name(self, name: str) -> ClassInfo | None:
        """Find a class by exact name.

        Raises:
            SchoolStoreError: If the store cannot be read.
        """
        cached = self._by_name.get(name)
        if cached is not None:
            return cached

        record = await self.store.find_class_by_name(name)
        if record is None:
            return None

        info = to_class_info(record)
        self._by_name[name] = info
        return info

    async def find_or_create(self, name: str) -> ClassInfo:
        """Return the class called `name`, creating it if needed.

        A new class has no teacher. If creation loses a race against
        another writer (unique name violation) the existing row is used.

        Raises:
            ClassResolutionFailure: If the class can be neither found nor
                created.
        """
        try:
            existing = await self.find_by_name(name)
            if existing is not None:
                return existing

            try:
                record = await self.store.create_class(name, teacher_id=None)
            except ClassNameExistsError:
                logger.warning("Class '%s' was created concurrently, reusing it", name)
                existing = await self.find_by_name(name)
                if existing is None:
                    raise ClassResolutionFailure(name, "name taken but class not readable")
                return existing
        except SchoolStoreError as e:
            raise ClassResolutionFailure(name, str(e)) from e

        info = to_class_info(record)
        self._by_name[name] = info
        self._created.append(info)

        logger.info("Created destination class '%s' (%s)", info.name, info.id)

        return info

    async def roster_of(self, class_id: str) -> list[str]:
        """Student ids of a class, ordered by id.

        Raises:
            SchoolStoreError: If the store cannot be read.
        """
        students = await self.store.list_students_by_class(class_id)
        return sorted(student.id for student in students)


def to_class_info(record: ClassRecord) -> ClassInfo:
    """Convert a store record to the registry view."""
    return ClassInfo(
        id=record.id,
        name=record.name,
        ordinal=ordinal_of(record.name),
        teacher_id=record.teacher_id,
        student_count=record.student_count,
    )
