# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Roster snapshot taken at the start of a promotion cycle.

Every decision of a cycle (what moves where, who graduates) is made
against this snapshot and never against live rosters. A student moved
into "Class 8" during the cycle is therefore not moved again into
"Class 9", and students arriving in the terminal pool are not graduated
in the same cycle.

Each grade may be held by a single class. Two classes that parse to
the same ordinal ("Class 5" and "5B") abort the snapshot.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from src.domains.promotion.errors import SchoolStoreError, SnapshotFailure
from src.domains.promotion.models import ClassRosterModel, SnapshotModel
from src.domains.promotion.ordinal import ordinal_of
from src.domains.promotion.registry import ClassRegistry
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassRoster:
    """Roster of one class at snapshot time."""

    class_id: str
    name: str
    student_ids: tuple[str, ...] = ()

    @property
    def ordinal(self) -> int | None:
        return ordinal_of(self.name)

    def __len__(self) -> int:
        return len(self.student_ids)


@dataclass(frozen=True)
class RosterSnapshot:
    """Immutable capture of every class roster at cycle start.

    Attributes:
        rosters: Read-only mapping of class id to ClassRoster.
        captured_at: When the snapshot was taken.
    """

    rosters: Mapping[str, ClassRoster]
    captured_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        # Freeze the mapping even if a plain dict was passed in.
        object.__setattr__(self, "rosters", MappingProxyType(dict(self.rosters)))

    def __iter__(self) -> Iterator[ClassRoster]:
        return iter(self.rosters.values())

    def __len__(self) -> int:
        return len(self.rosters)

    def get(self, class_id: str) -> ClassRoster | None:
        return self.rosters.get(class_id)

    def find_by_name(self, name: str) -> ClassRoster | None:
        for roster in self.rosters.values():
            if roster.name == name:
                return roster
        return None

    @property
    def total_students(self) -> int:
        return sum(len(roster) for roster in self.rosters.values())

    def to_model(self) -> SnapshotModel:
        """Serialize for inclusion in a cycle report."""
        return SnapshotModel(
            captured_at=self.captured_at,
            classes=[
                ClassRosterModel(
                    class_id=roster.class_id,
                    name=roster.name,
                    student_ids=list(roster.student_ids),
                )
                for roster in self.rosters.values()
            ],
        )

    @classmethod
    def from_model(cls, model: SnapshotModel) -> RosterSnapshot:
        """Rebuild a snapshot returned by an earlier cycle report.

        Raises:
            SnapshotFailure: If the serialized snapshot is inconsistent.
        """
        rosters: dict[str, ClassRoster] = {}
        for item in model.classes:
            if item.class_id in rosters:
                raise SnapshotFailure(f"Snapshot lists class {item.class_id} twice")
            rosters[item.class_id] = ClassRoster(
                class_id=item.class_id,
                name=item.name,
                student_ids=tuple(sorted(set(item.student_ids))),
            )
        _check_unique_names(rosters.values())
        return cls(rosters=rosters, captured_at=ensure_utc(model.captured_at))


async def capture_snapshot(registry: ClassRegistry) -> RosterSnapshot:
    """Capture every class roster, before any write of the cycle.

    Args:
        registry: Class registry of the cycle.

    Returns:
        The immutable snapshot.

    Raises:
        SnapshotFailure: If classes or rosters cannot be read, or if two
            classes share a name or a grade.
    """
    captured_at = utc_now()
    rosters: dict[str, ClassRoster] = {}

    try:
        classes = await registry.list_classes()
        for class_ in classes:
            student_ids = await registry.roster_of(class_.id)
            rosters[class_.id] = ClassRoster(
                class_id=class_.id,
                name=class_.name,
                student_ids=tuple(student_ids),
            )
    except SchoolStoreError as e:
        raise SnapshotFailure(f"Could not capture rosters: {e}") from e

    _check_unique_names(rosters.values())

    snapshot = RosterSnapshot(rosters=rosters, captured_at=captured_at)

    logger.info(
        "Captured roster snapshot: %d classes, %d students",
        len(snapshot),
        snapshot.total_students,
    )

    return snapshot


def _check_unique_names(rosters: Iterable[ClassRoster]) -> None:
    """Reject repeated names and two classes of the same grade."""
    rosters = list(rosters)
    counts = Counter(roster.name for roster in rosters)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        raise SnapshotFailure(f"Duplicate class names: {', '.join(duplicates)}")

    by_ordinal: dict[int, list[str]] = {}
    for roster in rosters:
        if roster.ordinal is not None:
            by_ordinal.setdefault(roster.ordinal, []).append(roster.name)
    clashes = [sorted(names) for _, names in sorted(by_ordinal.items()) if len(names) > 1]
    if clashes:
        raise SnapshotFailure(
            "Classes share a grade: " + "; ".join(", ".join(names) for names in clashes)
        )


async def verify_snapshot(snapshot: RosterSnapshot, registry: ClassRegistry) -> None:
    """Check a replayed snapshot against the live classes.

    Every class of the snapshot must still exist under the same name.
    Otherwise a stale or edited snapshot could make an ordinary class
    pass for the terminal pool.

    Raises:
        SnapshotFailure: If a class is unknown or was renamed, or if the
            classes cannot be read.
    """
    try:
        classes = await registry.list_classes()
    except SchoolStoreError as e:
        raise SnapshotFailure(f"Could not verify snapshot: {e}") from e

    live_names = {class_.id: class_.name for class_ in classes}
    for roster in snapshot:
        live_name = live_names.get(roster.class_id)
        if live_name is None:
            raise SnapshotFailure(f"Snapshot class {roster.class_id} no longer exists")
        if live_name != roster.name:
            raise SnapshotFailure(
                f"Snapshot class {roster.class_id} is named {roster.name!r}, "
                f"store has {live_name!r}"
            )
