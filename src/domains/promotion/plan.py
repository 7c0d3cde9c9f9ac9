# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion plan: what a cycle will do, computed from a snapshot.

Building a plan has no side effects. It maps every non-empty class of the
snapshot to one of:
- a move entry, for classes with an ordinal (to the next grade, or to the
  terminal pool from max_ordinal upwards);
- the sweep entry, for the terminal pool itself (its pre-cycle roster is
  graduated, never promoted further);
- the unsequenced list, for classes without an ordinal that are not the
  terminal pool. Those are left alone.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.domains.promotion.ordinal import (
    DEFAULT_TERMINAL_CLASS_NAME,
    is_terminal,
    successor_name,
)
from src.domains.promotion.snapshot import RosterSnapshot


@dataclass(frozen=True)
class MoveEntry:
    """Students of one source class and the class they move into."""

    source_class_id: str
    source_class_name: str
    source_ordinal: int
    destination_class_name: str
    student_ids: tuple[str, ...]
    into_terminal: bool = False


@dataclass(frozen=True)
class SweepEntry:
    """Pre-cycle roster of the terminal pool: the graduation candidates."""

    class_id: str
    class_name: str
    student_ids: tuple[str, ...]


@dataclass(frozen=True)
class PromotionPlan:
    """Moves and sweep derived from one snapshot.

    Attributes:
        max_ordinal: Highest grade of the sequence.
        terminal_class_name: Name of the terminal pool.
        moves: Move entries ordered by source ordinal, then name.
        sweep: Graduation candidates, None when the pool is absent or empty.
        unsequenced: Names of non-empty classes that carry no ordinal.
    """

    max_ordinal: int
    terminal_class_name: str
    moves: tuple[MoveEntry, ...] = ()
    sweep: SweepEntry | None = None
    unsequenced: tuple[str, ...] = ()

    @property
    def students_to_move(self) -> int:
        return sum(len(entry.student_ids) for entry in self.moves)

    @property
    def graduation_count(self) -> int:
        return len(self.sweep.student_ids) if self.sweep else 0

    @property
    def is_empty(self) -> bool:
        return not self.moves and self.sweep is None


def build_plan(
    snapshot: RosterSnapshot,
    max_ordinal: int,
    terminal_name: str = DEFAULT_TERMINAL_CLASS_NAME,
) -> PromotionPlan:
    """Compute the plan of a cycle.

    Args:
        snapshot: Rosters captured at cycle start.
        max_ordinal: Highest grade; classes at or above it move into the
            terminal pool.
        terminal_name: Name of the terminal pool.

    Returns:
        The plan. Nothing is created or mutated.

    Raises:
        ValueError: If max_ordinal is below 1.
    """
    if max_ordinal < 1:
        raise ValueError(f"max_ordinal must be at least 1, got {max_ordinal}")

    moves: list[MoveEntry] = []
    sweep: SweepEntry | None = None
    unsequenced: list[str] = []

    for roster in snapshot:
        if not roster.student_ids:
            continue

        if is_terminal(roster.name, terminal_name):
            sweep = SweepEntry(
                class_id=roster.class_id,
                class_name=roster.name,
                student_ids=roster.student_ids,
            )
            continue

        ordinal = roster.ordinal
        destination = successor_name(roster.name, max_ordinal, terminal_name)
        if ordinal is None or destination is None:
            unsequenced.append(roster.name)
            continue

        moves.append(
            MoveEntry(
                source_class_id=roster.class_id,
                source_class_name=roster.name,
                source_ordinal=ordinal,
                destination_class_name=destination,
                student_ids=roster.student_ids,
                into_terminal=destination == terminal_name,
            )
        )

    moves.sort(key=lambda entry: (entry.source_ordinal, entry.source_class_name))

    return PromotionPlan(
        max_ordinal=max_ordinal,
        terminal_class_name=terminal_name,
        moves=tuple(moves),
        sweep=sweep,
        unsequenced=tuple(sorted(unsequenced)),
    )
