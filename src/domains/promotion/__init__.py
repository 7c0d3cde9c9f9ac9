# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Promotion domain: end-of-year grade promotion and graduation.

A cycle snapshots every class roster, moves each cohort one grade up
(creating destination classes on demand), and deletes the pre-cycle
members of the terminal pool once graduation is confirmed.

Usage:
    from src.domains.promotion import PromotionCycleOrchestrator, LocalCycleLock

    orchestrator = PromotionCycleOrchestrator(store, LocalCycleLock())
    report = await orchestrator.run(confirm_graduation=True)
"""

from src.domains.promotion.errors import (
    ClassNameExistsError,
    ClassNotFoundError,
    ClassResolutionFailure,
    ConcurrentCycleRejected,
    InvalidPromotionRequest,
    PromotionError,
    SchoolStoreError,
    SnapshotFailure,
)
from src.domains.promotion.executor import PromotionExecutor
from src.domains.promotion.lock import CycleLock, LocalCycleLock, RedisCycleLock
from src.domains.promotion.orchestrator import PromotionCycleOrchestrator
from src.domains.promotion.ordinal import (
    DEFAULT_TERMINAL_CLASS_NAME,
    is_terminal,
    ordinal_of,
    successor_name,
)
from src.domains.promotion.plan import MoveEntry, PromotionPlan, SweepEntry, build_plan
from src.domains.promotion.registry import ClassRegistry
from src.domains.promotion.service import PromotionService
from src.domains.promotion.snapshot import (
    ClassRoster,
    RosterSnapshot,
    capture_snapshot,
    verify_snapshot,
)
from src.domains.promotion.store import SchoolStore, SqlSchoolStore
from src.domains.promotion.sweeper import GraduationSweeper

__all__ = [
    # Errors
    "PromotionError",
    "SchoolStoreError",
    "ClassNameExistsError",
    "ClassNotFoundError",
    "ClassResolutionFailure",
    "ConcurrentCycleRejected",
    "InvalidPromotionRequest",
    "SnapshotFailure",
    # Ordinals
    "DEFAULT_TERMINAL_CLASS_NAME",
    "ordinal_of",
    "successor_name",
    "is_terminal",
    # Store and registry
    "SchoolStore",
    "SqlSchoolStore",
    "ClassRegistry",
    # Cycle
    "ClassRoster",
    "RosterSnapshot",
    "capture_snapshot",
    "MoveEntry",
    "SweepEntry",
    "PromotionPlan",
    "build_plan",
    "PromotionExecutor",
    "GraduationSweeper",
    "CycleLock",
    "LocalCycleLock",
    "RedisCycleLock",
    "PromotionCycleOrchestrator",
    "PromotionService",
]
