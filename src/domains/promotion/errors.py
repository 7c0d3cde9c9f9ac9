# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the promotion domain.

Only SnapshotFailure and ConcurrentCycleRejected stop a cycle from
running. Per-class and per-student problems are caught where they happen
and recorded in the cycle report as FailureRecord entries (see
FailureKind in src.domains.promotion.models).
"""

from typing import Optional


class PromotionError(Exception):
    """Base exception for promotion domain errors."""

    pass


class SchoolStoreError(PromotionError):
    """Raised when the underlying school store fails.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class ClassNameExistsError(SchoolStoreError):
    """Raised when creating a class whose name is already taken."""

    pass


class ClassNotFoundError(PromotionError):
    """Raised when a class referenced by id does not exist."""

    pass


class SnapshotFailure(PromotionError):
    """Raised when classes or rosters cannot be enumerated.

    The cycle aborts before any write and can simply be retried.
    """

    pass


class ClassResolutionFailure(PromotionError):
    """Raised when a destination class can be neither found nor created."""

    def __init__(self, class_name: str, reason: str) -> None:
        super().__init__(f"Could not resolve class '{class_name}': {reason}")
        self.class_name = class_name
        self.reason = reason


class ConcurrentCycleRejected(PromotionError):
    """Raised when a promotion cycle is already running."""

    def __init__(self, message: str = "A promotion cycle is already in progress") -> None:
        super().__init__(message)


class InvalidPromotionRequest(PromotionError):
    """Raised when a manual promotion request is malformed."""

    pass
