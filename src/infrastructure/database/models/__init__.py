# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative models for the school database."""

from src.infrastructure.database.models.base import Base, TimestampMixin
from src.infrastructure.database.models.school import SchoolClass, Student

__all__ = [
    "Base",
    "TimestampMixin",
    "SchoolClass",
    "Student",
]
