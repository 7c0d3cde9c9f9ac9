# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic migrations for the school database live in school/. They can be
applied with the alembic CLI (see alembic.ini at the project root).
"""
