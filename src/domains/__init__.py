# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the Academic Promotion Engine.

This package contains domain services that encapsulate business logic.

Domains:
    promotion: Grade promotion cycles, graduation and manual promotion.
"""
