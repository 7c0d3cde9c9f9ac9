# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the promotion engine.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.promotion.max_ordinal)
    10
"""

from src.core.config.settings import (
    APISettings,
    DatabaseSettings,
    PromotionSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "PromotionSettings",
    "APISettings",
]
