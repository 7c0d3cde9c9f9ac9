"""Academic Promotion Engine.

Advances every student one grade level at the end of a term, creates
target classes on demand and graduates students who completed the
terminal grade.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
