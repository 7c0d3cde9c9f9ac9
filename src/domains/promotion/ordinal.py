# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade ordinal parsing from class names.

Class names double as grade numbers ("Class 7" is grade 7). This is the
only module that knows the parsing rule, so swapping it for an explicit
grade column does not touch the promotion workflow.
"""

import re

DEFAULT_TERMINAL_CLASS_NAME = "Last Year Students"

_DIGITS = re.compile(r"\d+")


def ordinal_of(name: str) -> int | None:
    """Extract the grade ordinal from a class name.

    Args:
        name: Class name, e.g. "Class 7" or "Grade 10B".

    Returns:
        The first integer in the name, or None when there is none (the
        class is not part of the grade sequence).

    Example:
        >>> ordinal_of("Class 7")
        7
        >>> ordinal_of("Last Year Students") is None
        True
    """
    match = _DIGITS.search(name)
    if match is None:
        return None
    return int(match.group())


def successor_name(
    name: str,
    max_ordinal: int,
    terminal_name: str = DEFAULT_TERMINAL_CLASS_NAME,
) -> str | None:
    """Name of the class the students of `name` move into.

    Args:
        name: Current class name.
        max_ordinal: Highest grade of the sequence.
        terminal_name: Name of the pool past the highest grade.

    Returns:
        The name with its first digit run incremented while the ordinal is
        below max_ordinal, the terminal pool name from max_ordinal upwards,
        or None when the name carries no ordinal.

    Example:
        >>> successor_name("Class 7", 10)
        'Class 8'
        >>> successor_name("Class 10", 10)
        'Last Year Students'
    """
    ordinal = ordinal_of(name)
    if ordinal is None:
        return None
    if ordinal >= max_ordinal:
        return terminal_name
    return _DIGITS.sub(str(ordinal + 1), name, count=1)


def is_terminal(name: str, terminal_name: str = DEFAULT_TERMINAL_CLASS_NAME) -> bool:
    """Whether `name` is the terminal pool."""
    return name.strip() == terminal_name.strip()
