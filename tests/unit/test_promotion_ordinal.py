# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for grade ordinal parsing."""

import pytest

from src.domains.promotion.ordinal import (
    DEFAULT_TERMINAL_CLASS_NAME,
    is_terminal,
    ordinal_of,
    successor_name,
)


class TestOrdinalOf:
    """Tests for ordinal_of."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Class 1", 1),
            ("Class 7", 7),
            ("Class 10", 10),
            ("Grade 3B", 3),
            ("12th Grade", 12),
            ("Class 3 Section 2", 3),
        ],
    )
    def test_first_integer_is_the_ordinal(self, name: str, expected: int) -> None:
        """Test the first digit run is parsed."""
        assert ordinal_of(name) == expected

    @pytest.mark.parametrize("name", ["Last Year Students", "Kindergarten", ""])
    def test_no_digits_has_no_ordinal(self, name: str) -> None:
        """Test names without digits are outside the grade sequence."""
        assert ordinal_of(name) is None


class TestSuccessorName:
    """Tests for successor_name."""

    def test_increments_below_max(self) -> None:
        """Test Class 7 moves to Class 8."""
        assert successor_name("Class 7", 10) == "Class 8"

    def test_max_goes_to_terminal_pool(self) -> None:
        """Test the highest grade moves to the terminal pool."""
        assert successor_name("Class 10", 10) == DEFAULT_TERMINAL_CLASS_NAME

    def test_above_max_goes_to_terminal_pool(self) -> None:
        """Test grades above max also move to the terminal pool."""
        assert successor_name("Class 12", 10) == DEFAULT_TERMINAL_CLASS_NAME

    def test_custom_terminal_name(self) -> None:
        """Test a configured terminal pool name is used."""
        assert successor_name("Class 6", 6, "Alumni") == "Alumni"

    def test_keeps_rest_of_name(self) -> None:
        """Test only the first digit run is replaced."""
        assert successor_name("Grade 3B", 10) == "Grade 4B"
        assert successor_name("Class 9 Section 2", 10) == "Class 10 Section 2"

    def test_digit_growth(self) -> None:
        """Test 9 becomes 10 without touching the rest."""
        assert successor_name("Class 9", 12) == "Class 10"

    def test_no_ordinal_has_no_successor(self) -> None:
        """Test names without digits have no successor."""
        assert successor_name(DEFAULT_TERMINAL_CLASS_NAME, 10) is None
        assert successor_name("Kindergarten", 10) is None


class TestIsTerminal:
    """Tests for is_terminal."""

    def test_exact_name(self) -> None:
        assert is_terminal("Last Year Students")

    def test_surrounding_whitespace(self) -> None:
        assert is_terminal("  Last Year Students ")

    def test_other_names(self) -> None:
        assert not is_terminal("Class 10")
        assert not is_terminal("last year students")
        assert not is_terminal("Alumni")
