"""Unit tests for filename helpers."""

from datetime import datetime

import pytest

from icsforge.utils.text import safe_filename, slugify


class TestSlugify:
    """Test slug generation."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Meeting @ 3pm", "meeting-3pm"),
            ("  Team   Sync  ", "team-sync"),
            ("Q3/Q4 review: budget!!", "q3-q4-review-budget"),
            ("---already-slugged---", "already-slugged"),
            ("Café con Ana", "caf-con-ana"),
            ("2025", "2025"),
        ],
    )
    def test_slugs(self, text: str, expected: str) -> None:
        """Test normalization of mixed input."""
        assert slugify(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "!!!", "日本語"])
    def test_fallback(self, text: str) -> None:
        """Test that nothing usable yields the fallback slug."""
        assert slugify(text) == "event"


class TestSafeFilename:
    """Test output filename construction."""

    def test_without_date(self) -> None:
        """Test summary-only names."""
        assert safe_filename("Dentist Appointment") == "dentist-appointment.ics"

    def test_with_date(self) -> None:
        """Test the start date suffix."""
        assert safe_filename("Dentist", datetime(2025, 3, 10, 9, 0)) == "dentist-20250310.ics"

    def test_custom_extension(self) -> None:
        """Test overriding the extension."""
        assert safe_filename("", extension=".txt") == "event.txt"
