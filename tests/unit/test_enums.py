"""Unit tests for enums module - dose status, timeline, rule and language enumerations.

Tests cover:
- DoseStatus values, string conversion and actionable statuses
- VaccineRule string conversion and default for None
- Language string conversion, codes and Babel locales
- Error handling for invalid values

Real-world significance:
- Status strings appear in reports consumed by clinic staff
- The rule name in the catalog selects the scheduling logic for a vaccine
- Language determines reminder text and date formatting
"""

from __future__ import annotations

import pytest

from vaxplan.enums import DoseStatus, Language, TimelineEventType, VaccineRule


@pytest.mark.unit
class TestDoseStatus:
    """Unit tests for DoseStatus enumeration."""

    def test_enum_values_correct(self) -> None:
        """Verify DoseStatus has the four reported values.

        Real-world significance:
        - These strings are written verbatim into recommendation reports
        """
        assert DoseStatus.COMPLETED.value == "completed"
        assert DoseStatus.NEEDED.value == "needed"
        assert DoseStatus.OVERDUE.value == "overdue"
        assert DoseStatus.UPCOMING.value == "upcoming"

    def test_from_string_case_insensitive(self) -> None:
        """Verify from_string accepts any case and surrounding spaces."""
        assert DoseStatus.from_string("Overdue") == DoseStatus.OVERDUE
        assert DoseStatus.from_string(" NEEDED ") == DoseStatus.NEEDED

    def test_from_string_invalid_raises(self) -> None:
        """Verify ValueError for an unknown status."""
        with pytest.raises(ValueError, match="Unknown dose status"):
            DoseStatus.from_string("pending")

    def test_actionable_statuses(self) -> None:
        """Verify only needed and overdue call for a dose now.

        Real-world significance:
        - Drives the "needed vaccines" view
        """
        assert DoseStatus.NEEDED.is_actionable
        assert DoseStatus.OVERDUE.is_actionable
        assert not DoseStatus.UPCOMING.is_actionable
        assert not DoseStatus.COMPLETED.is_actionable


@pytest.mark.unit
class TestTimelineEventType:
    """Unit tests for TimelineEventType enumeration."""

    def test_enum_values_correct(self) -> None:
        assert {t.value for t in TimelineEventType} == {"completed", "upcoming", "overdue"}


@pytest.mark.unit
class TestVaccineRule:
    """Unit tests for VaccineRule enumeration."""

    def test_from_string_none_defaults_to_generic(self) -> None:
        """Verify a catalog entry without a rule uses the generic schedule.

        Real-world significance:
        - Most catalog vaccines have no specialized logic
        """
        assert VaccineRule.from_string(None) == VaccineRule.GENERIC

    def test_from_string_valid(self) -> None:
        assert VaccineRule.from_string("mmr_varicella") == VaccineRule.MMR_VARICELLA
        assert VaccineRule.from_string("DTAP_IPV_HIB") == VaccineRule.DTAP_IPV_HIB

    def test_from_string_invalid_raises(self) -> None:
        """Verify a typo in the catalog rule fails loudly.

        Real-world significance:
        - A misspelled rule must not silently fall back to generic scheduling
        """
        with pytest.raises(ValueError, match="Unknown vaccine rule"):
            VaccineRule.from_string("mmr-varicella")


@pytest.mark.unit
class TestLanguage:
    """Unit tests for Language enumeration."""

    def test_from_string_none_defaults_to_english(self) -> None:
        assert Language.from_string(None) == Language.ENGLISH

    def test_from_string_case_insensitive(self) -> None:
        assert Language.from_string("FR") == Language.FRENCH

    def test_from_string_invalid_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported language"):
            Language.from_string("de")

    def test_all_codes(self) -> None:
        assert Language.all_codes() == {"en", "fr"}

    def test_locale_for_babel(self) -> None:
        """Verify each language maps to a Canadian Babel locale."""
        assert Language.ENGLISH.locale == "en_CA"
        assert Language.FRENCH.locale == "fr_CA"
