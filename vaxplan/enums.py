"""Enumerations for the vaccine recommendation engine."""

from enum import Enum


class DoseStatus(Enum):
    """Dosing status reported for one vaccine."""

    COMPLETED = "completed"
    NEEDED = "needed"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"

    @classmethod
    def from_string(cls, value: str) -> "DoseStatus":
        """Convert string to DoseStatus.

        Parameters
        ----------
        value : str
            Status name ('completed', 'needed', 'overdue', 'upcoming').
            Case-insensitive.

        Returns
        -------
        DoseStatus
            Corresponding DoseStatus enum.

        Raises
        ------
        ValueError
            If value is not a valid status name.
        """
        value_lower = value.strip().lower()
        for status in cls:
            if status.value == value_lower:
                return status

        raise ValueError(
            f"Unknown dose status: {value}. "
            f"Valid options: {', '.join(s.value for s in cls)}"
        )

    @property
    def is_actionable(self) -> bool:
        """True for statuses that call for a dose now."""
        return self in (DoseStatus.NEEDED, DoseStatus.OVERDUE)


class TimelineEventType(Enum):
    """Kind of point shown on a patient timeline."""

    COMPLETED = "completed"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


class VaccineRule(Enum):
    """Evaluator used to schedule a catalog entry.

    Each catalog entry names its rule explicitly so that evaluator selection
    never depends on the wording of a vaccine's display name.

    Attributes
    ----------
    GENERIC : str
        Interval/booster schedule taken straight from the catalog entry.
    MMR_VARICELLA : str
        Live-virus family (measles, mumps, rubella, varicella).
    INFLUENZA : str
        Annual influenza with the first-time two-dose rule for children.
    PNEUMOCOCCAL : str
        Conjugate schedule with high-risk and routine branches.
    MENINGOCOCCAL : str
        Conjugate schedule with high-risk and routine branches.
    DTAP_IPV_HIB : str
        Fixed four-dose primary series.
    """

    GENERIC = "generic"
    MMR_VARICELLA = "mmr_varicella"
    INFLUENZA = "influenza"
    PNEUMOCOCCAL = "pneumococcal"
    MENINGOCOCCAL = "meningococcal"
    DTAP_IPV_HIB = "dtap_ipv_hib"

    @classmethod
    def from_string(cls, value: str | None) -> "VaccineRule":
        """Convert string to VaccineRule.

        Parameters
        ----------
        value : str | None
            Rule name, or None for the default (GENERIC).

        Returns
        -------
        VaccineRule
            Corresponding rule, defaults to GENERIC if value is None.

        Raises
        ------
        ValueError
            If value is not a valid rule name.
        """
        if value is None:
            return cls.GENERIC

        value_lower = value.strip().lower()
        for rule in cls:
            if rule.value == value_lower:
                return rule

        raise ValueError(
            f"Unknown vaccine rule: {value}. "
            f"Valid options: {', '.join(r.value for r in cls)}"
        )


class Language(Enum):
    """Supported languages for reminder text and display dates.

    Attributes
    ----------
    ENGLISH : str
        English language code ('en').
    FRENCH : str
        French language code ('fr').
    """

    ENGLISH = "en"
    FRENCH = "fr"

    @classmethod
    def from_string(cls, value: str | None) -> "Language":
        """Convert string to Language enum.

        Parameters
        ----------
        value : str | None
            Language code ('en', 'fr'), or None for default (ENGLISH).
            Case-insensitive.

        Returns
        -------
        Language
            Corresponding Language enum value.

        Raises
        ------
        ValueError
            If value is not a valid language code.

        Examples
        --------
        >>> Language.from_string('FR')
        <Language.FRENCH: 'fr'>

        >>> Language.from_string(None)
        <Language.ENGLISH: 'en'>
        """
        if value is None:
            return cls.ENGLISH

        value_lower = value.lower()
        for lang in cls:
            if lang.value == value_lower:
                return lang

        raise ValueError(
            f"Unsupported language: {value}. "
            f"Valid options: {', '.join(lang.value for lang in cls)}"
        )

    @classmethod
    def all_codes(cls) -> set[str]:
        """Get set of all supported language codes."""
        return {lang.value for lang in cls}

    @property
    def locale(self) -> str:
        """Babel locale used for date formatting."""
        return {"en": "en_CA", "fr": "fr_CA"}[self.value]
