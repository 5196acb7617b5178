"""Unified data models for the vaccine recommendation engine.

This module provides the dataclasses passed between the catalog, the
evaluators, the engine and the reporting layers. Everything here is frozen:
patient history is read, never modified, and results are recomputed on every
call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

from .enums import DoseStatus, TimelineEventType, VaccineRule


@dataclass(frozen=True)
class CatalogEntry:
    """Static reference record for one vaccine.

    Fields
    ------
    id : str
        Stable identifier (e.g. 'mmr', 'influenza'). Unique across the catalog.
    name : str
        Canonical vaccine name.
    aliases : Tuple[str, ...]
        Display names a dose record may carry. The first alias is the display
        name used in timelines and reminders. Aliases are the join key between
        dose history and the catalog.
    age_group : str
        Human-readable age group label.
    medical_risks : Tuple[str, ...]
        Chronic-condition tags that qualify a patient regardless of age.
    special_groups : Tuple[str, ...]
        Special-population tags that qualify a patient regardless of age.
    min_age_months, max_age_months : int
        Inclusive eligible age window in months since birth.
    total_doses : int
        Size of the primary series.
    doses_interval_months : int
        Target spacing between primary doses.
    booster_interval_months : int
        0 for no recurring booster, otherwise the booster cadence.
    rule : VaccineRule
        Evaluator that schedules this vaccine.
    shared_aliases : Tuple[str, ...]
        Names of combination products (e.g. 'MMRV') whose doses count toward
        this entry and toward every other entry that lists the same name.
    """

    id: str
    name: str
    aliases: Tuple[str, ...]
    age_group: str
    medical_risks: Tuple[str, ...]
    special_groups: Tuple[str, ...]
    min_age_months: int
    max_age_months: int
    total_doses: int
    doses_interval_months: int
    booster_interval_months: int
    rule: VaccineRule = VaccineRule.GENERIC
    shared_aliases: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.aliases[0] if self.aliases else self.name

    @property
    def match_aliases(self) -> Tuple[str, ...]:
        """Own aliases followed by shared combination-product names."""
        return self.aliases + self.shared_aliases


@dataclass(frozen=True)
class DoseRecord:
    """A single administered vaccination.

    The dose number is supplied by the caller and is not re-validated.
    """

    vaccine_name: str
    dose_number: int
    date_given: date
    provider: Optional[str] = None


@dataclass(frozen=True)
class PatientProfile:
    """Engine input: demographics, risk tags and dose history.

    Fields
    ------
    date_of_birth : Optional[date]
        None when the source value could not be parsed; the engine then treats
        the patient as age 0.
    gender : str
        Free text, display only.
    chronic_conditions : Tuple[str, ...]
        Free-text condition tags.
    risk_factors : Tuple[str, ...]
        Free-text special-group / risk-factor tags.
    vaccinations : Tuple[DoseRecord, ...]
        Administered doses in the order they were supplied.
    patient_id, first_name, last_name, email : str
        Identity fields carried through for reminders and reports.
    """

    date_of_birth: Optional[date]
    gender: str = ""
    chronic_conditions: Tuple[str, ...] = ()
    risk_factors: Tuple[str, ...] = ()
    vaccinations: Tuple[DoseRecord, ...] = ()
    patient_id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(filter(None, [self.first_name, self.last_name])).strip()

    def has_tag(self, tag: str) -> bool:
        """True if any condition or risk-factor tag equals ``tag`` (case-insensitive)."""
        wanted = tag.strip().lower()
        return any(
            value.strip().lower() == wanted
            for value in (*self.chronic_conditions, *self.risk_factors)
        )

    def has_any_tag(self, *tags: str) -> bool:
        return any(self.has_tag(tag) for tag in tags)


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of matching a patient against one catalog entry."""

    age_eligible: bool
    medical_eligible: bool
    special_eligible: bool

    @property
    def eligible(self) -> bool:
        return self.age_eligible or self.medical_eligible or self.special_eligible


@dataclass(frozen=True)
class VaccineRecommendation:
    """Per-vaccine scheduling result.

    ``remaining_doses`` counts only the next actionable work, so
    ``completed_doses + remaining_doses`` may differ from the catalog's total
    when a booster is owed.
    """

    entry: CatalogEntry
    reasons: Tuple[str, ...]
    status: DoseStatus
    completed_doses: int
    remaining_doses: int
    next_due_date: Optional[date] = None
    last_given_date: Optional[date] = None

    @property
    def vaccine_name(self) -> str:
        return self.entry.display_name


@dataclass(frozen=True)
class Excluded:
    """Signal that a vaccine must not be recommended (contraindication)."""

    entry: CatalogEntry
    reason: str


EvaluationResult = Union[VaccineRecommendation, Excluded]


@dataclass(frozen=True)
class PatientEvaluation:
    """Recommendations plus the vaccines withheld for contraindications."""

    recommendations: List[VaccineRecommendation]
    excluded: List[Excluded]


@dataclass(frozen=True)
class TimelineEntry:
    """One chronological point: an administered or a projected dose."""

    vaccine_name: str
    date: date
    event_type: TimelineEventType
    dose_number: int
    total_doses: int
    provider: Optional[str] = None
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReminderItem:
    """A dose due for one patient, ready to be turned into a reminder."""

    patient_id: str
    patient_name: str
    patient_email: str
    vaccine_name: str
    due_date: date
    dose_number: int
    days_until: int
    status: DoseStatus


@dataclass(frozen=True)
class ReminderMessage:
    """Rendered reminder, ready for a delivery channel."""

    to: str
    subject: str
    body: str


@dataclass(frozen=True)
class ProfileLoadResult:
    """Result of loading patient profiles.

    Parameters
    ----------
    profiles : List[PatientProfile]
        Profiles built from the input document, in input order.
    warnings : List[str]
        Non-fatal data-quality warnings (unparseable dates, unmatched
        vaccine names).
    """

    profiles: List[PatientProfile]
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunSummary:
    """Counts reported at the end of a CLI run."""

    patients: int
    recommendations: int
    timeline_entries: int
    reminders: int
    artifacts: Dict[str, Any] = field(default_factory=dict)
