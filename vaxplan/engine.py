"""Vaccine recommendation engine.

Walks the catalog for one patient, decides which vaccines apply, dispatches
each applicable vaccine to its evaluator and assembles the results. Also
derives the filtered views (needed, completed, upcoming) and the patient
timeline.

**Input Contract:**
- A ``PatientProfile`` built by the profile loader (or directly by a caller).
- An optional evaluation date; when omitted the current date is read once
  here and threaded through every evaluator.
- An optional catalog; defaults to the cached config/vaccine_catalog.json.

**Output Contract:**
- Recommendations follow catalog order. Vaccines the patient is not eligible
  for are absent, not reported as "not needed".
- Contraindicated vaccines are absent from the recommendation list and are
  reported separately by ``evaluate_patient``.
- Identical inputs (profile, date, catalog) always give identical outputs.

**Error Handling:**
- Data-quality problems never raise. An unknown date of birth means age 0;
  dose records matching no catalog alias are ignored.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from .catalog import load_catalog
from .data_models import (
    CatalogEntry,
    DoseRecord,
    Excluded,
    PatientEvaluation,
    PatientProfile,
    TimelineEntry,
    VaccineRecommendation,
)
from .dates import add_days, age_in_months, resolve_today
from .eligibility import eligibility_reasons, is_eligible
from .enums import DoseStatus, TimelineEventType
from .evaluators import evaluator_for
from .name_matching import find_entry, records_for

LOG = logging.getLogger(__name__)

DEFAULT_UPCOMING_DAYS = 10


def sort_history(records: Iterable[DoseRecord]) -> Tuple[DoseRecord, ...]:
    """Dose history ascending by date; same-day doses keep input order."""
    return tuple(sorted(records, key=lambda record: record.date_given))


def evaluate_patient(
    profile: PatientProfile,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> PatientEvaluation:
    """Evaluate every catalog vaccine for one patient.

    Parameters
    ----------
    profile : PatientProfile
        Demographics, risk tags and dose history.
    today : date, optional
        Evaluation date. Defaults to the current date.
    catalog : Sequence[CatalogEntry], optional
        Catalog to evaluate against. Defaults to the configured catalog.

    Returns
    -------
    PatientEvaluation
        Recommendations in catalog order plus the contraindicated vaccines.
    """
    today = resolve_today(today)
    if catalog is None:
        catalog = load_catalog()

    age_months = age_in_months(profile.date_of_birth, today)
    history = sort_history(profile.vaccinations)

    recommendations: List[VaccineRecommendation] = []
    excluded: List[Excluded] = []

    for entry in catalog:
        eligibility = is_eligible(
            entry, age_months, profile.chronic_conditions, profile.risk_factors
        )
        if not eligibility.eligible:
            continue

        records = records_for(entry, history)
        evaluator = evaluator_for(entry.rule)
        LOG.debug(
            "Evaluating %s with %s rule (%d matching doses)",
            entry.id,
            entry.rule.value,
            len(records),
        )

        result = evaluator(profile, entry, records, today, age_months)
        if isinstance(result, Excluded):
            LOG.info("Excluded %s: %s", entry.id, result.reason)
            excluded.append(result)
            continue

        reasons = tuple(eligibility_reasons(entry, eligibility)) + result.reasons
        recommendations.append(dataclasses.replace(result, reasons=reasons))

    return PatientEvaluation(recommendations=recommendations, excluded=excluded)


def get_recommendations(
    profile: PatientProfile,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[VaccineRecommendation]:
    """All recommendations for a patient, in catalog order."""
    return evaluate_patient(profile, today, catalog).recommendations


compute_recommendations = get_recommendations


def get_needed_vaccines(
    profile: PatientProfile,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[VaccineRecommendation]:
    """Recommendations whose status is needed or overdue."""
    return [
        rec
        for rec in get_recommendations(profile, today, catalog)
        if rec.status.is_actionable
    ]


def get_completed_vaccines(
    profile: PatientProfile,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[VaccineRecommendation]:
    """Recommendations whose status is completed."""
    return [
        rec
        for rec in get_recommendations(profile, today, catalog)
        if rec.status is DoseStatus.COMPLETED
    ]


def upcoming_from(
    recommendations: Iterable[VaccineRecommendation],
    days: int,
    today: date,
) -> List[VaccineRecommendation]:
    """Filter already computed recommendations to those due within ``days``."""
    cutoff = add_days(today, days)
    return [
        rec
        for rec in recommendations
        if rec.status is not DoseStatus.COMPLETED
        and rec.next_due_date is not None
        and today <= rec.next_due_date <= cutoff
    ]


def get_upcoming_within_days(
    profile: PatientProfile,
    days: int = DEFAULT_UPCOMING_DAYS,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[VaccineRecommendation]:
    """Open recommendations due between ``today`` and ``today + days`` inclusive."""
    today = resolve_today(today)
    return upcoming_from(get_recommendations(profile, today, catalog), days, today)


def timeline_from(
    profile: PatientProfile,
    recommendations: Iterable[VaccineRecommendation],
    today: date,
    catalog: Sequence[CatalogEntry],
) -> List[TimelineEntry]:
    """Build the timeline from recommendations already computed for ``profile``.

    Every dose record appears as a completed entry, including records whose
    name matches no catalog vaccine (their total falls back to the record's
    own dose number). Every recommendation that still owes a dose and has a
    due date adds one projected entry.
    """
    entries: List[TimelineEntry] = []
    for record in profile.vaccinations:
        entry = find_entry(record.vaccine_name, catalog)
        entries.append(
            TimelineEntry(
                vaccine_name=record.vaccine_name,
                date=record.date_given,
                event_type=TimelineEventType.COMPLETED,
                dose_number=record.dose_number,
                total_doses=entry.total_doses if entry else record.dose_number,
                provider=record.provider,
            )
        )

    for rec in recommendations:
        if rec.next_due_date is None or rec.remaining_doses <= 0:
            continue
        entries.append(
            TimelineEntry(
                vaccine_name=rec.vaccine_name,
                date=rec.next_due_date,
                event_type=(
                    TimelineEventType.OVERDUE
                    if rec.next_due_date <= today
                    else TimelineEventType.UPCOMING
                ),
                dose_number=rec.completed_doses + 1,
                total_doses=rec.entry.total_doses,
                reasons=rec.reasons,
            )
        )

    entries.sort(key=lambda item: item.date)
    return entries


def get_timeline(
    profile: PatientProfile,
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[TimelineEntry]:
    """Past doses and projected next doses, ascending by date."""
    today = resolve_today(today)
    if catalog is None:
        catalog = load_catalog()
    recommendations = get_recommendations(profile, today, catalog)
    return timeline_from(profile, recommendations, today, catalog)
