"""Per-vaccine scheduling rules.

Each evaluator takes a patient profile, the catalog entry being scheduled,
that patient's dose records for the entry, the evaluation date and the
patient's age in completed months, and returns either a
``VaccineRecommendation`` or an ``Excluded`` marker.

**Input Contract:**
- ``records`` contains only doses belonging to ``entry`` and is already
  sorted ascending by date (ties keep input order). The engine performs that
  sort once; evaluators never re-sort, so "last record" is ``records[-1]``.
- ``today`` is a calendar date supplied by the caller; evaluators never read
  the clock.
- A profile without a usable date of birth is treated as born on ``today``
  (age 0).

**Output Contract:**
- ``reasons`` holds only the evaluator's own explanations; the engine puts
  the eligibility reasons in front of them.
- With doses still owed and a due date on or before ``today``, status is
  ``needed`` when nothing has been given yet and ``overdue`` otherwise.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .data_models import (
    CatalogEntry,
    DoseRecord,
    EvaluationResult,
    Excluded,
    PatientProfile,
    VaccineRecommendation,
)
from .dates import add_days, add_months, days_between
from .enums import DoseStatus, VaccineRule

LIVE_VACCINE_DOSES = 2
LIVE_VACCINE_RETRY_DAYS = 28
LIVE_VACCINE_SECOND_DOSE_MONTHS = 48

FLU_MIN_AGE_MONTHS = 6
FLU_FIRST_TIME_MAX_AGE_MONTHS = 108
FLU_FIRST_TIME_GAP_DAYS = 28
FLU_RENEWAL_DAYS = 300

CONJUGATE_MIN_GAP_DAYS = 56

PNEUMOCOCCAL_HIGH_RISK_SCHEDULE = (2, 4, 6, 18)
PNEUMOCOCCAL_ROUTINE_SCHEDULE = (2, 4, 12)
PNEUMOCOCCAL_HIGH_RISK_TAGS = (
    "Immunocompromised",
    "Cochlear Implant",
    "Chronic Lung Disease",
    "Heart Disease",
    "Diabetes",
    "Chronic Kidney Disease",
    "Asplenia",
)

MENINGOCOCCAL_HIGH_RISK_SCHEDULE = (2, 4, 6, 12)
MENINGOCOCCAL_ROUTINE_SCHEDULE = (12,)
MENINGOCOCCAL_HIGH_RISK_TAGS = ("Immunocompromised", "Asplenia", "International Traveler")

DTAP_IPV_HIB_SCHEDULE = (2, 4, 6, 18)
PRESCHOOL_BOOSTER_AGE_MONTHS = 48

Evaluator = Callable[
    [PatientProfile, CatalogEntry, Sequence[DoseRecord], date, int], EvaluationResult
]


def birth_date(profile: PatientProfile, today: date) -> date:
    """Date of birth, or ``today`` when it is unknown."""
    return profile.date_of_birth or today


def derive_status(
    completed_doses: int,
    remaining_doses: int,
    next_due_date: Optional[date],
    today: date,
) -> DoseStatus:
    """Status for a schedule that may still owe doses."""
    if remaining_doses <= 0 or next_due_date is None:
        return DoseStatus.COMPLETED
    if next_due_date > today:
        return DoseStatus.UPCOMING
    if completed_doses == 0:
        return DoseStatus.NEEDED
    return DoseStatus.OVERDUE


def _last_given(records: Sequence[DoseRecord]) -> Optional[date]:
    return records[-1].date_given if records else None


def _build(
    entry: CatalogEntry,
    reasons: Sequence[str],
    completed_doses: int,
    remaining_doses: int,
    next_due_date: Optional[date],
    records: Sequence[DoseRecord],
    today: date,
    keep_due_when_complete: bool = False,
) -> VaccineRecommendation:
    status = derive_status(completed_doses, remaining_doses, next_due_date, today)
    if status is DoseStatus.COMPLETED and not keep_due_when_complete:
        next_due_date = None
    return VaccineRecommendation(
        entry=entry,
        reasons=tuple(reasons),
        status=status,
        completed_doses=completed_doses,
        remaining_doses=max(0, remaining_doses),
        next_due_date=next_due_date,
        last_given_date=_last_given(records),
    )


def _age_scheduled_series(
    born: date,
    schedule: Tuple[int, ...],
    records: Sequence[DoseRecord],
    min_gap_days: int = 0,
) -> Tuple[int, int, Optional[date]]:
    """Next dose of a series given at fixed ages (in months).

    Returns ``(completed, remaining, next_due_date)``. With ``min_gap_days``
    the target is pushed out to at least that many days after the last dose.
    """
    completed = len(records)
    remaining = max(0, len(schedule) - completed)
    if remaining == 0:
        return completed, 0, None

    next_due = add_months(born, schedule[completed])
    if records and min_gap_days:
        earliest = add_days(records[-1].date_given, min_gap_days)
        if next_due < earliest:
            next_due = earliest
    return completed, remaining, next_due


def evaluate_generic(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> VaccineRecommendation:
    """Default schedule driven by the catalog's dose count and intervals."""
    completed = len(records)
    last = records[-1] if records else None
    reasons: List[str] = []

    if completed >= entry.total_doses:
        if entry.booster_interval_months > 0 and last is not None:
            booster_due = add_months(last.date_given, entry.booster_interval_months)
            reasons.append(f"Booster every {entry.booster_interval_months} months")
            if booster_due <= today:
                status, remaining = DoseStatus.OVERDUE, 1
            else:
                status, remaining = DoseStatus.COMPLETED, 0
            next_due: Optional[date] = booster_due
        else:
            status, remaining, next_due = DoseStatus.COMPLETED, 0, None
    else:
        remaining = entry.total_doses - completed
        if last is not None:
            next_due = add_months(last.date_given, entry.doses_interval_months)
            status = DoseStatus.OVERDUE if next_due <= today else DoseStatus.UPCOMING
        else:
            status, next_due = DoseStatus.NEEDED, today

    return VaccineRecommendation(
        entry=entry,
        reasons=tuple(reasons),
        status=status,
        completed_doses=completed,
        remaining_doses=remaining,
        next_due_date=next_due,
        last_given_date=last.date_given if last else None,
    )


def evaluate_mmr_varicella(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> EvaluationResult:
    """Live-virus family: measles, mumps, rubella and varicella.

    Doses given before the first birthday are invalid. They do not count as
    completed but still count as the last dose given.
    """
    if profile.has_any_tag("Pregnant", "Immunocompromised"):
        return Excluded(
            entry=entry,
            reason="Contraindicated: live vaccine (pregnant or immunocompromised)",
        )

    born = birth_date(profile, today)
    first_birthday = add_months(born, 12)
    high_risk = profile.has_any_tag("Healthcare Worker", "International Traveler")

    valid = [r for r in records if r.date_given >= first_birthday]
    invalid = [r for r in records if r.date_given < first_birthday]
    completed = len(valid)

    next_due: Optional[date] = None
    if completed == 0:
        next_due = first_birthday
        if invalid:
            retry = add_days(invalid[-1].date_given, LIVE_VACCINE_RETRY_DAYS)
            next_due = max(first_birthday, retry)
    elif completed == 1:
        if high_risk:
            next_due = add_days(valid[0].date_given, LIVE_VACCINE_RETRY_DAYS)
        else:
            next_due = add_months(born, LIVE_VACCINE_SECOND_DOSE_MONTHS)

    reasons: List[str] = []
    if invalid:
        reasons.append("Previous dose was invalid (given before 1st birthday)")
    if high_risk:
        reasons.append("High-risk group: needs 2 valid doses")
    else:
        reasons.append("Routine childhood schedule")

    return _build(
        entry,
        reasons,
        completed,
        LIVE_VACCINE_DOSES - completed,
        next_due,
        records,
        today,
    )


def evaluate_influenza(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> VaccineRecommendation:
    """Annual influenza, with a two-dose first season for children under 9."""
    born = birth_date(profile, today)
    priority = profile.has_any_tag(
        "Pregnant", "Age 65+", "Nursing Home Resident"
    ) or bool(profile.chronic_conditions)

    reasons: List[str] = [
        "HIGH PRIORITY: Chronic condition or risk factor"
        if priority
        else "Routine annual vaccine"
    ]

    completed = len(records)
    last = records[-1] if records else None
    first_time = age_months < FLU_FIRST_TIME_MAX_AGE_MONTHS and completed < 2

    if age_months < FLU_MIN_AGE_MONTHS:
        reasons.append("Not eligible until 6 months of age")
        remaining, next_due = 1, add_months(born, FLU_MIN_AGE_MONTHS)
    elif first_time:
        reasons.append("First-Time Rule: needs 2 doses separated by 4 weeks")
        if last is None:
            remaining, next_due = 2, today
        else:
            remaining = 1
            next_due = max(today, add_days(last.date_given, FLU_FIRST_TIME_GAP_DAYS))
    elif last is None:
        remaining, next_due = 1, today
    elif days_between(last.date_given, today) > FLU_RENEWAL_DAYS:
        reasons.append("Annual renewal due for this season")
        remaining, next_due = 1, today
    else:
        remaining, next_due = 0, add_months(last.date_given, 12)

    return _build(
        entry,
        reasons,
        completed,
        remaining,
        next_due,
        records,
        today,
        keep_due_when_complete=True,
    )


def evaluate_pneumococcal(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> VaccineRecommendation:
    """Pneumococcal conjugate: 2/4/6/18 months if high-risk, else 2/4/12."""
    high_risk = profile.has_any_tag(*PNEUMOCOCCAL_HIGH_RISK_TAGS)
    if high_risk:
        schedule = PNEUMOCOCCAL_HIGH_RISK_SCHEDULE
        reasons = ["High-Risk Schedule: 4 doses (2m, 4m, 6m, 18m)"]
    else:
        schedule = PNEUMOCOCCAL_ROUTINE_SCHEDULE
        reasons = ["Routine Schedule: 3 doses (2m, 4m, 12m)"]

    completed, remaining, next_due = _age_scheduled_series(
        birth_date(profile, today), schedule, records, CONJUGATE_MIN_GAP_DAYS
    )

    if high_risk and age_months > 24 and completed >= len(schedule):
        reasons.append(
            "Alert: Patient is High-Risk and >2 years old. Assess need for "
            "Pneu-P-23 booster 8 weeks after last conjugate dose."
        )

    return _build(entry, reasons, completed, remaining, next_due, records, today)


def evaluate_meningococcal(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> VaccineRecommendation:
    """Meningococcal conjugate: 2/4/6/12 months if high-risk, else one dose at 12."""
    if profile.has_any_tag(*MENINGOCOCCAL_HIGH_RISK_TAGS):
        schedule = MENINGOCOCCAL_HIGH_RISK_SCHEDULE
        reasons = ["High-Risk Schedule: multi-dose (2m, 4m, 6m, 12-18m)"]
    else:
        schedule = MENINGOCOCCAL_ROUTINE_SCHEDULE
        reasons = ["Routine Schedule: 1 dose at 12 months"]

    completed, remaining, next_due = _age_scheduled_series(
        birth_date(profile, today), schedule, records, CONJUGATE_MIN_GAP_DAYS
    )
    return _build(entry, reasons, completed, remaining, next_due, records, today)


def evaluate_dtap_ipv_hib(
    profile: PatientProfile,
    entry: CatalogEntry,
    records: Sequence[DoseRecord],
    today: date,
    age_months: int,
) -> VaccineRecommendation:
    """Diphtheria/tetanus/pertussis/polio/Hib primary series at 2/4/6/18 months."""
    reasons = ["Routine primary series (2m, 4m, 6m, 18m)"]
    completed, remaining, next_due = _age_scheduled_series(
        birth_date(profile, today), DTAP_IPV_HIB_SCHEDULE, records
    )

    if completed >= len(DTAP_IPV_HIB_SCHEDULE) and age_months >= PRESCHOOL_BOOSTER_AGE_MONTHS:
        reasons.append(
            "Alert: Primary series complete. Pre-school booster (DTaP-IPV without "
            "Hib) is due between 4-6 years."
        )

    return _build(entry, reasons, completed, remaining, next_due, records, today)


EVALUATORS: Dict[VaccineRule, Evaluator] = {
    VaccineRule.GENERIC: evaluate_generic,
    VaccineRule.MMR_VARICELLA: evaluate_mmr_varicella,
    VaccineRule.INFLUENZA: evaluate_influenza,
    VaccineRule.PNEUMOCOCCAL: evaluate_pneumococcal,
    VaccineRule.MENINGOCOCCAL: evaluate_meningococcal,
    VaccineRule.DTAP_IPV_HIB: evaluate_dtap_ipv_hib,
}


def evaluator_for(rule: VaccineRule) -> Evaluator:
    """Evaluator registered for ``rule``; unknown rules use the generic one."""
    return EVALUATORS.get(rule, evaluate_generic)
