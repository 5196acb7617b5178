"""Eligibility matching between a patient and a catalog entry.

A patient qualifies for a vaccine when any one of three checks passes:

- age: ``min_age_months <= age <= max_age_months`` (both inclusive)
- medical risk: a chronic-condition tag matches one of the entry's risk tags
- special group: a risk-factor tag matches one of the entry's group tags

Tag matching is case-insensitive substring containment in either direction,
so "Chronic Kidney Disease" matches "kidney disease" and vice versa.
"""

from __future__ import annotations

from typing import Iterable, List

from .data_models import CatalogEntry, EligibilityResult


def tags_match(patient_tags: Iterable[str], catalog_tags: Iterable[str]) -> bool:
    """True if any patient tag and catalog tag contain one another."""
    catalog_lower = [tag.strip().lower() for tag in catalog_tags if tag.strip()]
    if not catalog_lower:
        return False

    for tag in patient_tags:
        value = tag.strip().lower()
        if not value:
            continue
        if any(value in risk or risk in value for risk in catalog_lower):
            return True
    return False


def is_eligible(
    entry: CatalogEntry,
    age_months: int,
    chronic_conditions: Iterable[str],
    risk_factors: Iterable[str],
) -> EligibilityResult:
    """Evaluate the three eligibility checks for one vaccine."""
    return EligibilityResult(
        age_eligible=entry.min_age_months <= age_months <= entry.max_age_months,
        medical_eligible=tags_match(chronic_conditions, entry.medical_risks),
        special_eligible=tags_match(risk_factors, entry.special_groups),
    )


def eligibility_reasons(entry: CatalogEntry, result: EligibilityResult) -> List[str]:
    """Human-readable reasons for each passing check."""
    reasons: List[str] = []
    if result.age_eligible:
        reasons.append(f"Age group: {entry.age_group}")
    if result.medical_eligible:
        reasons.append("Medical risk condition match")
    if result.special_eligible:
        reasons.append("Special group eligibility")
    return reasons
