"""Tabular reports of recommendations and timelines.

Flattens engine output into pandas DataFrames (one row per recommendation or
timeline entry, ISO date strings) and writes them as CSV or JSON records.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from .data_models import PatientProfile, TimelineEntry, VaccineRecommendation

LOG = logging.getLogger(__name__)

RECOMMENDATION_COLUMNS = [
    "patient_id",
    "vaccine_id",
    "vaccine",
    "status",
    "completed_doses",
    "remaining_doses",
    "total_doses",
    "next_due_date",
    "last_given_date",
    "reasons",
]

TIMELINE_COLUMNS = [
    "patient_id",
    "vaccine",
    "date",
    "type",
    "dose_number",
    "total_doses",
    "provider",
]


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def recommendations_frame(
    results: Iterable[Tuple[PatientProfile, Sequence[VaccineRecommendation]]],
) -> pd.DataFrame:
    """One row per (patient, recommendation) pair."""
    rows: List[dict] = []
    for patient, recommendations in results:
        for rec in recommendations:
            rows.append(
                {
                    "patient_id": patient.patient_id,
                    "vaccine_id": rec.entry.id,
                    "vaccine": rec.vaccine_name,
                    "status": rec.status.value,
                    "completed_doses": rec.completed_doses,
                    "remaining_doses": rec.remaining_doses,
                    "total_doses": rec.entry.total_doses,
                    "next_due_date": _iso(rec.next_due_date),
                    "last_given_date": _iso(rec.last_given_date),
                    "reasons": "; ".join(rec.reasons),
                }
            )
    return pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS)


def timeline_frame(
    results: Iterable[Tuple[PatientProfile, Sequence[TimelineEntry]]],
) -> pd.DataFrame:
    """One row per (patient, timeline entry) pair."""
    rows: List[dict] = []
    for patient, entries in results:
        for entry in entries:
            rows.append(
                {
                    "patient_id": patient.patient_id,
                    "vaccine": entry.vaccine_name,
                    "date": entry.date.isoformat(),
                    "type": entry.event_type.value,
                    "dose_number": entry.dose_number,
                    "total_doses": entry.total_doses,
                    "provider": entry.provider,
                }
            )
    return pd.DataFrame(rows, columns=TIMELINE_COLUMNS)


def write_report(frame: pd.DataFrame, path: Path, fmt: str = "csv") -> Path:
    """Write a report frame as CSV or JSON records.

    Raises
    ------
    ValueError
        If ``fmt`` is not 'csv' or 'json'.
    """
    if fmt not in ("csv", "json"):
        raise ValueError(f"Unsupported report format: {fmt}")

    path = Path(path).with_suffix(f".{fmt}")
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "csv":
        frame.to_csv(path, index=False)
    else:
        frame.to_json(path, orient="records", indent=2)

    LOG.info("Wrote %d row(s) to %s", len(frame), path)
    return path
