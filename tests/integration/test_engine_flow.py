"""Integration tests from stored patient documents to recommendations.

Tests cover:
- Loading a roster, evaluating every patient and building reminders
- Catalog supplied through configuration
- Timeline and recommendations agreeing on dose counts

Real-world significance:
- Mirrors what the surrounding application does on every dashboard load
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from vaxplan.catalog import load_catalog
from vaxplan.config_loader import resolve_catalog_path
from vaxplan.engine import evaluate_patient, get_timeline
from vaxplan.enums import DoseStatus, TimelineEventType
from vaxplan.profile_loader import build_profiles, load_profiles
from vaxplan.reminders import build_reminder_items, split_urgent
from tests.fixtures import sample_input

TODAY = date(2021, 6, 1)


@pytest.mark.integration
class TestRosterFlow:
    """Roster documents through loader, engine and reminders."""

    def test_roster_recommendations(self, roster_file: Path, catalog) -> None:
        result = load_profiles(roster_file, catalog)
        toddler, worker, student = result.profiles

        toddler_recs = {r.entry.id: r for r in evaluate_patient(toddler, TODAY, catalog).recommendations}
        assert toddler_recs["mmr"].status == DoseStatus.NEEDED

        worker_recs = {r.entry.id: r for r in evaluate_patient(worker, TODAY, catalog).recommendations}
        assert worker_recs["mmr"].next_due_date == date(2021, 5, 29)
        assert worker_recs["mmr"].status == DoseStatus.OVERDUE

        # Mistyped hepatitis B dose is not counted
        student_recs = {r.entry.id: r for r in evaluate_patient(student, TODAY, catalog).recommendations}
        assert student_recs["hepatitis_b"].completed_doses == 0

    def test_reminders_across_roster(self, roster_file: Path, catalog) -> None:
        profiles = load_profiles(roster_file, catalog).profiles
        items = build_reminder_items(profiles, TODAY, catalog)
        urgent, later = split_urgent(items, 10)

        assert {item.patient_id for item in items} == {"P001", "P002", "P003"}
        assert all(item.days_until <= 10 for item in urgent)
        assert all(item.days_until > 10 for item in later)

    def test_timeline_matches_history(self, catalog) -> None:
        document = sample_input.create_patient_document(
            vaccinations=[
                sample_input.create_vaccination("DTaP-IPV-Hib", "2020-03-01", 1),
                sample_input.create_vaccination("Polio (IPV)", "2020-05-01", 2),
            ]
        )
        profile = build_profiles(document, catalog).profiles[0]
        timeline = get_timeline(profile, TODAY, catalog)

        completed = [e for e in timeline if e.event_type == TimelineEventType.COMPLETED]
        recs = {r.entry.id: r for r in evaluate_patient(profile, TODAY, catalog).recommendations}
        assert len(completed) == recs["tdap_ipv"].completed_doses == 2
        assert recs["tdap_ipv"].next_due_date == date(2020, 7, 1)


@pytest.mark.integration
class TestConfiguredCatalog:
    """Catalog path taken from configuration."""

    def test_alternate_catalog_from_config(self, tmp_path: Path, default_config) -> None:
        catalog_path = tmp_path / "catalog.json"
        catalog_path.write_text(
            json.dumps(
                [
                    {
                        "id": "flu_only",
                        "name": "Influenza",
                        "aliases": ["Flu"],
                        "age_group": "Everyone",
                        "min_age_months": 6,
                        "max_age_months": 1200,
                        "total_doses": 1,
                        "doses_interval_months": 0,
                        "booster_interval_months": 12,
                        "rule": "influenza",
                    }
                ]
            ),
            encoding="utf-8",
        )
        default_config["engine"]["catalog_path"] = str(catalog_path)
        catalog = load_catalog(resolve_catalog_path(default_config))

        profile = sample_input.create_profile("1980-01-01")
        recs = evaluate_patient(profile, TODAY, catalog).recommendations
        assert [r.entry.id for r in recs] == ["flu_only"]
        assert recs[0].next_due_date == TODAY
