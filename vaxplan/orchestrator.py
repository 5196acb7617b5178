"""Vaccine recommendation command-line runner.

Loads patient profiles from a JSON document, computes recommendations,
timelines and reminders for every patient, and writes the results as report
files. Each step is timed and reported on the console.

**Error Handling Philosophy:**

- **Infrastructure Errors** (missing input, config or catalog file, invalid
  config or catalog) fail fast: nothing is written and the exit code is 1.
- **Data-quality problems** (unparseable dates, unknown vaccine names) are
  warnings: they are logged, listed on the console, and processing continues.

**Exit Codes:**
- 0: Run completed successfully
- 1: Run failed
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .catalog import load_catalog
from .config_loader import DEFAULT_CONFIG_PATH, ROOT_DIR, load_config, resolve_catalog_path
from .data_models import CatalogEntry, PatientProfile, RunSummary
from .dates import parse_date, resolve_today
from .engine import evaluate_patient, timeline_from, upcoming_from
from .profile_loader import load_profiles
from .reminders import compose_reminder, reminder_items_from, reminders_frame, split_urgent
from .report import recommendations_frame, timeline_frame, write_report

DEFAULT_OUTPUT_DIR = ROOT_DIR / "output"

LOG = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute vaccine recommendations, timelines and reminders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s patients.json
  %(prog)s patients.json --today 2025-09-01 --within-days 30
        """,
    )

    parser.add_argument(
        "input_file",
        type=Path,
        help="JSON file with one patient object or a list of patients",
    )
    parser.add_argument(
        "--today",
        type=str,
        default=None,
        help="Evaluation date (YYYY-MM-DD). Defaults to the current date.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        dest="config_path",
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--within-days",
        type=int,
        default=None,
        dest="within_days",
        help="Look-ahead for the upcoming view (default: engine.upcoming_window_days)",
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments and raise errors if invalid."""
    if not args.input_file.exists():
        raise FileNotFoundError(f"Input file not found: {args.input_file}")

    if args.today is not None:
        today = parse_date(args.today)
        if today is None:
            raise ValueError(f"Invalid --today date: {args.today}. Expected YYYY-MM-DD.")
        args.today = today

    if args.within_days is not None and args.within_days <= 0:
        raise ValueError(f"--within-days must be positive, got {args.within_days}")


def configure_logging(output_dir: Path, run_id: str, level: str = "INFO") -> Path:
    """Configure file logging for the run.

    Parameters
    ----------
    output_dir : Path
        Root output directory where logs subdirectory will be created.
    run_id : str
        Unique run identifier used in log filename.
    level : str
        Logging level name.

    Returns
    -------
    Path
        Path to the created log file.
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"vaxplan_{run_id}.log"

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    return log_path


def print_header(input_file: Path, today: date) -> None:
    """Print the run header."""
    print()
    print("💉 Starting vaccine recommendation run")
    print(f"🗂️  Input File: {input_file}")
    print(f"📅 Evaluation date: {today.isoformat()}")
    print()


def print_step(step_num: int, description: str) -> None:
    """Print a step header."""
    print()
    print(f"{'=' * 60}")
    print(f"Step {step_num}: {description}")
    print(f"{'=' * 60}")


def print_step_complete(step_num: int, description: str, duration: float) -> None:
    """Print step completion message."""
    print(f"✅ Step {step_num}: {description} complete in {duration:.1f} seconds.")


def run_step_1_load_reference(config: Dict[str, Any]) -> Tuple[CatalogEntry, ...]:
    """Step 1: Load the vaccine catalog."""
    print_step(1, "Loading vaccine catalog")
    catalog = load_catalog(resolve_catalog_path(config))
    print(f"📚 Catalog entries: {len(catalog)}")
    return catalog


def run_step_2_load_profiles(
    input_file: Path, catalog: Sequence[CatalogEntry]
) -> List[PatientProfile]:
    """Step 2: Load patient profiles."""
    print_step(2, "Loading patient profiles")
    result = load_profiles(input_file, catalog)

    if result.warnings:
        print("Warnings detected while loading profiles:")
        for warning in result.warnings:
            print(f" - {warning}")

    print(f"👥 Patients loaded: {len(result.profiles)}")
    return result.profiles


def run_step_3_evaluate(
    profiles: Sequence[PatientProfile],
    catalog: Sequence[CatalogEntry],
    today: date,
    within_days: int,
) -> Tuple[list, list, int]:
    """Step 3: Compute recommendations and timelines.

    Returns:
        (recommendation results, timeline results, upcoming count)
    """
    print_step(3, "Computing recommendations")

    recommendation_results = []
    timeline_results = []
    upcoming = 0
    for profile in profiles:
        evaluation = evaluate_patient(profile, today, catalog)
        recommendation_results.append((profile, evaluation.recommendations))
        timeline_results.append(
            (profile, timeline_from(profile, evaluation.recommendations, today, catalog))
        )
        upcoming += len(upcoming_from(evaluation.recommendations, within_days, today))
        for excluded in evaluation.excluded:
            label = profile.patient_id or profile.full_name
            print(f" - {label}: {excluded.entry.name} withheld ({excluded.reason})")

    total = sum(len(recs) for _, recs in recommendation_results)
    print(f"🧮 Recommendations computed: {total}")
    print(f"⏳ Due within {within_days} days: {upcoming}")
    return recommendation_results, timeline_results, upcoming


def run_step_4_reminders(
    recommendation_results: list,
    today: date,
    config: Dict[str, Any],
):
    """Step 4: Build reminder work list."""
    print_step(4, "Building reminders")

    reminders_config = config.get("reminders") or {}
    window = reminders_config.get("urgent_window_days", 10)
    language = reminders_config.get("language", "en")
    sender = reminders_config.get("sender_name", "Vaccine Reminders")

    items = reminder_items_from(recommendation_results, today)
    urgent, later = split_urgent(items, window)
    for item in urgent:
        message = compose_reminder(item, language, sender)
        LOG.info("Reminder for %s: %s", item.patient_id or item.patient_name, message.subject)

    print(f"🔔 Urgent reminders: {len(urgent)}")
    print(f"🗓️  Later reminders:  {len(later)}")
    return reminders_frame(items, window)


def run_step_5_write_reports(
    output_dir: Path,
    run_id: str,
    fmt: str,
    recommendation_results: list,
    timeline_results: list,
    reminders,
) -> Dict[str, Path]:
    """Step 5: Write report files."""
    print_step(5, "Writing reports")
    reports_dir = output_dir / "reports"
    written = {
        "recommendations": write_report(
            recommendations_frame(recommendation_results),
            reports_dir / f"recommendations_{run_id}",
            fmt,
        ),
        "timeline": write_report(
            timeline_frame(timeline_results),
            reports_dir / f"timeline_{run_id}",
            fmt,
        ),
        "reminders": write_report(reminders, reports_dir / f"reminders_{run_id}", fmt),
    }
    for name, path in written.items():
        print(f"📄 {name}: {path}")
    return written


def print_summary(
    step_times: list[tuple[str, float]],
    total_duration: float,
    summary: RunSummary,
) -> None:
    """Print the run summary."""
    print()
    print(f"{'=' * 60}")
    print("🎉 Run completed successfully!")
    print(f"{'=' * 60}")
    print()
    print("🕒 Time Summary:")
    for step_name, duration in step_times:
        print(f"  - {step_name:<25} {duration:.1f}s")
    print(f"  - {'─' * 25} {'─' * 6}")
    print(f"  - {'Total Time':<25} {total_duration:.1f}s")
    print()
    print(f"👥 Patients processed:     {summary.patients}")
    print(f"🧮 Recommendations:        {summary.recommendations}")
    print(f"🗓️  Timeline entries:       {summary.timeline_entries}")
    print(f"🔔 Reminders:              {summary.reminders}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the recommendation CLI."""
    try:
        args = parse_args(argv)
        validate_args(args)
        config = load_config(args.config_path)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    today = resolve_today(args.today)
    output_dir = args.output_dir.resolve()
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    within_days = args.within_days or (config.get("engine") or {}).get(
        "upcoming_window_days", 10
    )
    fmt = (config.get("report") or {}).get("output_format", "csv")
    log_level = (config.get("logging") or {}).get("level", "INFO")

    try:
        log_path = configure_logging(output_dir, run_id, log_level)
    except OSError as exc:
        print(f"Error: cannot write logs under {output_dir}: {exc}", file=sys.stderr)
        return 1

    print_header(args.input_file, today)

    total_start = time.time()
    step_times = []

    try:
        step_start = time.time()
        catalog = run_step_1_load_reference(config)
        step_duration = time.time() - step_start
        step_times.append(("Catalog", step_duration))
        print_step_complete(1, "Catalog loading", step_duration)

        step_start = time.time()
        profiles = run_step_2_load_profiles(args.input_file, catalog)
        step_duration = time.time() - step_start
        step_times.append(("Profile Loading", step_duration))
        print_step_complete(2, "Profile loading", step_duration)

        step_start = time.time()
        recommendation_results, timeline_results, _ = run_step_3_evaluate(
            profiles, catalog, today, within_days
        )
        step_duration = time.time() - step_start
        step_times.append(("Recommendations", step_duration))
        print_step_complete(3, "Recommendations", step_duration)

        step_start = time.time()
        reminders = run_step_4_reminders(recommendation_results, today, config)
        step_duration = time.time() - step_start
        step_times.append(("Reminders", step_duration))
        print_step_complete(4, "Reminders", step_duration)

        step_start = time.time()
        written = run_step_5_write_reports(
            output_dir,
            run_id,
            fmt,
            recommendation_results,
            timeline_results,
            reminders,
        )
        step_duration = time.time() - step_start
        step_times.append(("Reports", step_duration))
        print_step_complete(5, "Reports", step_duration)

        summary = RunSummary(
            patients=len(profiles),
            recommendations=sum(len(recs) for _, recs in recommendation_results),
            timeline_entries=sum(len(entries) for _, entries in timeline_results),
            reminders=len(reminders),
            artifacts={name: str(path) for name, path in written.items()},
        )
        print_summary(step_times, time.time() - total_start, summary)
        print(f"Log written to {log_path}")
        return 0

    except Exception as exc:
        LOG.error("Run failed: %s", exc)
        print(f"\n❌ Run failed: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
