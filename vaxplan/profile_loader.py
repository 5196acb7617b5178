"""Build patient profiles from stored patient documents.

Patient records arrive as JSON from the surrounding data layer (a single
patient object or a roster list). This module turns them into the immutable
``PatientProfile`` values the engine consumes.

**Input Contract:**
- Each patient is a JSON object with ``dateOfBirth`` (or ``date_of_birth``),
  optional ``gender``, ``chronicConditions``, ``riskFactors`` and a
  ``vaccinations`` list of ``{vaccineName, doseNumber, dateGiven, provider}``.
  snake_case spellings of every key are accepted too.
- Optional identity keys (``id``, ``firstName``, ``lastName``, ``email``) are
  carried through for reminders and reports.

**Error Handling:**
- Structural problems (document is not an object/list, a patient lacks a
  date-of-birth key, ``vaccinations`` is not a list of objects) raise
  ``ValueError``.
- Data-quality problems become warnings and processing continues:
  an unparseable date of birth leaves ``date_of_birth`` as None (age 0), a
  dose with an unparseable date is dropped, and a dose whose name matches no
  catalog vaccine is kept (it shows on the timeline) with a warning that
  names the closest alias when one is close enough.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalog import load_catalog
from .data_models import CatalogEntry, DoseRecord, PatientProfile, ProfileLoadResult
from .dates import parse_date
from .name_matching import find_entry, normalize, suggest_alias

LOG = logging.getLogger(__name__)


def _pick(mapping: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key among camelCase/snake_case spellings."""
    for key in keys:
        if key in mapping:
            return mapping[key]
    return default


def _string_list(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(item).strip() for item in value if str(item).strip())


def _string_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def build_dose_records(
    raw_records: Sequence[Mapping[str, Any]],
    catalog: Sequence[CatalogEntry],
    patient_label: str,
    warnings: set[str],
) -> tuple:
    """Convert raw vaccination entries into DoseRecords, collecting warnings.

    Raises
    ------
    ValueError
        If ``raw_records`` is not a list or one of its items is not an object.
    """
    if raw_records is None:
        return ()
    if not isinstance(raw_records, list):
        raise ValueError(
            f"Vaccinations for {patient_label} must be a list, "
            f"got {type(raw_records).__name__}"
        )

    records: List[DoseRecord] = []
    seen_per_vaccine: Dict[str, int] = {}

    for position, raw in enumerate(raw_records, start=1):
        if not isinstance(raw, Mapping):
            raise ValueError(
                f"Vaccination #{position} for {patient_label} must be an object, "
                f"got {type(raw).__name__}"
            )
        name = _string_or_empty(_pick(raw, "vaccineName", "vaccine_name", "vaccine"))
        given = parse_date(_pick(raw, "dateGiven", "date_given"))
        if given is None:
            warnings.add(
                f"Dropped {name or 'unnamed'} dose for {patient_label}: "
                f"unparseable date {_pick(raw, 'dateGiven', 'date_given')!r}"
            )
            continue

        token = normalize(name)
        seen_per_vaccine[token] = seen_per_vaccine.get(token, 0) + 1
        dose_number = _pick(raw, "doseNumber", "dose_number")
        try:
            dose_number = int(dose_number)
        except (TypeError, ValueError):
            dose_number = seen_per_vaccine[token]

        if find_entry(name, catalog) is None:
            suggestion = suggest_alias(name, catalog)
            hint = f" (did you mean {suggestion!r}?)" if suggestion else ""
            warnings.add(
                f"Vaccine {name!r} for {patient_label} matches no catalog entry{hint}"
            )

        provider = _pick(raw, "provider")
        records.append(
            DoseRecord(
                vaccine_name=name,
                dose_number=dose_number,
                date_given=given,
                provider=_string_or_empty(provider) or None,
            )
        )

    return tuple(records)


def build_profile(
    raw: Mapping[str, Any],
    catalog: Optional[Sequence[CatalogEntry]] = None,
    warnings: Optional[set[str]] = None,
    index: int = 0,
) -> PatientProfile:
    """Build one PatientProfile from a stored patient document.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Patient document.
    catalog : Sequence[CatalogEntry], optional
        Catalog used to check vaccine names. Defaults to the configured one.
    warnings : set[str], optional
        Collector for data-quality warnings.
    index : int
        Position in the roster, used to label warnings for anonymous patients.

    Raises
    ------
    ValueError
        If ``raw`` is not a mapping or has no date-of-birth key.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"Patient #{index + 1} must be an object, got {type(raw).__name__}")
    if catalog is None:
        catalog = load_catalog()
    if warnings is None:
        warnings = set()

    patient_id = _string_or_empty(_pick(raw, "id", "patientId", "patient_id"))
    first_name = _string_or_empty(_pick(raw, "firstName", "first_name"))
    last_name = _string_or_empty(_pick(raw, "lastName", "last_name"))
    full_name = " ".join(filter(None, [first_name, last_name]))
    patient_label = patient_id or full_name or f"patient #{index + 1}"

    dob_keys = ("dateOfBirth", "date_of_birth")
    if not any(key in raw for key in dob_keys):
        raise ValueError(f"Missing date of birth for {patient_label}")

    raw_dob = _pick(raw, *dob_keys)
    date_of_birth = parse_date(raw_dob)
    if date_of_birth is None:
        warnings.add(
            f"Unparseable date of birth for {patient_label}: {raw_dob!r}; "
            "treating as age 0"
        )

    vaccinations = build_dose_records(
        _pick(raw, "vaccinations", "vaccination_records", default=[]),
        catalog,
        patient_label,
        warnings,
    )

    return PatientProfile(
        date_of_birth=date_of_birth,
        gender=_string_or_empty(_pick(raw, "gender", "sex")),
        chronic_conditions=_string_list(
            _pick(raw, "chronicConditions", "chronic_conditions")
        ),
        risk_factors=_string_list(_pick(raw, "riskFactors", "risk_factors")),
        vaccinations=vaccinations,
        patient_id=patient_id,
        first_name=first_name,
        last_name=last_name,
        email=_string_or_empty(_pick(raw, "email")),
    )


def build_profiles(
    document: Any, catalog: Optional[Sequence[CatalogEntry]] = None
) -> ProfileLoadResult:
    """Build profiles from a parsed JSON document (object or list)."""
    if isinstance(document, Mapping):
        if "patients" in document:
            document = document["patients"]
        else:
            document = [document]
    if not isinstance(document, list):
        raise ValueError(
            f"Expected a patient object or list, got {type(document).__name__}"
        )
    if catalog is None:
        catalog = load_catalog()

    warnings: set[str] = set()
    profiles = [
        build_profile(raw, catalog, warnings, index)
        for index, raw in enumerate(document)
    ]

    for warning in sorted(warnings):
        LOG.warning(warning)

    return ProfileLoadResult(profiles=profiles, warnings=sorted(warnings))


def load_profiles(
    file_path: Path, catalog: Optional[Sequence[CatalogEntry]] = None
) -> ProfileLoadResult:
    """Read patient profiles from a JSON file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    json.JSONDecodeError
        If the file is not valid JSON.
    ValueError
        If the document structure is not a patient object or list.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    document = json.loads(file_path.read_text(encoding="utf-8"))
    result = build_profiles(document, catalog)
    LOG.info("Loaded %d patient profile(s) from %s", len(result.profiles), file_path)
    return result
