"""Vaccine catalog loading and validation.

The catalog is static reference data read from config/vaccine_catalog.json:
one entry per vaccine with its aliases, eligibility criteria and default
dosing schedule. It is loaded once per process and shared read-only by every
evaluation.

**Contracts:**

- Entries keep file order; the engine reports recommendations in that order.
- ``min_age_months <= max_age_months`` for every entry.
- ``total_doses`` is positive; intervals are non-negative.
- Entry ids are unique, and no normalized alias appears in two entries, so a
  dose record can belong to at most one vaccine. The exception is a
  ``shared_aliases`` name for a combination product (MMRV), whose doses count
  toward every entry that lists it.
- A missing or invalid catalog is an infrastructure error and raises.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .data_models import CatalogEntry
from .enums import VaccineRule
from .name_matching import normalize

SCRIPT_DIR = Path(__file__).resolve().parent
CONFIG_DIR = SCRIPT_DIR.parent / "config"
DEFAULT_CATALOG_PATH = CONFIG_DIR / "vaccine_catalog.json"

LOG = logging.getLogger(__name__)

REQUIRED_FIELDS = [
    "id",
    "name",
    "aliases",
    "min_age_months",
    "max_age_months",
    "total_doses",
    "doses_interval_months",
    "booster_interval_months",
]

# Populated on first use; reset with clear_caches()
_CATALOG_CACHE: Dict[Path, Tuple[CatalogEntry, ...]] = {}


def entry_from_dict(raw: Dict[str, Any]) -> CatalogEntry:
    """Build a CatalogEntry from one JSON object.

    Raises
    ------
    ValueError
        If a required field is missing, a number is not an integer, or the
        rule name is unknown.
    """
    missing = [name for name in REQUIRED_FIELDS if name not in raw]
    if missing:
        raise ValueError(
            f"Catalog entry {raw.get('id', raw.get('name', '?'))!r} "
            f"is missing fields: {missing}"
        )

    numbers = {}
    for name in REQUIRED_FIELDS[3:]:
        value = raw[name]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(
                f"Catalog entry {raw['id']!r}: {name} must be an integer, "
                f"got {type(value).__name__}"
            )
        numbers[name] = value

    return CatalogEntry(
        id=str(raw["id"]),
        name=str(raw["name"]),
        aliases=tuple(str(alias) for alias in raw["aliases"]),
        age_group=str(raw.get("age_group", "")),
        medical_risks=tuple(raw.get("medical_risks", [])),
        special_groups=tuple(raw.get("special_groups", [])),
        rule=VaccineRule.from_string(raw.get("rule")),
        shared_aliases=tuple(str(alias) for alias in raw.get("shared_aliases", [])),
        **numbers,
    )


def validate_catalog(entries: Sequence[CatalogEntry]) -> None:
    """Validate catalog entries for consistency.

    Raises
    ------
    ValueError
        On an empty catalog, an inverted age window, a non-positive series
        size, a negative interval, an entry without aliases, a duplicate id,
        a normalized alias shared by two entries, or a shared alias that is
        also an entry's own alias.
    """
    if not entries:
        raise ValueError("Vaccine catalog is empty")

    seen_ids: set[str] = set()
    alias_owner: Dict[str, str] = {}
    shared_owners: Dict[str, List[str]] = {}

    for entry in entries:
        if entry.id in seen_ids:
            raise ValueError(f"Duplicate catalog id: {entry.id}")
        seen_ids.add(entry.id)

        if not entry.aliases:
            raise ValueError(f"Catalog entry {entry.id!r} has no aliases")
        if entry.min_age_months < 0 or entry.min_age_months > entry.max_age_months:
            raise ValueError(
                f"Catalog entry {entry.id!r}: invalid age window "
                f"{entry.min_age_months}-{entry.max_age_months} months"
            )
        if entry.total_doses <= 0:
            raise ValueError(
                f"Catalog entry {entry.id!r}: total_doses must be positive, "
                f"got {entry.total_doses}"
            )
        if entry.doses_interval_months < 0 or entry.booster_interval_months < 0:
            raise ValueError(f"Catalog entry {entry.id!r}: intervals must be >= 0")

        for alias in entry.aliases:
            token = normalize(alias)
            owner = alias_owner.get(token)
            if owner is not None and owner != entry.id:
                raise ValueError(
                    f"Alias {alias!r} of {entry.id!r} collides with {owner!r} "
                    f"(both normalize to {token!r})"
                )
            alias_owner[token] = entry.id

        for alias in entry.shared_aliases:
            shared_owners.setdefault(normalize(alias), []).append(entry.id)

    for token, owners in shared_owners.items():
        owner = alias_owner.get(token)
        if owner is not None:
            raise ValueError(
                f"Shared alias {token!r} of {owners} collides with an alias of {owner!r}"
            )


def load_catalog(catalog_path: Optional[Path] = None) -> Tuple[CatalogEntry, ...]:
    """Load, validate and cache the vaccine catalog.

    Parameters
    ----------
    catalog_path : Path, optional
        JSON file holding a list of entries. Defaults to
        config/vaccine_catalog.json in the project root.

    Returns
    -------
    Tuple[CatalogEntry, ...]
        Entries in file order.

    Raises
    ------
    FileNotFoundError
        If the catalog file does not exist.
    json.JSONDecodeError
        If the file is not valid JSON.
    ValueError
        If the document is not a list or fails validation.
    """
    path = Path(catalog_path or DEFAULT_CATALOG_PATH).resolve()
    if path in _CATALOG_CACHE:
        return _CATALOG_CACHE[path]

    if not path.exists():
        raise FileNotFoundError(f"Vaccine catalog not found: {path}")

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Vaccine catalog must be a JSON list, got {type(raw).__name__}")

    entries = tuple(entry_from_dict(item) for item in raw)
    validate_catalog(entries)

    LOG.info("Loaded %d catalog entries from %s", len(entries), path)
    _CATALOG_CACHE[path] = entries
    return entries


def lookup() -> List[CatalogEntry]:
    """Return the default catalog as a list, in catalog order."""
    return list(load_catalog())


def clear_caches() -> None:
    """Forget loaded catalogs. Useful for testing."""
    _CATALOG_CACHE.clear()
