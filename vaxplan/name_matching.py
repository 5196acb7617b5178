"""Vaccine name normalization and alias matching.

Dose records arrive with free-text vaccine names (typed by staff, read off a
vaccination card, or imported from another system). These helpers map those
names onto catalog entries.

**Contracts:**

- ``normalize`` drops everything from the first "(" onward, lowercases,
  trims and collapses internal whitespace. "COVID-19 (Moderna)" and
  "COVID-19 (Pfizer-BioNTech)" both become "covid-19", so product variants
  must be registered as aliases of the same catalog entry.
- A combination product listed in ``shared_aliases`` (MMRV) belongs to every
  entry that lists it; ``find_entry`` returns the first such entry.
- A record belongs to an entry iff its normalized name equals the normalized
  form of one of the entry's aliases. There is no fuzzy matching here.
- ``suggest_alias`` is diagnostic only; it never changes which records count.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from .data_models import CatalogEntry, DoseRecord

THRESHOLD = 80


def normalize(text: str) -> str:
    """Normalize a vaccine name prior to matching.

    Examples
    --------
    >>> normalize("  MMR (Measles, Mumps, Rubella) ")
    'mmr'
    >>> normalize("Hepatitis   B")
    'hepatitis b'
    """
    head = (text or "").split("(", 1)[0]
    return re.sub(r"\s+", " ", head.strip().lower())


def matches_alias(text: str, aliases: Iterable[str]) -> bool:
    """True iff ``text`` normalizes to the same token as one of ``aliases``."""
    token = normalize(text)
    if not token:
        return False
    return any(normalize(alias) == token for alias in aliases)


def records_for(
    entry: CatalogEntry, records: Iterable[DoseRecord]
) -> Tuple[DoseRecord, ...]:
    """Filter dose records down to those belonging to ``entry``, keeping order."""
    return tuple(
        r for r in records if matches_alias(r.vaccine_name, entry.match_aliases)
    )


def find_entry(
    text: str, catalog: Sequence[CatalogEntry]
) -> Optional[CatalogEntry]:
    """Return the first catalog entry a free-text vaccine name belongs to, if any."""
    for entry in catalog:
        if matches_alias(text, entry.match_aliases):
            return entry
    return None


def suggest_alias(
    text: str, catalog: Sequence[CatalogEntry], threshold: int = THRESHOLD
) -> Optional[str]:
    """Suggest the closest catalog alias for an unmatched vaccine name.

    Uses ``rapidfuzz.process.extractOne`` with ``fuzz.WRatio`` over the
    normalized aliases. Returns the original (display) alias when the best
    score reaches ``threshold``, otherwise None.
    """
    query = normalize(text)
    if not query:
        return None

    aliases = list(
        dict.fromkeys(alias for entry in catalog for alias in entry.match_aliases)
    )
    if not aliases:
        return None

    match = process.extractOne(
        query=query,
        choices=[normalize(alias) for alias in aliases],
        scorer=fuzz.WRatio,
    )
    if match is None:
        return None

    _, score, index = match
    if score < threshold:
        return None
    return aliases[index]
