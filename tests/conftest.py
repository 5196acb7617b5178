"""Shared pytest fixtures for unit and integration tests.

This module provides:
- The bundled vaccine catalog, loaded once per test with caches reset
- A fixed evaluation date so no test depends on the system clock
- Configuration fixtures for parameters.yaml testing
- Temporary files holding patient documents
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Tuple

import pytest
import yaml

from vaxplan.catalog import clear_caches, load_catalog
from vaxplan.data_models import CatalogEntry
from tests.fixtures import sample_input


@pytest.fixture(autouse=True)
def reset_catalog_cache():
    """Clear the catalog cache around every test.

    Real-world significance:
    - Tests that load alternate catalogs must not leak them into other tests
    """
    clear_caches()
    yield
    clear_caches()


@pytest.fixture
def catalog() -> Tuple[CatalogEntry, ...]:
    """Provide the bundled config/vaccine_catalog.json entries.

    Real-world significance:
    - Same catalog the CLI uses by default
    - Keeps tests honest about real aliases and age windows
    """
    return load_catalog()


@pytest.fixture
def entries_by_id(catalog) -> Dict[str, CatalogEntry]:
    """Catalog entries keyed by their stable id."""
    return {entry.id: entry for entry in catalog}


@pytest.fixture
def today() -> date:
    """Fixed evaluation date used by tests that do not need a specific one."""
    return date(2021, 6, 1)


@pytest.fixture
def default_config() -> Dict[str, Any]:
    """Provide a complete, valid configuration dict.

    Real-world significance:
    - Matches the schema of config/parameters.yaml
    - Tests mutate copies of this to probe validation

    Returns
    -------
    Dict[str, Any]
        Configuration dict with all standard sections
    """
    return {
        "engine": {"upcoming_window_days": 10, "catalog_path": None},
        "reminders": {
            "urgent_window_days": 10,
            "language": "en",
            "sender_name": "Vaccine Reminders",
        },
        "report": {"output_format": "csv"},
        "logging": {"level": "INFO"},
    }


@pytest.fixture
def config_file(tmp_path: Path, default_config: Dict[str, Any]) -> Path:
    """Write the default configuration to a temporary parameters.yaml."""
    path = tmp_path / "parameters.yaml"
    path.write_text(yaml.safe_dump(default_config), encoding="utf-8")
    return path


@pytest.fixture
def roster_file(tmp_path: Path) -> Path:
    """Write the three-patient sample roster to a temporary JSON file."""
    path = tmp_path / "patients.json"
    path.write_text(json.dumps(sample_input.create_roster()), encoding="utf-8")
    return path
