"""Configuration loading utilities for the recommendation engine.

Provides a centralized way to load and validate the parameters.yaml
configuration file used by the CLI and the reporting steps.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .enums import Language

SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "parameters.yaml"

OUTPUT_FORMATS = ("csv", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and parse the parameters.yaml configuration file.

    Automatically validates the configuration after loading.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file. If not provided, uses the default
        location (config/parameters.yaml in the project root).

    Returns
    -------
    Dict[str, Any]
        Parsed and validated YAML configuration as a nested dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the configuration file is invalid YAML.
    ValueError
        If the configuration fails validation (see validate_config).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    validate_config(config)
    return config


def _positive_int(value: Any, key: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration for consistency and required values.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary (result of load_config).

    Raises
    ------
    ValueError
        If a value has the wrong type or is out of range.

    Notes
    -----
    **Validation checks:**

    - **Engine:** upcoming_window_days is a positive integer; catalog_path is
      null or a string
    - **Reminders:** urgent_window_days is a positive integer; language is a
      supported Language code
    - **Report:** output_format is csv or json
    - **Logging:** level is a standard logging level name

    Missing sections fall back to defaults; config is validated once at load
    time, not per step.
    """
    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration must be a mapping, got {type(config).__name__}"
        )

    # Validate engine config
    engine_config = config.get("engine") or {}
    _positive_int(
        engine_config.get("upcoming_window_days", 10), "engine.upcoming_window_days"
    )
    catalog_path = engine_config.get("catalog_path")
    if catalog_path is not None and not isinstance(catalog_path, str):
        raise ValueError(
            f"engine.catalog_path must be a string, got {type(catalog_path).__name__}"
        )

    # Validate reminders config
    reminders_config = config.get("reminders") or {}
    _positive_int(
        reminders_config.get("urgent_window_days", 10), "reminders.urgent_window_days"
    )
    language = reminders_config.get("language")
    if language is None:
        language = "en"
    supported = sorted(Language.all_codes())
    if not isinstance(language, str) or language.lower() not in supported:
        raise ValueError(
            f"Invalid reminders.language: {language!r}. "
            f"Valid options: {', '.join(supported)}"
        )

    # Validate report config
    report_config = config.get("report") or {}
    output_format = report_config.get("output_format", "csv")
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(
            f"report.output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
            f"got {output_format!r}"
        )

    # Validate logging config
    logging_config = config.get("logging") or {}
    level = logging_config.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ValueError(
            f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
        )


def resolve_catalog_path(config: Dict[str, Any]) -> Optional[Path]:
    """Catalog path from config, resolved against the project root."""
    raw = (config.get("engine") or {}).get("catalog_path")
    if not raw:
        return None
    path = Path(raw)
    return path if path.is_absolute() else ROOT_DIR / path
