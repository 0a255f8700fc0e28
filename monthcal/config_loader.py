"""monthcal.config_loader

Config loader for monthcal.

- Reads YAML (PyYAML; JSON is a subset of YAML so JSON files load too).
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .month_exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("monthcal.yaml")


@dataclass
class Config:
    """Typed configuration for monthcal.

    Fields:
        use_calendar_timezone: interpret dates in the provider's declared offsets
            (True) or convert them to the viewer's zone (False)
        viewer_timezone: IANA zone of the viewer; detected when unset
        max_occurrences_per_rule: cap on occurrences produced per recurrence rule
        log_level: logging level name
    """

    use_calendar_timezone: bool = True
    viewer_timezone: str | None = None
    max_occurrences_per_rule: int = 500
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and booleans accept the usual
        string spellings; each coercion that falls back to a default logs a warning.
        """
        if data is None:
            data = {}

        def _coerce_bool(key: str, default: bool) -> bool:
            raw = data.get(key, default)
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.strip().lower() in ("1", "true", "yes", "on"):
                return True
            if isinstance(raw, str) and raw.strip().lower() in ("0", "false", "no", "off"):
                return False
            logger.warning("Config %s=%r is not a boolean; using default %s", key, raw, default)
            return default

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        use_calendar_timezone = _coerce_bool("use_calendar_timezone", True)

        max_occurrences = _coerce_int("max_occurrences_per_rule", 500)
        if max_occurrences < 1:
            logger.warning("max_occurrences_per_rule %d below minimum; coercing to 1", max_occurrences)
            max_occurrences = 1

        viewer_timezone = data.get("viewer_timezone")
        viewer_timezone = str(viewer_timezone) if viewer_timezone else None

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            use_calendar_timezone=use_calendar_timezone,
            viewer_timezone=viewer_timezone,
            max_occurrences_per_rule=max_occurrences,
            log_level=log_level,
        )


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file and return a Config instance.

    Args:
        path: Optional path to the config file; defaults to ./monthcal.yaml

    Returns:
        Config dataclass instance with values from file (or defaults).

    Raises:
        ConfigError: If the file is not valid YAML or its top level is not a mapping
    """
    p = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    try:
        raw = yaml.safe_load(p.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse config file {p}: {e}") from e

    # safe_load returns None for empty files
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError("Config file must contain a mapping at top level")

    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
