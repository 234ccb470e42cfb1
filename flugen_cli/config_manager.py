"""Configuration loading for flugen using TOML files.

Settings live in a ``[flugen]`` table of ``flugen.toml`` (or the file named by
``$FLUGEN_CONFIG``)::

    [flugen]
    paths = ["lib/**/*.dart"]
    workers = 4
    const_constructors = true
    output_suffix = ".flu.dart"
    strict_types = false
    known_types = ["Money"]

Command-line options override file values, which override the defaults of
:class:`~flugen_cli.models.GenerationOptions`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .config import CONFIG_SECTION, SOURCE_SUFFIX, default_config_path
from .errors import ConfigError
from .models import GenerationOptions

logger = logging.getLogger(__name__)

_STR_LIST_KEYS = ("paths", "known_types", "exclude_suffixes")
_BOOL_KEYS = ("const_constructors", "strict_types")
_STR_KEYS = ("output_suffix", "output_dir", "root")

# TOML key -> GenerationOptions field
_OPTION_FIELDS = {
    "paths": "patterns",
    "workers": "workers",
    "const_constructors": "const_constructors",
    "output_suffix": "output_suffix",
    "output_dir": "output_dir",
    "root": "root",
    "strict_types": "strict_types",
    "known_types": "known_types",
    "exclude_suffixes": "exclude_suffixes",
}


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML file.

    A missing default file yields an empty config; a missing file that was
    named explicitly is an error.
    """
    explicit = path is not None
    config_path = path if explicit else default_config_path()
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except toml.TomlDecodeError as exc:
        raise ConfigError(f"invalid TOML in {config_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read {config_path}: {exc}") from exc
    logger.debug("Loaded config from %s", config_path)
    return data


def load_generation_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the validated ``[flugen]`` section."""
    section = load_full_config(path).get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' must be a table")
    return validate_config(section)


def validate_config(section: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(section) - set(_OPTION_FIELDS))
    if unknown:
        raise ConfigError(f"unknown config key(s): {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in section.items():
        if key in _STR_LIST_KEYS:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' must be a list of strings")
            value = tuple(value)
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(f"'{key}' must be true or false")
        elif key in _STR_KEYS:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{key}' must be a non-empty string")
        elif key == "workers":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError("'workers' must be an integer")
        values[key] = value
    return values


def build_options(
    file_config: Optional[Dict[str, Any]] = None,
    dry_run: bool = False,
    **overrides: Any,
) -> GenerationOptions:
    """Merge validated file values and non-None *overrides* into :class:`GenerationOptions`.

    *dry_run* is a command-line only switch (``flugen check``); it has no
    config file key.
    """
    merged: Dict[str, Any] = dict(file_config or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    merged = validate_config(merged)

    if not merged.get("paths", True):
        raise ConfigError("at least one path pattern is required")
    workers = merged.get("workers")
    if workers is not None and workers < 1:
        raise ConfigError("'workers' must be at least 1")
    suffix = merged.get("output_suffix")
    if suffix is not None and (not suffix.endswith(SOURCE_SUFFIX) or suffix == SOURCE_SUFFIX):
        raise ConfigError(f"'output_suffix' must end with '{SOURCE_SUFFIX}' and differ from it")

    fields = {_OPTION_FIELDS[k]: v for k, v in merged.items()}
    return GenerationOptions(dry_run=dry_run, **fields)
