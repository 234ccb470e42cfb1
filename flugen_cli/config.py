"""Static defaults for flugen runs."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_ENV_VAR = "FLUGEN_CONFIG"
CONFIG_FILE_NAME = "flugen.toml"
CONFIG_SECTION = "flugen"

DEFAULT_PATTERN = "lib/**/*.dart"
DEFAULT_OUTPUT_SUFFIX = ".flu.dart"
SOURCE_SUFFIX = ".dart"

# Companion files produced by flugen and other Dart generators are never inputs.
GENERATED_SUFFIXES = (".flu.dart", ".g.dart", ".freezed.dart")

MAX_DEFAULT_WORKERS = 32


def default_workers() -> int:
    """Platform-determined pool size used when no worker count is given."""
    return max(1, min(MAX_DEFAULT_WORKERS, os.cpu_count() or 1))


def default_config_path() -> Path:
    """Config file location: ``$FLUGEN_CONFIG`` or ``./flugen.toml``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / CONFIG_FILE_NAME
