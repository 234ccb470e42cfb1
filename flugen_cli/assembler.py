"""Companion-file assembly and output path derivation.

Paths are handled as POSIX strings throughout so the ``part of`` directive
never depends on the host separator; conversion to a host path happens only
when the file system capability writes the file.
"""

from __future__ import annotations

import os
import posixpath
from typing import List, Optional, Sequence

from .config import SOURCE_SUFFIX
from .emitters import CLASS_EMITTERS
from .errors import WriteError
from .json_codec import dart_string
from .models import GenerationOptions, ResolvedClass

FORMAT_OFF = "// dart format off"
GENERATED_BANNER = "// GENERATED CODE - DO NOT MODIFY BY HAND"
LINT_IGNORES = (
    "avoid_equals_and_hash_code_on_mutable_classes",
    "document_ignores",
    "lines_longer_than_80_chars",
)


# ===================================================================
# Paths
# ===================================================================

def normalize_path(path: str, sep: str = os.sep) -> str:
    """Return *path* in POSIX form, treating *sep* as the host separator."""
    if sep != "/":
        path = path.replace(sep, "/")
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized


def companion_path(source: str, options: GenerationOptions, sep: str = os.sep) -> str:
    """POSIX path of the companion file generated for *source*."""
    source = normalize_path(source, sep)
    directory, base = posixpath.split(source)
    stem = base[: -len(SOURCE_SUFFIX)] if base.endswith(SOURCE_SUFFIX) else base
    name = stem + options.output_suffix

    if options.output_dir is None:
        return posixpath.join(directory, name)

    root = normalize_path(options.root, sep)
    relative_dir = posixpath.relpath(directory or ".", root or ".")
    if relative_dir == ".." or relative_dir.startswith("../"):
        raise WriteError(f"source is outside root '{options.root}'", file=source)
    output_dir = normalize_path(options.output_dir, sep)
    return posixpath.normpath(posixpath.join(output_dir, relative_dir, name))


def part_of_target(source: str, companion: str) -> str:
    """Relative POSIX path from the companion file back to *source*."""
    companion_dir = posixpath.dirname(companion) or "."
    return posixpath.relpath(source, companion_dir)


# ===================================================================
# Document
# ===================================================================

def assemble_class(cls: ResolvedClass, options: GenerationOptions) -> str:
    fragments = [emit(cls, options) for emit in CLASS_EMITTERS]
    body = "\n\n".join(f for f in fragments if f)
    return f"class {cls.name} extends {cls.definition.name} {{\n{body}\n}}\n"


def assemble_file(
    source: str,
    classes: Sequence[ResolvedClass],
    options: GenerationOptions,
    sep: str = os.sep,
) -> Optional[str]:
    """Full companion-file text for *source*, or None when it has no eligible class."""
    if not classes:
        return None

    source_posix = normalize_path(source, sep)
    target = part_of_target(source_posix, companion_path(source, options, sep))
    parts: List[str] = [
        FORMAT_OFF,
        GENERATED_BANNER,
        "// ignore_for_file: " + ", ".join(LINT_IGNORES),
        "",
        f"part of {dart_string(target)};",
        "",
    ]
    blocks = [assemble_class(cls, options) for cls in classes]
    return "\n".join(parts) + "\n" + "\n".join(blocks)
