"""Expands input glob patterns into the ordered set of source files to process."""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .assembler import normalize_path
from .errors import GlobNoMatchError

logger = logging.getLogger(__name__)


@dataclass
class GlobResult:
    paths: List[str] = field(default_factory=list)
    misses: List[GlobNoMatchError] = field(default_factory=list)

    @property
    def unmatched_patterns(self) -> List[str]:
        return [m.pattern for m in self.misses]


def is_excluded(path: str, exclude_suffixes: Iterable[str]) -> bool:
    return any(path.endswith(suffix) for suffix in exclude_suffixes)


def resolve_patterns(patterns: Sequence[str], exclude_suffixes: Iterable[str] = ()) -> GlobResult:
    """Match *patterns* against the file system.

    Returns existing regular files, deduplicated by resolved absolute path and sorted
    lexicographically.  A pattern without any match is recorded in
    ``misses`` and the remaining patterns are still expanded.
    """
    excluded = tuple(exclude_suffixes)
    result = GlobResult()
    seen = {}

    for pattern in patterns:
        matched = 0
        for hit in glob.glob(os.path.expanduser(pattern), recursive=True):
            if not os.path.isfile(hit) or is_excluded(hit, excluded):
                continue
            matched += 1
            seen.setdefault(normalize_path(os.path.realpath(hit)), hit)
        if matched == 0:
            logger.warning("Pattern matched no files: %s", pattern)
            result.misses.append(GlobNoMatchError(pattern))
        else:
            logger.debug("Pattern %s matched %d file(s)", pattern, matched)

    result.paths = [seen[key] for key in sorted(seen)]
    return result
