"""Unified diffs between existing companion files and freshly generated ones."""

from __future__ import annotations

import difflib
from typing import Iterable, List

from .models import FileResult


class DiffEngine:
    """Renders what ``flugen generate`` would change on disk."""

    def create_diff(self, original: str, modified: str, filename: str = "file") -> str:
        """Create unified diff between two versions.

        Args:
            original: Original content
            modified: Modified content
            filename: Name of file for diff header

        Returns:
            Unified diff string
        """
        original_lines = original.splitlines(keepends=True)
        modified_lines = modified.splitlines(keepends=True)

        diff = difflib.unified_diff(
            original_lines,
            modified_lines,
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
        )

        return "".join(diff)

    def preview_results(self, results: Iterable[FileResult]) -> str:
        """Diffs for every stale companion, new files shown against an empty original."""
        chunks: List[str] = []
        for result in results:
            if result.status != "stale" or result.content is None:
                continue
            chunks.append(
                self.create_diff(
                    result.previous_content or "",
                    result.content,
                    result.output_path or result.path,
                )
            )
        return "\n".join(chunks)
