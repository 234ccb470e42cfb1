"""Error kinds raised while discovering, parsing and generating files."""

from __future__ import annotations

from typing import Optional


class FlugenError(Exception):
    """Base class for every error flugen reports to the user."""

    kind = "FlugenError"

    def __init__(self, reason: str, file: Optional[str] = None, line: Optional[int] = None):
        self.reason = reason
        self.file = file
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.file is None:
            return self.reason
        if self.line is None:
            return f"{self.file}: {self.reason}"
        return f"{self.file}:{self.line}: {self.reason}"


class ConfigError(FlugenError):
    """Invalid configuration; aborts the run before any file is scheduled."""

    kind = "ConfigError"


class GlobNoMatchError(FlugenError):
    """A glob pattern matched no input file."""

    kind = "GlobNoMatchError"

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"pattern matched no files: {pattern}")


class ParseError(FlugenError):
    """Malformed class, field, option or type syntax in one source file."""

    kind = "ParseError"


class UnresolvedTypeError(ParseError):
    """A field type cannot be mapped to a generation strategy."""

    kind = "UnresolvedTypeError"


class ReadError(FlugenError):
    """A source file could not be read."""

    kind = "ReadError"


class WriteError(FlugenError):
    """A companion file could not be written."""

    kind = "WriteError"


class InternalError(FlugenError):
    """Unexpected failure inside a single file's task."""

    kind = "InternalError"
