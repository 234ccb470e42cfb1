"""Lexer for the subset of Dart that flugen needs to read.

Produces identifier, number, string, punctuation and marker tokens.  Ordinary
comments are dropped; a ``// @flu ...`` line comment becomes a ``marker``
token whose value is the text after ``@flu``.  String literals are consumed
whole (escapes, raw strings, triple quotes and nested ``${...}``
interpolation) so braces inside them never disturb block matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .errors import ParseError

MARKER = "@flu"

_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(r"0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_MULTI_PUNCT = ("=>",)


@dataclass(frozen=True)
class Token:
    kind: str  # ident | number | string | punct | marker | eof
    value: str
    line: int
    own_line: bool = True

    def is_punct(self, value: str) -> bool:
        return self.kind == "punct" and self.value == value

    def is_ident(self, value: Optional[str] = None) -> bool:
        return self.kind == "ident" and (value is None or self.value == value)


def marker_payload(comment_body: str) -> Optional[str]:
    """Return the option text of a ``// @flu`` comment, or None if it is not a marker.

    ``// @flu:`` comments are notes, and ``///`` doc comments never count.
    """
    if comment_body.startswith("/"):
        return None
    text = comment_body.strip()
    if text == MARKER:
        return ""
    if text.startswith(MARKER) and text[len(MARKER)].isspace():
        return text[len(MARKER):].strip()
    return None


class Tokenizer:
    def __init__(self, source: str, path: str = "<string>"):
        self.source = source
        self.path = path
        self.pos = 0
        self.line = 1

    def error(self, reason: str, line: Optional[int] = None) -> ParseError:
        return ParseError(reason, file=self.path, line=line if line is not None else self.line)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        src = self.source
        while self.pos < len(src):
            ch = src[self.pos]

            if ch == "\n":
                self.line += 1
                self.pos += 1
            elif ch.isspace():
                self.pos += 1
            elif src.startswith("//", self.pos):
                end = src.find("\n", self.pos)
                if end == -1:
                    end = len(src)
                payload = marker_payload(src[self.pos + 2:end])
                if payload is not None:
                    line_begin = src.rfind("\n", 0, self.pos) + 1
                    own_line = not src[line_begin:self.pos].strip()
                    tokens.append(Token("marker", payload, self.line, own_line))
                self.pos = end
            elif src.startswith("/*", self.pos):
                self._skip_block_comment()
            elif ch in "'\"":
                start_line = self.line
                tokens.append(Token("string", self._scan_string(raw=False), start_line))
            elif ch == "r" and src[self.pos + 1:self.pos + 2] in ("'", '"'):
                start_line = self.line
                self.pos += 1
                tokens.append(Token("string", "r" + self._scan_string(raw=True), start_line))
            elif "0" <= ch <= "9":
                match = _NUMBER_RE.match(src, self.pos)
                tokens.append(Token("number", match.group(0), self.line))
                self.pos = match.end()
            else:
                match = _IDENT_RE.match(src, self.pos)
                if match:
                    tokens.append(Token("ident", match.group(0), self.line))
                    self.pos = match.end()
                    continue
                for punct in _MULTI_PUNCT:
                    if src.startswith(punct, self.pos):
                        tokens.append(Token("punct", punct, self.line))
                        self.pos += len(punct)
                        break
                else:
                    tokens.append(Token("punct", ch, self.line))
                    self.pos += 1

        tokens.append(Token("eof", "", self.line))
        return tokens

    # ------------------------------------------------------------------
    # Comments and strings
    # ------------------------------------------------------------------

    def _skip_block_comment(self) -> None:
        # Dart block comments nest.
        start_line = self.line
        depth = 0
        src = self.source
        while self.pos < len(src):
            if src.startswith("/*", self.pos):
                depth += 1
                self.pos += 2
            elif src.startswith("*/", self.pos):
                depth -= 1
                self.pos += 2
                if depth == 0:
                    return
            else:
                if src[self.pos] == "\n":
                    self.line += 1
                self.pos += 1
        raise self.error("unterminated block comment", start_line)

    def _scan_string(self, raw: bool) -> str:
        """Consume a string literal starting at ``self.pos`` and return its source text."""
        src = self.source
        start = self.pos
        start_line = self.line
        quote = src[self.pos]
        triple = src.startswith(quote * 3, self.pos)
        delimiter = quote * 3 if triple else quote
        self.pos += len(delimiter)

        while self.pos < len(src):
            ch = src[self.pos]
            if src.startswith(delimiter, self.pos):
                self.pos += len(delimiter)
                return src[start:self.pos]
            if ch == "\n":
                if not triple:
                    break
                self.line += 1
                self.pos += 1
            elif ch == "\\" and not raw:
                if src[self.pos + 1:self.pos + 2] == "\n":
                    self.line += 1
                self.pos += 2
            elif ch == "$" and not raw and src[self.pos + 1:self.pos + 2] == "{":
                self.pos += 2
                self._skip_interpolation(start_line)
            else:
                self.pos += 1

        raise self.error("unterminated string literal", start_line)

    def _skip_interpolation(self, string_line: int) -> None:
        src = self.source
        depth = 1
        while self.pos < len(src):
            ch = src[self.pos]
            if ch == "{":
                depth += 1
                self.pos += 1
            elif ch == "}":
                depth -= 1
                self.pos += 1
                if depth == 0:
                    return
            elif ch in "'\"":
                self._scan_string(raw=False)
            elif ch == "\n":
                self.line += 1
                self.pos += 1
            else:
                self.pos += 1
        raise self.error("unterminated string interpolation", string_line)


def tokenize(source: str, path: str = "<string>") -> List[Token]:
    return Tokenizer(source, path).tokenize()
