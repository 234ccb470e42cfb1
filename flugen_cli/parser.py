"""Recursive-descent parser for ``// @flu`` annotated Dart classes.

Only the declarations flugen generates code for are understood:

- ``// @flu`` + ``abstract class _Name { ... }`` at top level,
- abstract getters ``Type get name;`` inside such a class,
- ``const _Name();`` (enables const constructors),
- stacked ``// @flu key="..." ignore ...`` option comments above a getter,
- top-level ``enum`` declarations, recorded so that field types naming them
  resolve as enums.

Everything else is skipped by balanced-brace matching over the token stream.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Set, Tuple

from .errors import ParseError
from .models import (
    ClassDefinition,
    EnumDefinition,
    FieldDefinition,
    FieldOptions,
    ParsedFile,
    TypeRef,
)
from .tokenizer import Token, tokenize

logger = logging.getLogger(__name__)

CLASS_MODIFIERS = {"base", "interface", "final", "sealed", "mixin"}
GETTER_MODIFIERS = {"external", "abstract", "covariant"}

FLAG_OPTIONS = {"enum", "ignore", "required"}
VALUE_OPTIONS = {"key", "default"}

_OPTION_RE = re.compile(
    r"""(?P<name>[A-Za-z_]\w*)(?:=(?P<value>"[^"]*"|'[^']*'|\S+))?"""
)


# ===================================================================
# Field options
# ===================================================================

def parse_field_options(
    text: str,
    path: str,
    line: int,
    options: Optional[FieldOptions] = None,
    seen: Optional[Set[str]] = None,
) -> FieldOptions:
    """Parse the text after ``// @flu`` into *options* (a new one if omitted).

    *seen* carries option names across stacked marker lines so that
    repeating an option is reported.
    """
    options = options if options is not None else FieldOptions()
    seen = seen if seen is not None else set()
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return options
        match = _OPTION_RE.match(text, pos)
        if match is None or (match.end() < len(text) and not text[match.end()].isspace()):
            raise ParseError(f"malformed field option near '{text[pos:]}'", file=path, line=line)
        pos = match.end()

        name, value = match.group("name"), match.group("value")
        if name in seen:
            raise ParseError(f"duplicate field option '{name}'", file=path, line=line)
        seen.add(name)

        if name in FLAG_OPTIONS:
            if value is not None:
                raise ParseError(f"field option '{name}' takes no value", file=path, line=line)
            setattr(options, "is_enum" if name == "enum" else name, True)
        elif name in VALUE_OPTIONS:
            if value is None or value in ('""', "''"):
                raise ParseError(f"field option '{name}' needs a value", file=path, line=line)
            if name == "key":
                options.key = _unquote(value)
            else:
                options.default = value
        else:
            raise ParseError(f"unknown field option '{name}'", file=path, line=line)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


# ===================================================================
# Type signatures
# ===================================================================

def render_tokens(tokens: List[Token]) -> str:
    """Join tokens back into compact source text."""
    out = ""
    prev: Optional[Token] = None
    for tok in tokens:
        if prev is not None and prev.kind in ("ident", "number") and tok.kind in ("ident", "number"):
            out += " "
        elif prev is not None and prev.is_punct(","):
            out += " "
        out += tok.value
        prev = tok
    return out


class _TypeTokenParser:
    def __init__(self, tokens: List[Token], path: str):
        self.tokens = tokens
        self.path = path
        self.pos = 0

    def _error(self) -> ParseError:
        line = self.tokens[0].line if self.tokens else None
        return ParseError(
            f"unparseable type signature '{render_tokens(self.tokens)}'", file=self.path, line=line
        )

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise self._error()
        self.pos += 1
        return tok

    def parse(self) -> TypeRef:
        ref = self._parse_type()
        if self.pos != len(self.tokens):
            raise self._error()
        return ref

    def _parse_type(self) -> TypeRef:
        tok = self._next()
        if tok.kind != "ident" or tok.value == "Function":
            raise self._error()
        name = tok.value
        while self._peek() is not None and self._peek().is_punct("."):
            self.pos += 1
            part = self._next()
            if part.kind != "ident":
                raise self._error()
            name += "." + part.value

        args: List[TypeRef] = []
        if self._peek() is not None and self._peek().is_punct("<"):
            self.pos += 1
            args.append(self._parse_type())
            while self._peek() is not None and self._peek().is_punct(","):
                self.pos += 1
                args.append(self._parse_type())
            if not self._next().is_punct(">"):
                raise self._error()

        nullable = False
        if self._peek() is not None and self._peek().is_punct("?"):
            self.pos += 1
            nullable = True
        return TypeRef(name, tuple(args), nullable)


def _strip_annotations(tokens: List[Token]) -> List[Token]:
    """Drop leading metadata such as ``@override`` or ``@Deprecated('x')``."""
    pos = 0
    while pos + 1 < len(tokens) and tokens[pos].is_punct("@"):
        pos += 2
        while pos + 1 < len(tokens) and tokens[pos].is_punct(".") and tokens[pos + 1].kind == "ident":
            pos += 2
        if pos < len(tokens) and tokens[pos].is_punct("("):
            depth = 0
            while pos < len(tokens):
                if tokens[pos].is_punct("("):
                    depth += 1
                elif tokens[pos].is_punct(")"):
                    depth -= 1
                pos += 1
                if depth == 0:
                    break
    return tokens[pos:]


def parse_type_tokens(tokens: List[Token], path: str) -> TypeRef:
    return _TypeTokenParser(tokens, path).parse()


def parse_type_signature(text: str, path: str = "<string>") -> TypeRef:
    """Parse a standalone signature such as ``'List<Map<String, int>>?'``."""
    tokens = [t for t in tokenize(text, path) if t.kind != "eof"]
    return parse_type_tokens(tokens, path)


# ===================================================================
# Source parser
# ===================================================================

class DartClassParser:
    """Extracts :class:`ClassDefinition` and :class:`EnumDefinition` records from one file."""

    def __init__(self, source: str, path: str = "<string>"):
        self.path = path
        self.tokens = tokenize(source, path)
        self.pos = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != "eof":
            self.pos += 1
        return tok

    def _error(self, reason: str, line: int) -> ParseError:
        return ParseError(reason, file=self.path, line=line)

    def _skip_block(self, unterminated: str, line: int) -> None:
        """Consume a balanced ``{ ... }`` block starting at the current token."""
        depth = 0
        while True:
            tok = self._advance()
            if tok.kind == "eof":
                raise self._error(unterminated, line)
            if tok.is_punct("{"):
                depth += 1
            elif tok.is_punct("}"):
                depth -= 1
                if depth == 0:
                    return

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> ParsedFile:
        result = ParsedFile(path=self.path)
        depth = 0
        while self._peek().kind != "eof":
            tok = self._peek()
            if tok.kind == "marker":
                self._advance()
                if depth == 0 and tok.own_line:
                    if tok.value:
                        raise self._error("class markers take no options", tok.line)
                    result.classes.append(self._parse_class(tok))
                continue
            if depth == 0 and tok.is_ident("enum"):
                result.enums.append(self._parse_enum())
                continue
            if tok.is_punct("{"):
                depth += 1
            elif tok.is_punct("}"):
                depth = max(0, depth - 1)
            self._advance()

        logger.debug(
            "Parsed %s: %d eligible class(es), %d enum(s)",
            self.path, len(result.classes), len(result.enums),
        )
        return result

    def _parse_enum(self) -> EnumDefinition:
        enum_tok = self._advance()
        name_tok = self._advance()
        if name_tok.kind != "ident":
            raise self._error("expected enum name", enum_tok.line)
        enum = EnumDefinition(name=name_tok.value, line=enum_tok.line)

        while not self._peek().is_punct("{"):
            if self._peek().kind == "eof" or self._peek().is_punct(";"):
                raise self._error(f"expected body for enum '{enum.name}'", enum_tok.line)
            self._advance()
        self._advance()

        # Values are the identifiers opening each comma-separated entry up to
        # the first ';' (enhanced enums) or the closing brace.
        depth = 0
        expect_value = True
        while True:
            tok = self._peek()
            if tok.kind == "eof":
                raise self._error(f"unterminated enum body for '{enum.name}'", enum_tok.line)
            if depth == 0 and tok.is_punct("}"):
                self._advance()
                return enum
            if depth == 0 and tok.is_punct(";"):
                # Members of an enhanced enum; skip to the closing brace.
                body_depth = 1
                while body_depth:
                    tok = self._advance()
                    if tok.kind == "eof":
                        raise self._error(f"unterminated enum body for '{enum.name}'", enum_tok.line)
                    if tok.is_punct("{"):
                        body_depth += 1
                    elif tok.is_punct("}"):
                        body_depth -= 1
                return enum
            if tok.is_punct("@") and depth == 0:
                self._advance()
                self._advance()
                continue
            if tok.is_punct("(") or tok.is_punct("{") or tok.is_punct("["):
                depth += 1
            elif tok.is_punct(")") or tok.is_punct("}") or tok.is_punct("]"):
                depth -= 1
            elif depth == 0 and tok.is_punct(","):
                expect_value = True
            elif depth == 0 and expect_value and tok.kind == "ident":
                enum.values.append(tok.value)
                expect_value = False
            self._advance()

    # ------------------------------------------------------------------
    # Eligible classes
    # ------------------------------------------------------------------

    def _skip_annotations(self) -> None:
        while self._peek().is_punct("@"):
            self._advance()
            self._advance()
            while self._peek().is_punct(".") and self._peek(1).kind == "ident":
                self._advance()
                self._advance()
            if self._peek().is_punct("("):
                depth = 0
                while True:
                    tok = self._advance()
                    if tok.kind == "eof":
                        return
                    if tok.is_punct("("):
                        depth += 1
                    elif tok.is_punct(")"):
                        depth -= 1
                        if depth == 0:
                            break

    def _parse_class(self, marker: Token) -> ClassDefinition:
        self._skip_annotations()
        tok = self._peek()
        if not tok.is_ident("abstract"):
            raise self._error("@flu marker must precede an abstract class declaration", marker.line)
        self._advance()
        while self._peek().kind == "ident" and self._peek().value in CLASS_MODIFIERS:
            self._advance()
        if not self._advance().is_ident("class"):
            raise self._error("@flu marker must precede an abstract class declaration", marker.line)

        name_tok = self._advance()
        if name_tok.kind != "ident":
            raise self._error("expected class name", tok.line)
        name = name_tok.value
        if len(name) < 2 or name[0] != "_" or name[1] == "_":
            raise self._error(
                f"class '{name}' must be private: '_' followed by the generated class name",
                name_tok.line,
            )
        if self._peek().is_punct("<"):
            raise self._error(f"generic class '{name}' is not supported", name_tok.line)

        # extends / implements / with clauses
        while not self._peek().is_punct("{"):
            if self._peek().kind == "eof" or self._peek().is_punct(";"):
                raise self._error(f"expected body for class '{name}'", name_tok.line)
            self._advance()
        self._advance()

        cls = ClassDefinition(name=name, source_path=self.path, line=tok.line)
        self._parse_class_body(cls)
        return cls

    def _parse_class_body(self, cls: ClassDefinition) -> None:
        pending: Optional[FieldOptions] = None
        pending_line = 0
        seen_options: Set[str] = set()
        field_names: Set[str] = set()

        while True:
            tok = self._peek()
            if tok.kind == "eof":
                raise self._error(f"unterminated class body for '{cls.name}'", cls.line)
            if tok.is_punct("}"):
                self._advance()
                break
            if tok.kind == "marker":
                self._advance()
                if not tok.own_line:
                    raise self._error("field options must be on their own line above a getter", tok.line)
                if pending is None:
                    pending, pending_line, seen_options = FieldOptions(), tok.line, set()
                parse_field_options(tok.value, self.path, tok.line, pending, seen_options)
                continue
            if tok.is_punct(";"):
                self._advance()
                continue

            member, has_body, has_value = self._read_member(cls)
            field = self._field_from_member(member, has_body, has_value)
            if field is not None:
                if field.name in field_names:
                    raise self._error(f"duplicate field '{field.name}' in '{cls.name}'", field.line)
                field_names.add(field.name)
                if pending is not None:
                    field.options = pending
                    pending = None
                cls.fields.append(field)
                continue

            if self._is_const_constructor(member, cls):
                cls.supports_const_constructor = True
            if pending is not None:
                raise self._error("field options must be followed by an abstract getter", pending_line)

        if pending is not None:
            raise self._error("field options must be followed by an abstract getter", pending_line)

    def _read_member(self, cls: ClassDefinition) -> Tuple[List[Token], bool, bool]:
        """Collect one member's tokens.

        Returns ``(tokens, has_body, has_value)``: *has_body* when the member
        ended with a ``{ ... }`` block, *has_value* when it contains ``=`` or
        ``=>``.
        """
        tokens: List[Token] = []
        depth = 0
        has_value = False
        unterminated = f"unterminated class body for '{cls.name}'"
        while True:
            tok = self._peek()
            if tok.kind == "eof":
                raise self._error(unterminated, cls.line)
            if depth == 0 and tok.is_punct(";"):
                self._advance()
                return tokens, False, has_value
            if depth == 0 and tok.is_punct("}"):
                raise self._error("expected ';' after member", tokens[-1].line if tokens else tok.line)
            if tok.is_punct("{"):
                self._skip_block(unterminated, cls.line)
                if depth == 0 and not has_value:
                    return tokens, True, has_value
                continue
            if tok.kind == "marker":
                self._advance()
                continue
            if tok.is_punct("(") or tok.is_punct("["):
                depth += 1
            elif tok.is_punct(")") or tok.is_punct("]"):
                depth -= 1
            elif tok.is_punct("=") or tok.is_punct("=>"):
                has_value = True
            tokens.append(tok)
            self._advance()

    def _field_from_member(
        self, tokens: List[Token], has_body: bool, has_value: bool
    ) -> Optional[FieldDefinition]:
        if has_body or has_value or len(tokens) < 2:
            return None
        if not (tokens[-2].is_ident("get") and tokens[-1].kind == "ident"):
            return None
        name_tok = tokens[-1]
        type_tokens = _strip_annotations(tokens[:-2])
        if type_tokens and type_tokens[0].is_ident("static"):
            return None

        while type_tokens and type_tokens[0].kind == "ident" and type_tokens[0].value in GETTER_MODIFIERS:
            type_tokens = type_tokens[1:]
        if not type_tokens:
            raise self._error(f"missing type for getter '{name_tok.value}'", name_tok.line)
        type_ref = parse_type_tokens(type_tokens, self.path)
        return FieldDefinition(name=name_tok.value, type_ref=type_ref, line=name_tok.line)

    @staticmethod
    def _is_const_constructor(tokens: List[Token], cls: ClassDefinition) -> bool:
        return (
            len(tokens) == 4
            and tokens[0].is_ident("const")
            and tokens[1].is_ident(cls.name)
            and tokens[2].is_punct("(")
            and tokens[3].is_punct(")")
        )


def parse_source(source: str, path: str = "<string>") -> ParsedFile:
    """Parse one file's text into its eligible classes and enums."""
    return DartClassParser(source, path).parse()
