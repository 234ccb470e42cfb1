"""Method emitters for generated companion classes.

Each ``emit_*`` function is a pure function of a :class:`ResolvedClass` and
the run's :class:`GenerationOptions` and returns a text fragment (without a
trailing newline) for the body of ``class Name extends _Name``.
"""

from __future__ import annotations

import re
import zlib
from typing import List

from .json_codec import dart_string, field_from_json, field_to_json
from .models import (
    CollectionType,
    DynamicType,
    GenerationOptions,
    ResolvedClass,
    ResolvedField,
)

SENTINEL = "_undefined"

_CONST_DEFAULT_RE = re.compile(
    r"""^(?:
        -?\d[\d_]*(?:\.\d+)?(?:[eE][+-]?\d+)?   # number
      | 0[xX][0-9a-fA-F]+                      # hex
      | true | false | null
      | '[^'$]*' | "[^"$]*"                    # plain string
      | const\b.*                              # explicit const expression
      | [A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)+  # qualified constant, e.g. Role.member
    )$""",
    re.VERBOSE | re.DOTALL,
)
_PLAIN_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEEP_EQUALITY_HELPERS = """\
  static bool _deepEquals(Object? a, Object? b) {
    if (identical(a, b)) return true;
    if (a is List && b is List) {
      if (a.length != b.length) return false;
      for (var i = 0; i < a.length; i++) {
        if (!_deepEquals(a[i], b[i])) return false;
      }
      return true;
    }
    if (a is Set && b is Set) {
      return a.length == b.length &&
          a.every((x) => b.any((y) => _deepEquals(x, y))) &&
          b.every((y) => a.any((x) => _deepEquals(x, y)));
    }
    if (a is Map && b is Map) {
      if (a.length != b.length) return false;
      for (final key in a.keys) {
        if (!b.containsKey(key) || !_deepEquals(a[key], b[key])) return false;
      }
      return true;
    }
    return a == b;
  }

  static int _deepHash(Object? value) {
    if (value is List) return Object.hashAll(value.map(_deepHash));
    if (value is Set) return Object.hashAllUnordered(value.map(_deepHash).toSet());
    if (value is Map) {
      return Object.hashAllUnordered(
        value.entries.map((e) => Object.hash(_deepHash(e.key), _deepHash(e.value))),
      );
    }
    return value.hashCode;
  }"""


# ===================================================================
# Predicates
# ===================================================================

def is_const_default(expression: str) -> bool:
    return bool(_CONST_DEFAULT_RE.match(expression.strip()))


def is_const_constructor(cls: ResolvedClass, options: GenerationOptions) -> bool:
    if not (options.const_constructors and cls.definition.supports_const_constructor):
        return False
    return all(
        is_const_default(f.definition.options.default)
        for f in cls.fields
        if f.definition.options.default is not None
    )


def uses_deep_equality(field: ResolvedField) -> bool:
    return isinstance(field.resolved.category, (CollectionType, DynamicType))


def needs_sentinel(cls: ResolvedClass) -> bool:
    return any(f.resolved.accepts_null for f in cls.fields)


def empty_hash_constant(class_name: str) -> int:
    """Stable hash for classes without compared fields (CRC-32 of the name, 30 bits)."""
    return zlib.crc32(class_name.encode("utf-8")) & 0x3FFFFFFF


def _interpolate(name: str) -> str:
    return f"${name}" if _PLAIN_IDENT_RE.match(name) else f"${{{name}}}"


# ===================================================================
# Emitters
# ===================================================================

def emit_constructor(cls: ResolvedClass, options: GenerationOptions) -> str:
    const = "const " if is_const_constructor(cls, options) else ""
    if not cls.fields:
        return f"  {const}{cls.name}();"

    lines = [f"  {const}{cls.name}({{"]
    initializers: List[str] = []
    for field in cls.fields:
        opts = field.definition.options
        if opts.default is not None and not is_const_default(opts.default):
            # Parameter defaults must be constant; apply the others in the initializer list.
            lines.append(f"    {_optional_type(field)} {field.name},")
            initializers.append(f"{field.name} = {field.name} ?? {opts.default}")
        elif opts.default is not None:
            lines.append(f"    this.{field.name} = {opts.default},")
        elif opts.required or not field.resolved.accepts_null:
            lines.append(f"    required this.{field.name},")
        else:
            lines.append(f"    this.{field.name},")

    if not initializers:
        lines.append("  });")
    else:
        lines.append("  })")
        lines.append("      : " + ",\n        ".join(initializers) + ";")
    return "\n".join(lines)


def _optional_type(field: ResolvedField) -> str:
    if isinstance(field.resolved.category, DynamicType):
        return "dynamic"
    return f"{field.definition.type_ref.non_null()}?"


def emit_from_json(cls: ResolvedClass, options: GenerationOptions) -> str:
    signature = f"  factory {cls.name}.fromJson(Map<String, dynamic> json)"
    if not cls.fields:
        return f"{signature} => {cls.name}();"

    lines = [f"{signature} {{", f"    return {cls.name}("]
    for field in cls.fields:
        lines.append(f"      {field.name}: {field_from_json(field)},")
    lines.append("    );")
    lines.append("  }")
    return "\n".join(lines)


def emit_fields(cls: ResolvedClass, options: GenerationOptions) -> str:
    blocks = [
        f"  @override\n  final {field.definition.type_signature} {field.name};"
        for field in cls.fields
    ]
    return "\n\n".join(blocks)


def emit_to_json(cls: ResolvedClass, options: GenerationOptions) -> str:
    if not cls.fields:
        return "  Map<String, dynamic> toJson() => <String, dynamic>{};"

    lines = ["  Map<String, dynamic> toJson() => <String, dynamic>{"]
    for field in cls.fields:
        lines.append(f"    {dart_string(field.definition.json_key)}: {field_to_json(field)},")
    lines.append("  };")
    return "\n".join(lines)


def emit_copy_with(cls: ResolvedClass, options: GenerationOptions) -> str:
    if not cls.fields:
        return f"  {cls.name} copyWith() => {cls.name}();"

    params: List[str] = []
    args: List[str] = []
    for field in cls.fields:
        name = field.name
        if field.resolved.accepts_null:
            params.append(f"    Object? {name} = {SENTINEL},")
            if isinstance(field.resolved.category, DynamicType):
                value = name
            else:
                value = f"{name} as {field.definition.type_signature}"
            args.append(f"      {name}: identical({name}, {SENTINEL}) ? this.{name} : {value},")
        else:
            params.append(f"    {field.definition.type_ref.non_null()}? {name},")
            args.append(f"      {name}: {name} ?? this.{name},")

    lines = [f"  {cls.name} copyWith({{", *params, "  }) {", f"    return {cls.name}(", *args, "    );", "  }"]
    return "\n".join(lines)


def emit_to_string(cls: ResolvedClass, options: GenerationOptions) -> str:
    parts = ", ".join(f"{field.name}: {_interpolate(field.name)}" for field in cls.fields)
    return f"  @override\n  String toString() => '{cls.name}({parts})';"


def emit_equality(cls: ResolvedClass, options: GenerationOptions) -> str:
    lines = [
        "  @override",
        "  bool operator ==(Object other) {",
        "    if (identical(this, other)) return true;",
    ]
    compared = cls.compared_fields
    if not compared:
        lines.append(f"    return other is {cls.name};")
    else:
        checks = [f"other is {cls.name}"]
        for field in compared:
            if uses_deep_equality(field):
                checks.append(f"_deepEquals(other.{field.name}, this.{field.name})")
            else:
                checks.append(f"other.{field.name} == this.{field.name}")
        lines.append("    return " + " &&\n        ".join(checks) + ";")
    lines.append("  }")
    return "\n".join(lines)


def emit_hash_code(cls: ResolvedClass, options: GenerationOptions) -> str:
    compared = cls.compared_fields
    if not compared:
        return f"  @override\n  int get hashCode => {empty_hash_constant(cls.name)};"

    lines = ["  @override", "  int get hashCode => Object.hashAll(["]
    for field in compared:
        value = f"_deepHash({field.name})" if uses_deep_equality(field) else field.name
        lines.append(f"    {value},")
    lines.append("  ]);")
    return "\n".join(lines)


def emit_helpers(cls: ResolvedClass, options: GenerationOptions) -> str:
    """Private statics the other emitters rely on; empty when none are needed."""
    blocks = []
    if needs_sentinel(cls):
        blocks.append(f"  static const Object {SENTINEL} = Object();")
    if any(uses_deep_equality(f) for f in cls.compared_fields):
        blocks.append(DEEP_EQUALITY_HELPERS)
    return "\n\n".join(blocks)


# Order of fragments inside a generated class body.
CLASS_EMITTERS = (
    emit_constructor,
    emit_from_json,
    emit_fields,
    emit_to_json,
    emit_copy_with,
    emit_to_string,
    emit_equality,
    emit_hash_code,
    emit_helpers,
)
