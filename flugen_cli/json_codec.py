"""Dart expressions converting field values to and from decoded JSON.

``from_json`` and ``to_json`` are inverses per :data:`TypeCategory`:

=============  ==========================================  =========================
category       from JSON                                   to JSON
=============  ==========================================  =========================
int / double   ``(v as num).toInt()`` / ``.toDouble()``    ``v``
bool / String  ``v as bool`` / ``v as String``             ``v``
dynamic        ``v``                                       ``v``
DateTime       ``DateTime.parse(v as String)``             ``v.toIso8601String()``
enum           ``E.values.byName(v as String)``            ``v.name``
List / Set     element-wise ``map(...).toList()/toSet()``  element-wise, sets as lists
Map            ``MapEntry`` per entry, keys parsed         keys written as strings
nested         ``T.fromJson(v as Map<String, dynamic>)``   ``v.toJson()``
=============  ==========================================  =========================

Nullable DateTime values use ``DateTime.tryParse`` so an unparsable string
becomes null.  ``values.byName`` throws ``ArgumentError`` for unknown enum
names.
"""

from __future__ import annotations

from dataclasses import replace

from .models import (
    CollectionType,
    DateTimeType,
    DynamicType,
    EnumType,
    NestedType,
    Primitive,
    ResolvedField,
    ResolvedType,
)


def dart_string(text: str) -> str:
    """Quote *text* as a single-quoted Dart string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("$", "\\$")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def _var(prefix: str, depth: int) -> str:
    return prefix if depth == 0 else f"{prefix}{depth}"


def _null_guard(src: str, expr: str, nullable: bool) -> str:
    return f"{src} == null ? null : {expr}" if nullable else expr


# ===================================================================
# JSON -> Dart
# ===================================================================

def from_json(rt: ResolvedType, src: str, depth: int = 0) -> str:
    """Expression converting the decoded JSON value *src* into a value of *rt*."""
    cat = rt.category
    q = "?" if rt.nullable else ""

    if isinstance(cat, Primitive):
        if cat.kind == "int":
            return f"({src} as num{q}){q}.toInt()"
        if cat.kind == "double":
            return f"({src} as num{q}){q}.toDouble()"
        return f"{src} as {'bool' if cat.kind == 'bool' else 'String'}{q}"

    if isinstance(cat, DynamicType):
        return src

    if isinstance(cat, DateTimeType):
        if rt.nullable:
            return f"DateTime.tryParse({src} as String? ?? '')"
        return f"DateTime.parse({src} as String)"

    if isinstance(cat, EnumType):
        return _null_guard(src, f"{cat.name}.values.byName({src} as String)", rt.nullable)

    if isinstance(cat, NestedType):
        return _null_guard(src, f"{cat.class_name}.fromJson({src} as Map<String, dynamic>)", rt.nullable)

    if isinstance(cat, CollectionType):
        if cat.kind == "map":
            key_type, value_type = cat.element_types
            k, v = _var("k", depth), _var("v", depth)
            entry = f"MapEntry({map_key_from_json(key_type, k)}, {from_json(value_type, v, depth + 1)})"
            return f"({src} as Map<String, dynamic>{q}){q}.map(({k}, {v}) => {entry})"
        e = _var("e", depth)
        inner = from_json(cat.element_types[0], e, depth + 1)
        collect = "toSet" if cat.kind == "set" else "toList"
        return f"({src} as List<dynamic>{q}){q}.map(({e}) => {inner}).{collect}()"

    raise TypeError(f"unhandled type category: {cat!r}")


def map_key_from_json(rt: ResolvedType, var: str) -> str:
    cat = rt.category
    if isinstance(cat, Primitive):
        if cat.kind == "int":
            return f"int.parse({var})"
        if cat.kind == "double":
            return f"double.parse({var})"
        if cat.kind == "bool":
            return f"{var} == 'true'"
        return var
    if isinstance(cat, EnumType):
        return f"{cat.name}.values.byName({var})"
    if isinstance(cat, DateTimeType):
        return f"DateTime.parse({var})"
    return var


# ===================================================================
# Dart -> JSON
# ===================================================================

def needs_conversion(rt: ResolvedType) -> bool:
    """False when the value is already JSON-encodable as is."""
    cat = rt.category
    if isinstance(cat, (DateTimeType, EnumType, NestedType)):
        return True
    if isinstance(cat, CollectionType):
        if cat.kind == "set":
            return True
        if cat.kind == "map":
            key_type, value_type = cat.element_types
            return _key_needs_conversion(key_type) or needs_conversion(value_type)
        return needs_conversion(cat.element_types[0])
    return False


def _key_needs_conversion(rt: ResolvedType) -> bool:
    cat = rt.category
    return not (isinstance(cat, DynamicType) or (isinstance(cat, Primitive) and cat.kind == "string"))


def to_json(rt: ResolvedType, value: str, depth: int = 0) -> str:
    """Expression converting the Dart value *value* of type *rt* into encodable JSON."""
    cat = rt.category
    q = "?" if rt.nullable else ""

    if isinstance(cat, DateTimeType):
        return f"{value}{q}.toIso8601String()"
    if isinstance(cat, EnumType):
        return f"{value}{q}.name"
    if isinstance(cat, NestedType):
        return f"{value}{q}.toJson()"

    if isinstance(cat, CollectionType) and needs_conversion(rt):
        if cat.kind == "map":
            key_type, value_type = cat.element_types
            k, v = _var("k", depth), _var("v", depth)
            entry = f"MapEntry({map_key_to_json(key_type, k)}, {to_json(value_type, v, depth + 1)})"
            return f"{value}{q}.map(({k}, {v}) => {entry})"
        element = cat.element_types[0]
        if not needs_conversion(element):
            return f"{value}{q}.toList()"
        e = _var("e", depth)
        return f"{value}{q}.map(({e}) => {to_json(element, e, depth + 1)}).toList()"

    return value


def map_key_to_json(rt: ResolvedType, var: str) -> str:
    cat = rt.category
    if isinstance(cat, EnumType):
        return f"{var}.name"
    if isinstance(cat, DateTimeType):
        return f"{var}.toIso8601String()"
    if _key_needs_conversion(rt):
        return f"{var}.toString()"
    return var


# ===================================================================
# Fields
# ===================================================================

def json_lookup(field: ResolvedField) -> str:
    return f"json[{dart_string(field.definition.json_key)}]"


def field_from_json(field: ResolvedField) -> str:
    """fromJson argument for *field*, honouring its custom key and default."""
    src = json_lookup(field)
    rt = field.resolved
    default = field.definition.options.default
    if default is None:
        return from_json(rt, src)
    if isinstance(rt.category, DynamicType):
        return f"{src} ?? {default}"
    if isinstance(rt.category, DateTimeType) and rt.nullable:
        return f"{from_json(rt, src)} ?? {default}"
    return f"{src} == null ? {default} : {from_json(replace(rt, nullable=False), src)}"


def field_to_json(field: ResolvedField) -> str:
    return to_json(field.resolved, field.name)
