"""Maps declared field types to the generation strategy used by the emitters."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Set, Union

from .errors import UnresolvedTypeError
from .models import (
    ClassDefinition,
    CollectionType,
    DateTimeType,
    DynamicType,
    EnumType,
    FieldDefinition,
    GenerationOptions,
    NestedType,
    ParsedFile,
    Primitive,
    ResolvedClass,
    ResolvedField,
    ResolvedType,
    TypeRef,
)
from .parser import parse_type_signature

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES: Dict[str, str] = {
    "int": "int",
    "double": "double",
    "bool": "bool",
    "String": "string",
}

COLLECTION_TYPES: Dict[str, str] = {
    "List": "list",
    "Set": "set",
    "Map": "map",
}

MAP_KEY_CATEGORIES = (Primitive, EnumType, DateTimeType, DynamicType)


def describe_type(rt: ResolvedType) -> str:
    """Short human-readable form of a resolved type, e.g. ``list<enum Role?>?``."""
    cat = rt.category
    if isinstance(cat, Primitive):
        text = cat.kind
    elif isinstance(cat, DynamicType):
        text = "dynamic"
    elif isinstance(cat, DateTimeType):
        text = "DateTime"
    elif isinstance(cat, EnumType):
        text = f"enum {cat.name}"
    elif isinstance(cat, NestedType):
        text = f"nested {cat.class_name}"
    else:
        text = f"{cat.kind}<{', '.join(describe_type(e) for e in cat.element_types)}>"
    return text + ("?" if rt.nullable else "")


class TypeResolver:
    """Resolves :class:`TypeRef` values for the classes of one parsed file.

    Unknown identifiers become :class:`NestedType` and are assumed to expose
    ``fromJson``/``toJson``.  With ``strict=True`` they must name an eligible
    class of the same file or one of *known_types*.
    """

    def __init__(
        self,
        enums: Iterable[str] = (),
        classes: Iterable[str] = (),
        strict: bool = False,
        known_types: Iterable[str] = (),
        path: str = "<string>",
    ) -> None:
        self.enums: Set[str] = set(enums)
        self.classes: Set[str] = set(classes)
        self.known_types: Set[str] = set(known_types)
        self.strict = strict
        self.path = path

    @classmethod
    def for_file(cls, parsed: ParsedFile, options: GenerationOptions) -> "TypeResolver":
        return cls(
            enums=(e.name for e in parsed.enums),
            classes=(c.public_name for c in parsed.classes),
            strict=options.strict_types,
            known_types=options.known_types,
            path=parsed.path,
        )

    def _error(self, reason: str, line: Optional[int]) -> UnresolvedTypeError:
        return UnresolvedTypeError(reason, file=self.path, line=line)

    def resolve(
        self,
        type_ref: Union[TypeRef, str],
        force_enum: bool = False,
        line: Optional[int] = None,
    ) -> ResolvedType:
        if isinstance(type_ref, str):
            type_ref = parse_type_signature(type_ref, self.path)
        name, args = type_ref.name, type_ref.args

        if name in PRIMITIVE_TYPES:
            self._expect_no_args(type_ref, line)
            return ResolvedType(Primitive(PRIMITIVE_TYPES[name]), type_ref.nullable)

        if name == "dynamic":
            self._expect_no_args(type_ref, line)
            return ResolvedType(DynamicType(), type_ref.nullable)

        if name == "DateTime":
            self._expect_no_args(type_ref, line)
            return ResolvedType(DateTimeType(), type_ref.nullable)

        if name in COLLECTION_TYPES:
            return self._resolve_collection(type_ref, force_enum, line)

        self._expect_no_args(type_ref, line)
        if force_enum or name in self.enums:
            return ResolvedType(EnumType(name), type_ref.nullable)

        if self.strict and name not in self.classes and name not in self.known_types:
            raise self._error(f"unknown type '{name}'", line)
        return ResolvedType(NestedType(name), type_ref.nullable)

    def _resolve_collection(self, type_ref: TypeRef, force_enum: bool, line: Optional[int]) -> ResolvedType:
        kind = COLLECTION_TYPES[type_ref.name]
        arity = 2 if kind == "map" else 1
        args = type_ref.args
        if not args:
            args = (TypeRef("String"), TypeRef("dynamic")) if kind == "map" else (TypeRef("dynamic"),)
        if len(args) != arity:
            raise self._error(
                f"'{type_ref.name}' takes {arity} type argument(s), got {len(args)} in '{type_ref}'",
                line,
            )

        elements = tuple(self.resolve(arg, force_enum, line) for arg in args)
        if kind == "map":
            key = elements[0]
            if key.nullable or not isinstance(key.category, MAP_KEY_CATEGORIES):
                raise self._error(f"unsupported map key type '{args[0]}' in '{type_ref}'", line)
        return ResolvedType(CollectionType(kind, elements), type_ref.nullable)

    def _expect_no_args(self, type_ref: TypeRef, line: Optional[int]) -> None:
        if type_ref.args:
            raise self._error(f"type '{type_ref.name}' takes no type arguments in '{type_ref}'", line)

    # ------------------------------------------------------------------
    # Whole classes
    # ------------------------------------------------------------------

    def resolve_field(self, field: FieldDefinition) -> ResolvedField:
        resolved = self.resolve(field.type_ref, force_enum=field.options.is_enum, line=field.line)
        return ResolvedField(definition=field, resolved=resolved)

    def resolve_class(self, cls: ClassDefinition) -> ResolvedClass:
        fields = [self.resolve_field(f) for f in cls.fields]
        logger.debug("Resolved %d field(s) of %s", len(fields), cls.name)
        return ResolvedClass(definition=cls, fields=fields)
