"""Core data models shared by the parser, resolver, emitters and scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple, Union

from .config import DEFAULT_OUTPUT_SUFFIX, DEFAULT_PATTERN, GENERATED_SUFFIXES


# ===================================================================
# Parsed source
# ===================================================================

@dataclass(frozen=True)
class TypeRef:
    """A declared type signature such as ``Map<String, List<int>>?``."""
    name: str
    args: Tuple["TypeRef", ...] = ()
    nullable: bool = False

    def __str__(self) -> str:
        text = self.name
        if self.args:
            text += "<" + ", ".join(str(a) for a in self.args) + ">"
        return text + ("?" if self.nullable else "")

    def non_null(self) -> "TypeRef":
        return TypeRef(self.name, self.args, False)


@dataclass
class FieldOptions:
    key: Optional[str] = None
    is_enum: bool = False
    ignore: bool = False
    required: bool = False
    default: Optional[str] = None


@dataclass
class FieldDefinition:
    name: str
    type_ref: TypeRef
    line: int
    options: FieldOptions = field(default_factory=FieldOptions)

    @property
    def type_signature(self) -> str:
        return str(self.type_ref)

    @property
    def nullable(self) -> bool:
        return self.type_ref.nullable

    @property
    def json_key(self) -> str:
        return self.options.key if self.options.key is not None else self.name


@dataclass
class ClassDefinition:
    name: str
    source_path: str
    line: int
    fields: List[FieldDefinition] = field(default_factory=list)
    supports_const_constructor: bool = False

    @property
    def public_name(self) -> str:
        """Name of the generated class: the declared name minus its leading underscore."""
        return self.name[1:]


@dataclass
class EnumDefinition:
    name: str
    line: int
    values: List[str] = field(default_factory=list)


@dataclass
class ParsedFile:
    path: str
    classes: List[ClassDefinition] = field(default_factory=list)
    enums: List[EnumDefinition] = field(default_factory=list)


# ===================================================================
# Type categories
# ===================================================================

PrimitiveKind = Literal["int", "double", "bool", "string"]
CollectionKind = Literal["list", "set", "map"]


@dataclass(frozen=True)
class Primitive:
    kind: PrimitiveKind


@dataclass(frozen=True)
class DynamicType:
    pass


@dataclass(frozen=True)
class DateTimeType:
    pass


@dataclass(frozen=True)
class EnumType:
    name: str


@dataclass(frozen=True)
class CollectionType:
    """``list``/``set`` carry one element type, ``map`` carries (key, value)."""
    kind: CollectionKind
    element_types: Tuple["ResolvedType", ...]


@dataclass(frozen=True)
class NestedType:
    class_name: str


TypeCategory = Union[Primitive, DynamicType, DateTimeType, EnumType, CollectionType, NestedType]


@dataclass(frozen=True)
class ResolvedType:
    category: TypeCategory
    nullable: bool = False

    @property
    def accepts_null(self) -> bool:
        return self.nullable or isinstance(self.category, DynamicType)


@dataclass
class ResolvedField:
    definition: FieldDefinition
    resolved: ResolvedType

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass
class ResolvedClass:
    definition: ClassDefinition
    fields: List[ResolvedField] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.definition.public_name

    @property
    def compared_fields(self) -> List[ResolvedField]:
        """Fields taking part in equality and hashCode, in declaration order."""
        return [f for f in self.fields if not f.definition.options.ignore]


# ===================================================================
# Run configuration and results
# ===================================================================

@dataclass(frozen=True)
class GenerationOptions:
    patterns: Tuple[str, ...] = (DEFAULT_PATTERN,)
    workers: Optional[int] = None
    const_constructors: bool = True
    output_suffix: str = DEFAULT_OUTPUT_SUFFIX
    output_dir: Optional[str] = None
    root: str = "."
    strict_types: bool = False
    known_types: Tuple[str, ...] = ()
    exclude_suffixes: Tuple[str, ...] = GENERATED_SUFFIXES
    dry_run: bool = False


FileStatus = Literal["written", "unchanged", "skipped", "stale", "failed"]


@dataclass
class FileResult:
    path: str
    status: FileStatus
    output_path: Optional[str] = None
    class_count: int = 0
    error_kind: Optional[str] = None
    error_line: Optional[int] = None
    error_message: str = ""
    content: Optional[str] = None
    previous_content: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass
class RunSummary:
    results: List[FileResult] = field(default_factory=list)
    unmatched_patterns: List[str] = field(default_factory=list)

    @property
    def failures(self) -> List[FileResult]:
        return [r for r in self.results if r.failed]

    def count(self, status: FileStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0
