"""Queries the converter needs from a type-resolution oracle.

The conversion engine never parses source text itself. It consumes resolved
types through the protocols below; :mod:`ts_to_typespec.tsproject` provides
one implementation for TypeScript declaration files. Two resolved types are
"the same type" only when they are the same object (``a is b``).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Protocol, Union


class TypeKind(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEMPLATE_LITERAL = "template-literal"
    ARRAY = "array"
    TUPLE = "tuple"
    GENERIC = "generic-instantiation"
    OBJECT = "object"
    UNION = "union"
    INTERSECTION = "intersection"
    OTHER = "other"


@dataclass(frozen=True)
class DocTag:
    name: str
    text: str = ""


@dataclass(frozen=True)
class DocComment:
    """Structured documentation: free text before tags, then ordered tags."""

    description: str = ""
    tags: tuple[DocTag, ...] = field(default_factory=tuple)

    def tags_named(self, name: str) -> list[DocTag]:
        return [tag for tag in self.tags if tag.name == name]

    def has_tag(self, name: str) -> bool:
        return any(tag.name == name for tag in self.tags)


class Property(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def optional(self) -> bool: ...

    @property
    def type(self) -> ResolvedType: ...

    @property
    def docs(self) -> DocComment: ...


TemplateSpan = Union[str, "ResolvedType"]


class ResolvedType(Protocol):
    """A classified type handle. Accessors not matching ``kind`` are empty."""

    @property
    def kind(self) -> TypeKind: ...

    @property
    def text(self) -> str:
        """Canonical source rendering, used for the verbatim fallback."""
        ...

    @property
    def element_type(self) -> ResolvedType | None: ...

    @property
    def elements(self) -> Sequence[ResolvedType]: ...

    @property
    def properties(self) -> Sequence[Property]: ...

    @property
    def members(self) -> Sequence[ResolvedType]: ...

    @property
    def symbol_name(self) -> str | None: ...

    @property
    def type_arguments(self) -> Sequence[ResolvedType]: ...

    @property
    def template_spans(self) -> Sequence[TemplateSpan]:
        """Alternating literal text and interpolated types."""
        ...


DeclarationKind = Literal["interface", "type", "enum"]


class Declaration(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def kind(self) -> DeclarationKind: ...

    @property
    def type(self) -> ResolvedType: ...

    @property
    def type_parameters(self) -> Sequence[str]: ...

    @property
    def docs(self) -> DocComment: ...


class SourceUnit(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def declarations(self) -> Sequence[Declaration]: ...


class TypeProject(Protocol):
    @property
    def units(self) -> Sequence[SourceUnit]: ...

    def get_unit(self, name: str) -> SourceUnit | None: ...


Documented = Union[Declaration, Property]
