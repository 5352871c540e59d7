"""Project-level type resolution for parsed TypeScript declarations.

:class:`TypeScriptProject` implements the oracle protocols of
:mod:`ts_to_typespec.oracle`. Each declaration's type is resolved once and
cached, so every reference to a declared name yields the same object, which
is what the model registry's identity lookup relies on. Keywords and literals
get a fresh object per occurrence.
"""

from __future__ import annotations

import itertools
import logging
import os
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .oracle import DeclarationKind, DocComment, TypeKind
from .tsparser import (
    ArrayType,
    DeclarationNode,
    EnumDeclaration,
    InterfaceDeclaration,
    IntersectionType,
    KeywordType,
    LiteralType,
    OpaqueType,
    ParsedUnit,
    PropertySignature,
    TemplateLiteralType,
    TupleType,
    TypeLiteral,
    TypeNode,
    TypeReference,
    UnionType,
    parse_source,
    quote,
)

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    "string": TypeKind.STRING,
    "number": TypeKind.NUMBER,
    "boolean": TypeKind.BOOLEAN,
}


@dataclass(eq=False)
class TsType:
    """Resolved type handle; equality is identity."""

    kind: TypeKind
    text: str
    element_type: TsType | None = None
    elements: tuple[TsType, ...] = ()
    members: tuple[TsType, ...] = ()
    symbol_name: str | None = None
    type_arguments: tuple[TsType, ...] = ()
    template_spans: tuple[str | TsType, ...] = ()
    property_source: Callable[[], tuple[TsProperty, ...]] | None = field(
        default=None, repr=False
    )
    _properties: tuple[TsProperty, ...] | None = field(default=None, init=False, repr=False)

    @property
    def properties(self) -> tuple[TsProperty, ...]:
        if self._properties is None:
            self._properties = self.property_source() if self.property_source else ()
        return self._properties


class TsProperty:
    """A named member whose type is resolved on first access."""

    def __init__(
        self,
        name: str,
        optional: bool,
        docs: DocComment,
        resolve: Callable[[], TsType],
        lock: threading.RLock,
    ) -> None:
        self.name = name
        self.optional = optional
        self.docs = docs
        self._resolve = resolve
        self._lock = lock
        self._type: TsType | None = None

    @property
    def type(self) -> TsType:
        if self._type is None:
            with self._lock:
                if self._type is None:
                    self._type = self._resolve()
        return self._type

    def __repr__(self) -> str:
        return f"TsProperty({self.name!r}, optional={self.optional})"


class TsDeclaration:
    """One top-level interface, type alias or enum of a unit."""

    def __init__(self, node: DeclarationNode, unit: TsSourceUnit) -> None:
        self.node = node
        self.unit = unit
        self._type: TsType | None = None
        self._resolving = False

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def kind(self) -> DeclarationKind:
        if isinstance(self.node, InterfaceDeclaration):
            return "interface"
        if isinstance(self.node, EnumDeclaration):
            return "enum"
        return "type"

    @property
    def docs(self) -> DocComment:
        return self.node.docs

    @property
    def type_parameters(self) -> tuple[str, ...]:
        if isinstance(self.node, EnumDeclaration):
            return ()
        return self.node.type_parameters

    @property
    def type(self) -> TsType:
        return self.unit.project.declaration_type(self)

    def __repr__(self) -> str:
        return f"TsDeclaration({self.kind} {self.name!r} in {self.unit.name!r})"


class TsSourceUnit:
    def __init__(self, project: TypeScriptProject, parsed: ParsedUnit) -> None:
        self.project = project
        self.name = parsed.name
        self.declarations = tuple(TsDeclaration(node, self) for node in parsed.declarations)
        self._names: dict[str, TsDeclaration] = {}
        for declaration in self.declarations:
            self._names.setdefault(declaration.name, declaration)

    def lookup(self, name: str) -> TsDeclaration | None:
        return self._names.get(name)

    def __repr__(self) -> str:
        return f"TsSourceUnit({self.name!r}, {len(self.declarations)} declarations)"


@dataclass(frozen=True)
class _Context:
    unit: TsSourceUnit
    type_parameters: frozenset[str] = frozenset()


class TypeScriptProject:
    """Units of TypeScript source plus a flat project-wide name table."""

    def __init__(self) -> None:
        self._units: dict[str, TsSourceUnit] = {}
        self._globals: dict[str, TsDeclaration] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_files(cls, paths: Iterable[str | Path]) -> TypeScriptProject:
        project = cls()
        for path in paths:
            project.add_file(path)
        return project

    @property
    def units(self) -> tuple[TsSourceUnit, ...]:
        return tuple(self._units.values())

    def add_source(self, name: str, text: str) -> TsSourceUnit:
        if name in self._units:
            msg = f"Source unit {name!r} already exists in project"
            raise ValueError(msg)
        unit = TsSourceUnit(self, parse_source(text, name))
        self._units[name] = unit
        for declaration in unit.declarations:
            self._globals.setdefault(declaration.name, declaration)
        return unit

    def add_file(self, path: str | Path) -> TsSourceUnit:
        return self.add_source(str(path), Path(path).read_text(encoding="utf-8"))

    def get_unit(self, name: str) -> TsSourceUnit | None:
        unit = self._units.get(name)
        if unit is None:
            wanted = os.path.normpath(name)
            unit = next(
                (u for key, u in self._units.items() if os.path.normpath(key) == wanted), None
            )
        return unit

    def lookup(self, name: str, unit: TsSourceUnit) -> TsDeclaration | None:
        return unit.lookup(name) or self._globals.get(name)

    # resolution

    def declaration_type(self, declaration: TsDeclaration) -> TsType:
        with self._lock:
            if declaration._type is not None:
                return declaration._type
            node = declaration.node
            ctx = _Context(declaration.unit, frozenset(declaration.type_parameters))
            if isinstance(node, InterfaceDeclaration):
                declaration._type = self._interface_type(node, ctx)
            elif isinstance(node, EnumDeclaration):
                declaration._type = self._enum_type(node)
            else:
                if declaration._resolving:
                    logger.debug("Circular type alias %s in %s", node.name, declaration.unit.name)
                    return TsType(TypeKind.OTHER, node.name)
                declaration._resolving = True
                try:
                    declaration._type = self.resolve(node.type, ctx)
                finally:
                    declaration._resolving = False
            return declaration._type

    def _interface_type(self, node: InterfaceDeclaration, ctx: _Context) -> TsType:
        computing = False

        def properties() -> tuple[TsProperty, ...]:
            nonlocal computing
            with self._lock:
                own = self._properties(node.members, ctx)
                if computing:
                    return own
                computing = True
                try:
                    seen = {prop.name for prop in own}
                    inherited: list[TsProperty] = []
                    for base in node.extends:
                        for prop in self._base_properties(base, ctx):
                            if prop.name not in seen:
                                seen.add(prop.name)
                                inherited.append(prop)
                finally:
                    computing = False
                return own + tuple(inherited)

        text = node.name
        if node.type_parameters:
            text += "<" + ", ".join(node.type_parameters) + ">"
        return TsType(TypeKind.OBJECT, text, symbol_name=node.name, property_source=properties)

    def _base_properties(self, base: TypeReference, ctx: _Context) -> tuple[TsProperty, ...]:
        declaration = self.lookup(base.name, ctx.unit)
        if declaration is None:
            logger.debug("Unresolved base type %s in %s", base.name, ctx.unit.name)
            return ()
        resolved = declaration.type
        if resolved.kind is TypeKind.INTERSECTION:
            return tuple(prop for member in resolved.members for prop in member.properties)
        return tuple(resolved.properties)

    def _enum_type(self, node: EnumDeclaration) -> TsType:
        members = tuple(
            TsType(TypeKind.OTHER, member.value or f"{node.name}.{member.name}")
            for member in node.members
        )
        return TsType(TypeKind.UNION, node.name, members=members, symbol_name=node.name)

    def _properties(
        self, members: Sequence[PropertySignature], ctx: _Context
    ) -> tuple[TsProperty, ...]:
        def resolver(member: PropertySignature) -> Callable[[], TsType]:
            return lambda: self.resolve(member.type, ctx)

        return tuple(
            TsProperty(member.name, member.optional, member.docs, resolver(member), self._lock)
            for member in members
        )

    def resolve(self, node: TypeNode, ctx: _Context) -> TsType:
        if isinstance(node, KeywordType):
            kind = _PRIMITIVES.get(node.name, TypeKind.OTHER)
            return TsType(kind, node.name)
        if isinstance(node, (LiteralType, OpaqueType)):
            return TsType(TypeKind.OTHER, node.text)
        if isinstance(node, TemplateLiteralType):
            if all(isinstance(span, str) for span in node.spans):
                return TsType(TypeKind.OTHER, quote("".join(str(span) for span in node.spans)))
            spans = tuple(
                span if isinstance(span, str) else self.resolve(span, ctx) for span in node.spans
            )
            return TsType(TypeKind.TEMPLATE_LITERAL, node.text, template_spans=spans)
        if isinstance(node, ArrayType):
            return TsType(TypeKind.ARRAY, node.text, element_type=self.resolve(node.element, ctx))
        if isinstance(node, TupleType):
            if node.variadic:
                logger.debug("Tuple with optional or rest elements kept opaque: %s", node.text)
                return TsType(TypeKind.OTHER, node.text)
            elements = tuple(self.resolve(element, ctx) for element in node.elements)
            return TsType(TypeKind.TUPLE, node.text, elements=elements)
        if isinstance(node, TypeLiteral):
            members = node.members
            return TsType(
                TypeKind.OBJECT, node.text, property_source=lambda: self._properties(members, ctx)
            )
        if isinstance(node, UnionType):
            return self._union([self.resolve(member, ctx) for member in node.members], node.text)
        if isinstance(node, IntersectionType):
            return self._intersection([self.resolve(member, ctx) for member in node.members])
        return self._reference(node, ctx)

    def _union(self, members: list[TsType], text: str) -> TsType:
        flat: list[TsType] = []
        for member in members:
            if member.kind is TypeKind.UNION and member.symbol_name is None:
                flat.extend(member.members)
            else:
                flat.append(member)
        return TsType(TypeKind.UNION, text, members=tuple(flat))

    def _intersection(self, members: list[TsType]) -> TsType:
        flat: list[TsType] = []
        for member in members:
            if member.kind is TypeKind.INTERSECTION:
                flat.extend(member.members)
            else:
                flat.append(member)
        if any(member.kind is TypeKind.UNION for member in flat):
            # (A | B) & C distributes into (A & C) | (B & C)
            choices = [m.members if m.kind is TypeKind.UNION else (m,) for m in flat]
            variants = [self._intersection(list(combo)) for combo in itertools.product(*choices)]
            return TsType(
                TypeKind.UNION,
                " | ".join(variant.text for variant in variants),
                members=tuple(variants),
            )
        text = " & ".join(_wrap(member) for member in flat)
        return TsType(TypeKind.INTERSECTION, text, members=tuple(flat))

    def _reference(self, node: TypeReference, ctx: _Context) -> TsType:
        if node.name in ctx.type_parameters and not node.arguments:
            return TsType(TypeKind.OTHER, node.name)
        arguments = tuple(self.resolve(argument, ctx) for argument in node.arguments)
        declaration = self.lookup(node.name, ctx.unit)
        if declaration is not None and not arguments:
            return declaration.type
        if arguments:
            return TsType(
                TypeKind.GENERIC, node.text, symbol_name=node.name, type_arguments=arguments
            )
        logger.debug("Unresolved type reference %s in %s", node.name, ctx.unit.name)
        return TsType(TypeKind.OTHER, node.text)


def _wrap(member: TsType) -> str:
    if member.kind is TypeKind.UNION and member.symbol_name is None:
        return f"({member.text})"
    return member.text
