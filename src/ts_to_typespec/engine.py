"""Recursive printer from resolved types to TypeSpec syntax."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from .annotations import decorators, escape_string
from .config import ConverterConfig
from .lazy import LazyString, Value, concat, join, lazy, lines, semicolon_lines, union
from .oracle import Property, ResolvedType, TypeKind
from .registry import Model, ModelRegistry

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

Ancestors = tuple[ResolvedType, ...]


def generic_parameters(count: int) -> str:
    """Positional placeholder names: ``<T>`` for one parameter, ``<T1, T2>`` for more."""
    if count <= 0:
        return ""
    if count == 1:
        return "<T>"
    return "<" + ", ".join(f"T{index}" for index in range(1, count + 1)) + ">"


def field_name(name: str) -> str:
    if _IDENTIFIER.match(name):
        return name
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


def is_model_like(type_: ResolvedType) -> bool:
    """Object shapes with at least one property become ``model`` statements."""
    if type_.kind is TypeKind.OBJECT:
        return bool(type_.properties)
    if type_.kind is TypeKind.INTERSECTION:
        return any(member.properties for member in type_.members)
    return False


class TypeSpecConverter:
    """Convert resolved types to lazy TypeSpec text.

    The converter keeps no per-call state, so one instance can serve several
    units concurrently. Recursion through types that are neither registered
    models nor finite (an unexported recursive alias, say) stops at the first
    repeat and falls back to the type's source text.
    """

    def __init__(self, registry: ModelRegistry, config: ConverterConfig | None = None) -> None:
        self.registry = registry
        self.config = config or ConverterConfig()

    def convert_model(self, model: Model) -> LazyString:
        type_ = model.type
        head = model.display_name + generic_parameters(len(model.declaration.type_parameters))
        body = self._convert(type_, ())
        if is_model_like(type_):
            statement = lazy("model $head $body;", head=head, body=body)
        else:
            statement = lazy("alias $head = $body;", head=head, body=body)
        return lines(*decorators(model.declaration, self.config), statement)

    def convert_type(self, type_: ResolvedType) -> LazyString:
        return self._convert(type_, ())

    def reference_type(self, type_: ResolvedType) -> LazyString:
        return self._reference(type_, ())

    # internals

    def _reference(self, type_: ResolvedType, path: Ancestors) -> LazyString:
        model = self.registry.find(type_)
        if model is not None:
            return concat(model.display_name)
        return self._convert(type_, path)

    def _convert(self, type_: ResolvedType, path: Ancestors) -> LazyString:
        kind = type_.kind
        if kind is TypeKind.STRING:
            return concat("string")
        if kind is TypeKind.TEMPLATE_LITERAL:
            return self._template_literal(type_, path)
        if kind is TypeKind.NUMBER:
            return concat(self.config.number_type)
        if kind is TypeKind.BOOLEAN:
            return concat("boolean")

        if any(seen is type_ for seen in path):
            return self._fallback(type_, "recursive type")
        inner = (*path, type_)

        if kind is TypeKind.ARRAY and type_.element_type is not None:
            return self._array_of(type_.element_type, inner)
        if kind is TypeKind.TUPLE:
            elements = [self._reference(element, inner) for element in type_.elements]
            return concat("[", join(", ", elements), "]")
        if kind is TypeKind.GENERIC:
            return self._generic(type_, inner)
        if kind is TypeKind.OBJECT:
            return self._object_body(type_.properties, inner)
        if kind is TypeKind.UNION:
            return union(*(self._reference(member, inner) for member in type_.members))
        if kind is TypeKind.INTERSECTION:
            return self._object_body(self._flatten(type_), inner)
        return self._fallback(type_, "unsupported shape")

    def _fallback(self, type_: ResolvedType, reason: str) -> LazyString:
        logger.debug("Rendering %s type verbatim (%s): %s", type_.kind.value, reason, type_.text)
        return concat(type_.text)

    def _template_literal(self, type_: ResolvedType, path: Ancestors) -> LazyString:
        parts: list[Value] = ['"']
        for span in type_.template_spans:
            if isinstance(span, str):
                parts.append(escape_string(span))
            else:
                parts.extend(["${", self._reference(span, path), "}"])
        parts.append('"')
        return concat(*parts)

    def _array_of(self, element: ResolvedType, path: Ancestors) -> LazyString:
        rendered = self._reference(element, path)
        if element.kind is TypeKind.UNION and self.registry.find(element) is None:
            return concat("(", rendered, ")[]")
        return concat(rendered, "[]")

    def _generic(self, type_: ResolvedType, path: Ancestors) -> LazyString:
        arguments = list(type_.type_arguments)
        base = type_.symbol_name
        if base == "Array" and arguments:
            return self._array_of(arguments[0], path)
        if base == "Record" and arguments:
            if self.config.record_style == "value":
                arguments = arguments[-1:]
            values = [self._reference(argument, path) for argument in arguments]
            return concat("Record<", join(", ", values), ">")
        if base is None:
            return self._fallback(type_, "generic without symbol")
        values = [self._reference(argument, path) for argument in arguments]
        return concat(base, "<", join(", ", values), ">")

    def _flatten(self, type_: ResolvedType) -> list[Property]:
        seen: set[str] = set()
        merged: list[Property] = []
        for member in type_.members:
            if not member.properties:
                logger.debug(
                    "Dropping %s member without properties from intersection %s: %s",
                    member.kind.value,
                    type_.text,
                    member.text,
                )
            for prop in member.properties:
                if prop.name in seen:
                    continue
                seen.add(prop.name)
                merged.append(prop)
        return merged

    def _object_body(self, properties: Sequence[Property], path: Ancestors) -> LazyString:
        if not properties:
            return concat("{}")
        fields = [self._field(prop, path) for prop in properties]
        return lazy(
            """
            {
              $fields
            }
            """,
            fields=semicolon_lines(*fields),
        )

    def _field(self, prop: Property, path: Ancestors) -> LazyString:
        marker = "?" if prop.optional else ""
        declaration = concat(field_name(prop.name), marker, ": ", self._reference(prop.type, path))
        return lines(*decorators(prop, self.config), declaration)
