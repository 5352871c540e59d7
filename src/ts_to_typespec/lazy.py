"""Deferred text composition for generated TypeSpec.

Every piece of output is a *lazy string*: an immutable description that is
first attached to a shared :class:`ConversionScope` (so nested pieces can
register side effects such as required ``using`` directives) and only then
rendered to text. Rendering is pure, so the same lazy string rendered twice
against the same scope yields the same text.

``lazy()`` builds pieces from ``string.Template``-style templates::

    lazy(
        '''
        model ${name} {
          ${fields}
        }
        ''',
        name="Point",
        fields=semicolon_lines("x: float64", "y: float64"),
    )

Multi-line values are re-indented to the leading whitespace of the template
line they are placed on, then the whole result is dedented, so templates can
be written at their natural source indentation.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, Union, runtime_checkable

_PLACEHOLDER = re.compile(
    r"\$(?:(?P<escaped>\$)"
    r"|(?P<named>[_a-zA-Z][_a-zA-Z0-9]*)"
    r"|\{(?P<braced>[_a-zA-Z][_a-zA-Z0-9]*)\}"
    r"|(?P<invalid>))"
)


@dataclass
class ConversionScope:
    """Shared state that lazy strings may write to during ``attach``."""

    namespace: tuple[str, ...] = ()
    usings: set[str] = field(default_factory=set)

    def require_using(self, namespace: str) -> None:
        if namespace and namespace != ".".join(self.namespace):
            self.usings.add(namespace)

    def child(self, name: str) -> ConversionScope:
        """Scope for a nested namespace; using directives stay shared."""
        return ConversionScope(namespace=(*self.namespace, name), usings=self.usings)


@runtime_checkable
class LazyString(Protocol):
    def attach(self, scope: ConversionScope) -> None: ...

    def render(self, scope: ConversionScope | None = None) -> str: ...


Value = Union[str, int, float, LazyString]


def _attach_all(values: Iterable[Value], scope: ConversionScope) -> None:
    for value in values:
        if isinstance(value, LazyString):
            value.attach(scope)


def _render_value(value: Value, scope: ConversionScope | None) -> str:
    if isinstance(value, LazyString):
        return value.render(scope)
    return str(value)


def to_text(value: Value, scope: ConversionScope | None = None) -> str:
    """Run both phases (attach, then render) and return the text."""
    scope = scope if scope is not None else ConversionScope()
    _attach_all([value], scope)
    return _render_value(value, scope)


@dataclass(frozen=True)
class Combined:
    """Renders its values and hands the texts to ``combine``."""

    values: tuple[Value, ...]
    combine: Callable[[list[str]], str]

    def attach(self, scope: ConversionScope) -> None:
        _attach_all(self.values, scope)

    def render(self, scope: ConversionScope | None = None) -> str:
        return self.combine([_render_value(value, scope) for value in self.values])

    def __str__(self) -> str:
        return to_text(self)


def stanzas(*values: Value) -> Combined:
    """Join non-empty parts with one blank line between them."""
    return Combined(values, lambda parts: "\n\n".join(part for part in parts if part.strip()))


def lines(*values: Value) -> Combined:
    return Combined(values, "\n".join)


def semicolon_lines(*values: Value) -> Combined:
    return Combined(values, lambda parts: "\n".join(part + ";" for part in parts))


def commas(*values: Value) -> Combined:
    return Combined(values, ",".join)


def union(*values: Value) -> Combined:
    return Combined(values, " | ".join)


def concat(*values: Value) -> Combined:
    return Combined(values, "".join)


def indent(value: Value, level: int = 1) -> Combined:
    spaces = "  " * level

    def _indent(parts: list[str]) -> str:
        out = []
        for part in parts:
            out.extend(spaces + line if line else line for line in part.split("\n"))
        return "\n".join(out)

    return Combined((value,), _indent)


def _leading_whitespace(text: str) -> str:
    return text[: len(text) - len(text.lstrip(" \t"))]


def _reindent(text: str, prefix: str) -> str:
    first, *rest = text.split("\n")
    return "\n".join([first, *(prefix + line if line else line for line in rest)])


def dedent(text: str) -> str:
    """Strip common indentation and surrounding blank lines."""
    rows = text.split("\n")
    widths = [len(_leading_whitespace(row)) for row in rows if row.strip()]
    if not widths:
        return ""
    width = min(widths)
    rows = [row[width:] if row.strip() else "" for row in rows]
    while rows and not rows[0]:
        rows.pop(0)
    while rows and not rows[-1]:
        rows.pop()
    return "\n".join(rows)


@dataclass(frozen=True)
class Template:
    """Literal segments interleaved with interpolated values."""

    segments: tuple[str, ...]
    values: tuple[Value, ...]

    def attach(self, scope: ConversionScope) -> None:
        _attach_all(self.values, scope)

    def render(self, scope: ConversionScope | None = None) -> str:
        out = self.segments[0]
        for value, segment in zip(self.values, self.segments[1:]):
            current_line = out.rsplit("\n", 1)[-1]
            out += _reindent(_render_value(value, scope), _leading_whitespace(current_line))
            out += segment
        return dedent(out)

    def __str__(self) -> str:
        return to_text(self)


def lazy(template: str, **values: Value) -> Template:
    """Build a lazy string from a ``$name``/``${name}`` template."""
    segments: list[str] = []
    ordered: list[Value] = []
    literal = ""
    pos = 0
    for match in _PLACEHOLDER.finditer(template):
        literal += template[pos : match.start()]
        pos = match.end()
        if match.group("escaped") is not None:
            literal += "$"
            continue
        name = match.group("named") or match.group("braced")
        if name is None:
            msg = f"Invalid placeholder at offset {match.start()} in template"
            raise ValueError(msg)
        segments.append(literal)
        ordered.append(values[name])
        literal = ""
    segments.append(literal + template[pos:])
    return Template(tuple(segments), tuple(ordered))


@dataclass(frozen=True)
class Using:
    """A name that requires a ``using`` directive for its namespace."""

    namespace: str
    name: str

    def attach(self, scope: ConversionScope) -> None:
        scope.require_using(self.namespace)

    def render(self, scope: ConversionScope | None = None) -> str:
        return self.name

    def __str__(self) -> str:
        return to_text(self)


def join(separator: str, values: Sequence[Value]) -> Combined:
    """Join with an arbitrary separator (used for generic argument lists)."""
    return Combined(tuple(values), separator.join)
