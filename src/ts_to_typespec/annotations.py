"""Decorators derived from a declaration's or field's documentation."""

from __future__ import annotations

from .config import ConverterConfig
from .lazy import LazyString, concat, dedent, lazy
from .oracle import DocComment, Documented
from .tsparser import quote


def escape_string(text: str) -> str:
    """Escape ``text`` for the inside of a TypeSpec double-quoted string."""
    return quote(text)[1:-1].replace("${", "\\${")


def string_literal(text: str) -> str:
    return f'"{escape_string(text)}"'


def doc_value(description: str, config: ConverterConfig) -> str:
    """Single-line string literal, or a triple-quoted block for long/multi-line text."""
    literal = string_literal(description)
    if "\n" not in description and len(literal) <= config.doc_line_limit:
        return literal
    body = dedent(description).replace("\\", "\\\\").replace('"""', '\\"""')
    return '"""\n' + body.replace("${", "\\${") + '\n"""'


def doc_decorators(docs: DocComment, config: ConverterConfig | None = None) -> list[LazyString]:
    config = config or ConverterConfig()
    out: list[LazyString] = []
    if docs.description.strip():
        out.append(lazy("@doc($value)", value=doc_value(docs.description, config)))
    for tag in docs.tags_named(config.decorator_tag):
        if tag.text:
            out.append(concat("@", tag.text))
    return out


def decorators(node: Documented, config: ConverterConfig | None = None) -> list[LazyString]:
    """``@doc(...)`` for the free-text description, then explicit directives in source order."""
    return doc_decorators(node.docs, config)
