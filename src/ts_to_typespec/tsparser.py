"""Reader for the declaration subset of TypeScript.

Only what the converter needs is modelled: interfaces, type aliases and enums
together with their JSDoc blocks and type expressions. Statements of any other
kind are skipped as balanced token runs. Type shapes that the converter treats
as opaque (function, conditional, mapped, ``keyof``, indexed access, ``typeof``)
are kept as :class:`OpaqueType` nodes carrying their normalized source text.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Literal, Union

import ujson as json

from .errors import TypeScriptSyntaxError
from .oracle import DocComment, DocTag

TokenKind = Literal["ident", "string", "number", "template", "punct", "eof"]

_IDENT = re.compile(r"[A-Za-z_$\u00a0-\uffff][\w$\u00a0-\uffff]*")
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+n?|0[bB][01_]+n?|0[oO][0-7_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?"
)
_MULTI_PUNCT = ("...", "=>")
_PUNCT = set("{}()[]<>,;:?|&=.-+!*@#~^%/")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_STATEMENT_STARTS = frozenset({"interface", "type", "enum", "export", "declare"})

KEYWORD_TYPES = frozenset(
    {
        "string",
        "number",
        "boolean",
        "any",
        "unknown",
        "never",
        "null",
        "undefined",
        "void",
        "object",
        "bigint",
        "symbol",
        "this",
    }
)


@dataclass(frozen=True)
class TemplateHole:
    start: int
    end: int


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    raw: str
    start: int
    end: int
    space_before: bool = False
    line_break: bool = False
    # every /** */ block between the previous token and this one, in source order
    docs: tuple[str, ...] = ()
    parts: tuple[str | TemplateHole, ...] = ()


# -- type nodes ---------------------------------------------------------------


@dataclass(frozen=True)
class KeywordType:
    name: str

    @property
    def text(self) -> str:
        return self.name


@dataclass(frozen=True)
class LiteralType:
    text: str


@dataclass(frozen=True)
class TemplateLiteralType:
    spans: tuple[Union[str, "TypeNode"], ...]
    text: str


@dataclass(frozen=True)
class ArrayType:
    element: TypeNode
    text: str


@dataclass(frozen=True)
class TupleType:
    elements: tuple[TypeNode, ...]
    text: str
    # some element is optional (`T?`) or a rest (`...T[]`)
    variadic: bool = False


@dataclass(frozen=True)
class PropertySignature:
    name: str
    optional: bool
    type: TypeNode
    docs: DocComment = field(default_factory=DocComment)


@dataclass(frozen=True)
class TypeLiteral:
    members: tuple[PropertySignature, ...]
    text: str


@dataclass(frozen=True)
class UnionType:
    members: tuple[TypeNode, ...]
    text: str


@dataclass(frozen=True)
class IntersectionType:
    members: tuple[TypeNode, ...]
    text: str


@dataclass(frozen=True)
class TypeReference:
    name: str
    arguments: tuple[TypeNode, ...]
    text: str


@dataclass(frozen=True)
class OpaqueType:
    """A type shape the reader does not model structurally."""

    text: str
    reason: str = "unsupported"


TypeNode = Union[
    KeywordType,
    LiteralType,
    TemplateLiteralType,
    ArrayType,
    TupleType,
    TypeLiteral,
    UnionType,
    IntersectionType,
    TypeReference,
    OpaqueType,
]


# -- declarations ---------------------------------------------------------------


@dataclass(frozen=True)
class InterfaceDeclaration:
    name: str
    type_parameters: tuple[str, ...]
    extends: tuple[TypeReference, ...]
    members: tuple[PropertySignature, ...]
    docs: DocComment


@dataclass(frozen=True)
class TypeAliasDeclaration:
    name: str
    type_parameters: tuple[str, ...]
    type: TypeNode
    docs: DocComment


@dataclass(frozen=True)
class EnumMember:
    name: str
    # Canonical literal text ('"RED"', '1'), or None when the initializer is
    # not a constant the reader evaluates.
    value: str | None


@dataclass(frozen=True)
class EnumDeclaration:
    name: str
    members: tuple[EnumMember, ...]
    docs: DocComment


DeclarationNode = Union[InterfaceDeclaration, TypeAliasDeclaration, EnumDeclaration]


@dataclass(frozen=True)
class ParsedUnit:
    name: str
    declarations: tuple[DeclarationNode, ...]


# -- JSDoc ----------------------------------------------------------------------


def parse_jsdoc(raw: str | None) -> DocComment:
    """Split a ``/** ... */`` block into description and ordered tags."""
    if not raw:
        return DocComment()
    body = raw.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]
    rows = []
    for row in body.split("\n"):
        row = row.strip()
        if row.startswith("*"):
            row = row[1:]
            if row.startswith(" "):
                row = row[1:]
        rows.append(row.rstrip())

    description: list[str] = []
    tags: list[tuple[str, list[str]]] = []
    for row in rows:
        stripped = row.strip()
        if stripped.startswith("@") and len(stripped) > 1:
            name, _, rest = stripped[1:].partition(" ")
            tags.append((name.strip(), [rest.strip()]))
        elif tags:
            tags[-1][1].append(row)
        else:
            description.append(row)

    while description and not description[0].strip():
        description.pop(0)
    while description and not description[-1].strip():
        description.pop()
    return DocComment(
        description="\n".join(description),
        tags=tuple(DocTag(name, "\n".join(text).strip()) for name, text in tags),
    )


def merge_jsdoc(blocks: Sequence[str]) -> DocComment:
    """Combine several leading JSDoc blocks into one comment.

    Tags keep source order across blocks. Non-empty descriptions are joined
    with a blank line.
    """
    parsed = [parse_jsdoc(block) for block in blocks]
    return DocComment(
        description="\n\n".join(doc.description for doc in parsed if doc.description),
        tags=tuple(tag for doc in parsed for tag in doc.tags),
    )


# -- tokenizer ------------------------------------------------------------------


def _line_column(source: str, pos: int) -> tuple[int, int]:
    line = source.count("\n", 0, pos) + 1
    column = pos - (source.rfind("\n", 0, pos) + 1) + 1
    return line, column


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif nxt == "x" and i + 3 < len(text):
            out.append(chr(int(text[i + 2 : i + 4], 16)))
            i += 4
        elif nxt == "u" and text.startswith("{", i + 2):
            close = text.index("}", i + 3)
            out.append(chr(int(text[i + 3 : close], 16)))
            i = close + 1
        elif nxt == "u":
            out.append(chr(int(text[i + 2 : i + 6], 16)))
            i += 6
        elif nxt == "\n":
            i += 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def quote(value: str) -> str:
    """Double-quoted string literal text."""
    return json.dumps(value, ensure_ascii=False, escape_forward_slashes=False)


class _Tokenizer:
    def __init__(self, source: str, unit: str, start: int, end: int) -> None:
        self.source = source
        self.unit = unit
        self.pos = start
        self.end = end

    def error(self, message: str, pos: int) -> TypeScriptSyntaxError:
        line, column = _line_column(self.source, pos)
        return TypeScriptSyntaxError(message, self.unit, line, column)

    def tokens(self) -> list[Token]:
        src = self.source
        out: list[Token] = []
        docs: list[str] = []
        space = False
        line_break = False
        while self.pos < self.end:
            i = self.pos
            ch = src[i]
            if ch.isspace():
                space = True
                line_break = line_break or ch == "\n"
                self.pos += 1
                continue
            if src.startswith("/*", i):
                close = src.find("*/", i + 2)
                if close < 0 or close + 2 > self.end:
                    raise self.error("unterminated comment", i)
                if src.startswith("/**", i) and not src.startswith("/**/", i):
                    docs.append(src[i : close + 2])
                self.pos = close + 2
                space = True
                line_break = line_break or "\n" in src[i : close + 2]
                continue
            if src.startswith("//", i):
                newline = src.find("\n", i)
                self.pos = self.end if newline < 0 else newline
                space = True
                continue

            ident = _IDENT.match(src, i)
            if ch in "\"'":
                token = self._string(ch)
            elif ch == "`":
                token = self._template()
            elif ch.isdigit() or (ch == "." and src[i + 1 : i + 2].isdigit()):
                number = _NUMBER.match(src, i)
                assert number is not None
                self.pos = number.end()
                token = Token("number", number.group(), number.group(), i, self.pos)
            elif ident is not None:
                self.pos = ident.end()
                token = Token("ident", ident.group(), ident.group(), i, self.pos)
            else:
                for punct in _MULTI_PUNCT:
                    if src.startswith(punct, i):
                        break
                else:
                    if ch not in _PUNCT:
                        raise self.error(f"unexpected character {ch!r}", i)
                    punct = ch
                self.pos = i + len(punct)
                token = Token("punct", punct, punct, i, self.pos)

            out.append(replace(token, space_before=space, line_break=line_break, docs=tuple(docs)))
            docs = []
            space = False
            line_break = False
        out.append(
            Token(
                "eof",
                "",
                "",
                self.end,
                self.end,
                space_before=space,
                line_break=True,
                docs=tuple(docs),
            )
        )
        return out

    def _string(self, quote_char: str) -> Token:
        src = self.source
        start = self.pos
        i = start + 1
        while i < self.end:
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote_char:
                raw = src[start : i + 1]
                self.pos = i + 1
                return Token("string", _unescape(raw[1:-1]), raw, start, self.pos)
            if ch == "\n":
                break
            i += 1
        raise self.error("unterminated string literal", start)

    def _skip_hole(self, i: int) -> int:
        """Return the offset of the ``}`` closing a ``${`` hole starting at ``i``."""
        src = self.source
        depth = 0
        while i < self.end:
            ch = src[i]
            if ch in "\"'`":
                close = src.find(ch, i + 1)
                if close < 0:
                    break
                i = close + 1
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    return i
                depth -= 1
            i += 1
        raise self.error("unterminated template literal hole", i)

    def _template(self) -> Token:
        src = self.source
        start = self.pos
        i = start + 1
        chunk_start = i
        parts: list[str | TemplateHole] = []
        while i < self.end:
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                parts.append(_unescape(src[chunk_start:i]))
                self.pos = i + 1
                raw = src[start : self.pos]
                return Token("template", raw, raw, start, self.pos, parts=tuple(parts))
            if src.startswith("${", i):
                parts.append(_unescape(src[chunk_start:i]))
                close = self._skip_hole(i + 2)
                parts.append(TemplateHole(i + 2, close))
                i = close + 1
                chunk_start = i
                continue
            i += 1
        raise self.error("unterminated template literal", start)


def tokenize(
    source: str, unit: str = "<source>", start: int = 0, end: int | None = None
) -> list[Token]:
    return _Tokenizer(source, unit, start, len(source) if end is None else end).tokens()


# -- parser ---------------------------------------------------------------------


_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}


class Parser:
    """Recursive-descent parser over the token stream of one unit."""

    def __init__(
        self, source: str, unit: str = "<source>", start: int = 0, end: int | None = None
    ) -> None:
        self.source = source
        self.unit = unit
        self.tokens = tokenize(source, unit, start, end)
        self.index = 0

    # token helpers

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def next(self) -> Token:
        token = self.peek()
        if token.kind != "eof":
            self.index += 1
        return token

    def at(self, value: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token.kind in ("punct", "ident") and token.value == value

    def accept(self, value: str) -> Token | None:
        if self.at(value):
            return self.next()
        return None

    def expect(self, value: str) -> Token:
        token = self.accept(value)
        if token is None:
            found = self.peek()
            raise self.error(f"expected {value!r} but found {found.raw or 'end of input'!r}")
        return token

    def expect_name(self) -> Token:
        token = self.peek()
        if token.kind != "ident":
            raise self.error(f"expected identifier but found {token.raw or 'end of input'!r}")
        return self.next()

    def error(self, message: str, token: Token | None = None) -> TypeScriptSyntaxError:
        token = token or self.peek()
        line, column = _line_column(self.source, token.start)
        return TypeScriptSyntaxError(message, self.unit, line, column)

    def text_from(self, start: int) -> str:
        """Normalized source text of the tokens consumed since ``start``."""
        out = []
        for idx, token in enumerate(self.tokens[start : self.index]):
            if idx and token.space_before:
                out.append(" ")
            out.append(token.raw)
        return "".join(out)

    def skip_balanced(self) -> None:
        """Skip a bracketed run starting at the current opener."""
        closers: list[str] = []
        while True:
            token = self.next()
            if token.kind == "eof":
                raise self.error("unbalanced brackets", token)
            if token.kind == "punct" and token.value in _OPENERS:
                closers.append(_OPENERS[token.value])
            elif token.kind == "punct" and closers and token.value == closers[-1]:
                closers.pop()
                if not closers:
                    return

    def matching_index(self, offset: int = 0) -> int:
        """Offset (relative to the cursor) of the closer matching ``peek(offset)``."""
        opener = self.peek(offset).value
        closer = _OPENERS[opener]
        depth = 0
        i = offset
        while True:
            token = self.peek(i)
            if token.kind == "eof":
                return i
            if token.kind == "punct" and token.value == opener:
                depth += 1
            elif token.kind == "punct" and token.value == closer:
                depth -= 1
                if depth == 0:
                    return i
            i += 1

    # unit level

    def parse_unit(self) -> ParsedUnit:
        declarations: list[DeclarationNode] = []
        while self.peek().kind != "eof":
            declaration = self.parse_statement()
            if declaration is not None:
                declarations.append(declaration)
        return ParsedUnit(self.unit, tuple(declarations))

    def parse_statement(self) -> DeclarationNode | None:
        doc = merge_jsdoc(self.peek().docs)
        if self.accept(";"):
            return None
        if self.at("export") and self.at("default", 1):
            self.skip_statement()
            return None
        while self.at("export") or self.at("declare"):
            self.next()
        if self.at("interface") and self.peek(1).kind == "ident":
            return self.parse_interface(doc)
        if self.at("type") and self.peek(1).kind == "ident":
            return self.parse_type_alias(doc)
        if self.at("const") and self.at("enum", 1):
            self.next()
        if self.at("enum") and self.peek(1).kind == "ident":
            return self.parse_enum(doc)
        self.skip_statement()
        return None

    def skip_statement(self) -> None:
        depth = 0
        first = True
        while True:
            token = self.peek()
            if token.kind == "eof":
                return
            if (
                not first
                and depth <= 0
                and token.line_break
                and token.kind == "ident"
                and token.value in _STATEMENT_STARTS
            ):
                return
            first = False
            self.next()
            if token.kind != "punct":
                continue
            if token.value in ("(", "[", "{"):
                depth += 1
            elif token.value in (")", "]", "}"):
                depth -= 1
                if depth <= 0 and token.value == "}":
                    return
            elif token.value == ";" and depth <= 0:
                return

    def parse_type_parameters(self) -> tuple[str, ...]:
        if not self.accept("<"):
            return ()
        names: list[str] = []
        while not self.at(">"):
            while self.peek(1).kind == "ident" and self.peek().value in ("in", "out", "const"):
                self.next()
            names.append(self.expect_name().value)
            if self.accept("extends"):
                self.parse_type()
            if self.accept("="):
                self.parse_type()
            if not self.accept(","):
                break
        self.expect(">")
        return tuple(names)

    def parse_interface(self, docs: DocComment) -> InterfaceDeclaration:
        self.expect("interface")
        name = self.expect_name().value
        type_parameters = self.parse_type_parameters()
        extends: list[TypeReference] = []
        if self.accept("extends"):
            while True:
                base = self.parse_primary()
                if not isinstance(base, TypeReference):
                    raise self.error("interfaces can only extend named types")
                extends.append(base)
                if not self.accept(","):
                    break
        members = self.parse_members()
        return InterfaceDeclaration(name, type_parameters, tuple(extends), members, docs)

    def parse_type_alias(self, docs: DocComment) -> TypeAliasDeclaration:
        self.expect("type")
        name = self.expect_name().value
        type_parameters = self.parse_type_parameters()
        self.expect("=")
        node = self.parse_type()
        self.accept(";")
        return TypeAliasDeclaration(name, type_parameters, node, docs)

    def parse_enum(self, docs: DocComment) -> EnumDeclaration:
        self.expect("enum")
        name = self.expect_name().value
        self.expect("{")
        members: list[EnumMember] = []
        counter: int | None = 0
        while not self.at("}"):
            token = self.next()
            if token.kind not in ("ident", "string"):
                raise self.error("expected enum member name", token)
            value: str | None
            if self.accept("="):
                value, counter = self._enum_initializer()
            elif counter is not None:
                value = str(counter)
                counter += 1
            else:
                value = None
            members.append(EnumMember(token.value, value))
            if not self.accept(","):
                break
        self.expect("}")
        return EnumDeclaration(name, tuple(members), docs)

    def _enum_initializer(self) -> tuple[str | None, int | None]:
        negative = bool(self.accept("-"))
        token = self.peek()
        following = self.peek(1)
        if following.kind == "punct" and following.value in (",", "}"):
            if token.kind == "string" and not negative:
                self.next()
                return quote(token.value), None
            if token.kind == "number" and re.fullmatch(r"\d+", token.value):
                self.next()
                number = -int(token.value) if negative else int(token.value)
                return str(number), number + 1
            if token.kind == "number":
                self.next()
                return ("-" if negative else "") + token.value, None
        depth = 0
        while True:
            token = self.peek()
            if token.kind == "eof":
                return None, None
            if token.kind == "punct" and token.value in "([{":
                depth += 1
            elif token.kind == "punct" and token.value in ")]}":
                if depth == 0:
                    return None, None
                depth -= 1
            elif token.kind == "punct" and token.value == "," and depth == 0:
                return None, None
            self.next()

    # members

    def parse_members(self) -> tuple[PropertySignature, ...]:
        self.expect("{")
        members: list[PropertySignature] = []
        while not self.at("}"):
            if self.peek().kind == "eof":
                raise self.error("unterminated object type")
            member = self.parse_member()
            if member is not None:
                members.append(member)
            while self.accept(";") or self.accept(","):
                pass
        self.expect("}")
        return tuple(members)

    def _is_modifier(self, word: str) -> bool:
        if not self.at(word):
            return False
        following = self.peek(1)
        if following.kind in ("ident", "string", "number"):
            return True
        return following.kind == "punct" and following.value == "["

    def parse_member(self) -> PropertySignature | None:
        docs = merge_jsdoc(self.peek().docs)
        while self._is_modifier("readonly"):
            self.next()
        if self.at("[") or self.at("(") or self.at("<"):
            self._skip_signature()
            return None
        if self.at("new") and (self.at("(", 1) or self.at("<", 1)):
            self.next()
            self._skip_signature()
            return None
        if (self.at("get") or self.at("set")) and self.peek(1).kind in ("ident", "string"):
            self._skip_signature()
            return None

        token = self.next()
        if token.kind not in ("ident", "string", "number"):
            raise self.error(f"unexpected {token.raw!r} in object type", token)
        optional = bool(self.accept("?"))
        if self.at("(") or self.at("<"):
            node: TypeNode = self.parse_method_signature()
        elif self.accept(":"):
            node = self.parse_type()
        else:
            node = KeywordType("any")
        return PropertySignature(token.value, optional, node, docs)

    def _skip_signature(self) -> None:
        """Skip an index, call or construct signature including its annotation."""
        while not (self.at(";") or self.at(",") or self.at("}")):
            if self.peek().kind == "eof":
                return
            if self.peek().kind == "punct" and self.peek().value in "([{<":
                self.skip_balanced()
            elif self.accept(":") or self.accept("=>"):
                self.parse_type()
            else:
                self.next()

    def parse_method_signature(self) -> OpaqueType:
        start = self.index
        if self.at("<"):
            self.skip_balanced()
        self.skip_balanced()
        params = self.text_from(start)
        returns = "any"
        if self.accept(":"):
            returns = self.parse_return_type().text
        return OpaqueType(f"{params} => {returns}", reason="function")

    def parse_return_type(self) -> TypeNode:
        start = self.index
        if self.at("asserts") and self.peek(1).kind == "ident":
            self.next()
        node = self.parse_type()
        if self.accept("is"):
            self.parse_type()
            return OpaqueType(self.text_from(start), reason="type predicate")
        return node

    # types

    def parse_type(self) -> TypeNode:
        start = self.index
        node = self.parse_union()
        if self.at("extends"):
            self.next()
            self.parse_union()
            self.expect("?")
            self.parse_type()
            self.expect(":")
            self.parse_type()
            return OpaqueType(self.text_from(start), reason="conditional")
        return node

    def parse_union(self) -> TypeNode:
        self.accept("|")
        start = self.index
        members = [self.parse_intersection()]
        while self.accept("|"):
            members.append(self.parse_intersection())
        if len(members) == 1:
            return members[0]
        return UnionType(tuple(members), self.text_from(start))

    def parse_intersection(self) -> TypeNode:
        self.accept("&")
        start = self.index
        members = [self.parse_operator()]
        while self.accept("&"):
            members.append(self.parse_operator())
        if len(members) == 1:
            return members[0]
        return IntersectionType(tuple(members), self.text_from(start))

    def _starts_type(self, offset: int) -> bool:
        token = self.peek(offset)
        if token.kind in ("ident", "string", "number", "template"):
            return True
        return token.kind == "punct" and token.value in ("(", "[", "{", "<", "-")

    def parse_operator(self) -> TypeNode:
        start = self.index
        if self.peek().kind == "ident" and self.peek().value in ("keyof", "unique", "readonly"):
            if self._starts_type(1):
                word = self.next().value
                operand = self.parse_operator()
                if word == "readonly" and isinstance(operand, (ArrayType, TupleType)):
                    return operand
                return OpaqueType(self.text_from(start), reason=word)
        if self.at("infer") and self.peek(1).kind == "ident":
            self.next()
            self.next()
            if self.at("extends") and not self.at("?", 2):
                self.next()
                self.parse_operator()
            return OpaqueType(self.text_from(start), reason="infer")
        return self.parse_postfix()

    def parse_postfix(self) -> TypeNode:
        start = self.index
        node = self.parse_primary()
        while self.at("[") and not self.peek().line_break:
            self.next()
            if self.accept("]"):
                node = ArrayType(node, self.text_from(start))
                continue
            self.parse_type()
            self.expect("]")
            node = OpaqueType(self.text_from(start), reason="indexed access")
        return node

    def _is_function_type(self) -> bool:
        if self.at("<"):
            return True
        if not self.at("("):
            return False
        close = self.matching_index()
        return self.at("=>", close + 1)

    def parse_function_type(self) -> OpaqueType:
        start = self.index
        if self.at("<"):
            self.skip_balanced()
        if not self.at("("):
            raise self.error("expected parameter list")
        self.skip_balanced()
        self.expect("=>")
        self.parse_return_type()
        return OpaqueType(self.text_from(start), reason="function")

    def _is_mapped_type(self) -> bool:
        offset = 1
        if self.peek(offset).kind == "punct" and self.peek(offset).value in ("+", "-"):
            offset += 1
        if self.at("readonly", offset):
            offset += 1
        return (
            self.at("[", offset)
            and self.peek(offset + 1).kind == "ident"
            and self.at("in", offset + 2)
        )

    def parse_primary(self) -> TypeNode:
        start = self.index
        token = self.peek()

        if token.kind == "punct":
            if self._is_function_type():
                return self.parse_function_type()
            if token.value == "(":
                self.next()
                inner = self.parse_type()
                self.expect(")")
                return inner
            if token.value == "{":
                if self._is_mapped_type():
                    self.skip_balanced()
                    return OpaqueType(self.text_from(start), reason="mapped")
                members = self.parse_members()
                return TypeLiteral(members, self.text_from(start))
            if token.value == "[":
                return self.parse_tuple()
            if token.value == "-" and self.peek(1).kind == "number":
                self.next()
                self.next()
                return LiteralType(self.text_from(start))
            raise self.error(f"unexpected {token.raw!r} in type")

        if token.kind == "string":
            self.next()
            return LiteralType(quote(token.value))
        if token.kind == "number":
            self.next()
            return LiteralType(token.raw)
        if token.kind == "template":
            self.next()
            return self._template_literal(token)
        if token.kind == "eof":
            raise self.error("unexpected end of input in type")

        word = token.value
        if word in ("true", "false"):
            self.next()
            return LiteralType(word)
        if word == "new" or (word == "abstract" and self.at("new", 1)):
            while self.peek().kind != "eof" and not (self.at("(") or self.at("<")):
                self.next()
            self.parse_function_type()
            return OpaqueType(self.text_from(start), reason="constructor")
        if word == "typeof":
            self.next()
            self._qualified_name()
            if self.at("<") and not self.peek().space_before:
                self.skip_balanced()
            return OpaqueType(self.text_from(start), reason="typeof")
        if word == "import" and self.at("(", 1):
            self.next()
            self.skip_balanced()
            while self.accept("."):
                self.expect_name()
            if self.at("<"):
                self.skip_balanced()
            return OpaqueType(self.text_from(start), reason="import")
        if word in KEYWORD_TYPES and not self.at(".", 1):
            self.next()
            return KeywordType(word)

        name = self._qualified_name()
        arguments: list[TypeNode] = []
        if self.at("<") and not self.peek().space_before:
            self.next()
            while not self.at(">"):
                arguments.append(self.parse_type())
                if not self.accept(","):
                    break
            self.expect(">")
        return TypeReference(name, tuple(arguments), self.text_from(start))

    def _qualified_name(self) -> str:
        parts = [self.expect_name().value]
        while self.at(".") and self.peek(1).kind == "ident":
            self.next()
            parts.append(self.next().value)
        return ".".join(parts)

    def parse_tuple(self) -> TupleType:
        start = self.index
        self.expect("[")
        elements: list[TypeNode] = []
        variadic = False
        while not self.at("]"):
            if self.accept("..."):
                variadic = True
            named = self.at(":", 1) or (self.at("?", 1) and self.at(":", 2))
            if self.peek().kind == "ident" and named:
                self.next()
                if self.accept("?"):
                    variadic = True
                self.expect(":")
            elements.append(self.parse_type())
            if self.accept("?"):
                variadic = True
            if not self.accept(","):
                break
        self.expect("]")
        return TupleType(tuple(elements), self.text_from(start), variadic)

    def _template_literal(self, token: Token) -> TemplateLiteralType:
        spans: list[str | TypeNode] = []
        for part in token.parts:
            if isinstance(part, TemplateHole):
                sub = Parser(self.source, self.unit, part.start, part.end)
                node = sub.parse_type()
                if sub.peek().kind != "eof":
                    raise sub.error("unexpected tokens in template literal hole")
                spans.append(node)
            else:
                spans.append(part)
        return TemplateLiteralType(tuple(spans), token.raw)


def parse_source(source: str, unit: str = "<source>") -> ParsedUnit:
    """Parse one unit of TypeScript source."""
    return Parser(source, unit).parse_unit()


def parse_type_expression(source: str) -> TypeNode:
    """Parse a standalone type expression (used by tests and tooling)."""
    parser = Parser(source, "<type>")
    node = parser.parse_type()
    if parser.peek().kind != "eof":
        raise parser.error("unexpected tokens after type")
    return node
