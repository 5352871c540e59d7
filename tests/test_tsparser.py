import pytest

from ts_to_typespec.errors import TypeScriptSyntaxError
from ts_to_typespec.oracle import DocTag
from ts_to_typespec.tsparser import (
    ArrayType,
    EnumDeclaration,
    InterfaceDeclaration,
    KeywordType,
    LiteralType,
    OpaqueType,
    TemplateLiteralType,
    TupleType,
    TypeAliasDeclaration,
    TypeLiteral,
    TypeReference,
    UnionType,
    merge_jsdoc,
    parse_jsdoc,
    parse_source,
    parse_type_expression,
)


def test_parse_interface_with_docs() -> None:
    source = """
/**
 * A point.
 * @model
 */
export interface Point {
  x: number;
  /** Vertical. */
  readonly y?: number;
}
"""
    (decl,) = parse_source(source, "point.ts").declarations
    assert isinstance(decl, InterfaceDeclaration)
    assert decl.name == "Point"
    assert decl.docs.description == "A point."
    assert decl.docs.has_tag("model")
    assert [member.name for member in decl.members] == ["x", "y"]
    assert decl.members[0].type == KeywordType("number")
    assert decl.members[1].optional
    assert decl.members[1].docs.description == "Vertical."


def test_parse_jsdoc_splits_description_and_tags() -> None:
    docs = parse_jsdoc(
        '/**\n * Line one\n * line two\n * @decorator format("email")\n * @model Custom\n */'
    )
    assert docs.description == "Line one\nline two"
    assert docs.tags == (DocTag("decorator", 'format("email")'), DocTag("model", "Custom"))
    assert parse_jsdoc("/** @model */").tags == (DocTag("model", ""),)
    assert parse_jsdoc(None).description == ""


def test_every_leading_jsdoc_block_contributes() -> None:
    source = """
/** @model */
/** A user. */
interface User { name: string }

/**
 * A point.
 * @decorator foo(1)
 */
// plain comments are ignored
/** @model
 * @decorator bar
 */
interface P {
  /** First. */
  /** @decorator minLength(1) */
  label: string;
}
"""
    user, point = parse_source(source).declarations
    assert user.docs.description == "A user."
    assert user.docs.has_tag("model")
    assert point.docs.description == "A point."
    assert point.docs.tags == (
        DocTag("decorator", "foo(1)"),
        DocTag("model", ""),
        DocTag("decorator", "bar"),
    )
    (label,) = point.members
    assert label.docs.description == "First."
    assert label.docs.tags == (DocTag("decorator", "minLength(1)"),)
    assert merge_jsdoc(["/** One. */", "/** */", "/** Two. */"]).description == "One.\n\nTwo."


def test_docs_do_not_leak_past_the_next_token() -> None:
    source = "/** @model */\nconst x = 1;\ninterface Plain { a: string }"
    (decl,) = parse_source(source).declarations
    assert not decl.docs.has_tag("model")


def test_parse_alias_union_canonicalizes_string_literals() -> None:
    (decl,) = parse_source("type Status = \"active\" | 'inactive';").declarations
    assert isinstance(decl, TypeAliasDeclaration)
    assert isinstance(decl.type, UnionType)
    assert decl.type.members == (LiteralType('"active"'), LiteralType('"inactive"'))


def test_parse_enums_with_auto_increment() -> None:
    source = """
enum Color { Red, Green = 5, Blue }
export const enum Dir { Up = "UP", Down = "DOWN" }
"""
    color, direction = parse_source(source).declarations
    assert isinstance(color, EnumDeclaration)
    assert [member.value for member in color.members] == ["0", "5", "6"]
    assert isinstance(direction, EnumDeclaration)
    assert [member.value for member in direction.members] == ['"UP"', '"DOWN"']


def test_other_statements_are_skipped() -> None:
    source = """
import { A } from "./a";
export function f(x: number): string { return ""; }
const y = 1;
class Box { value = 2; }
export type T = string;
"""
    declarations = parse_source(source).declarations
    assert [decl.name for decl in declarations] == ["T"]


def test_members_skip_signatures_and_keep_methods_opaque() -> None:
    source = """
interface Api {
  [key: string]: unknown;
  (input: string): void;
  readonly: boolean;
  greet(name: string): string;
}
"""
    (decl,) = parse_source(source).declarations
    assert [member.name for member in decl.members] == ["readonly", "greet"]
    method = decl.members[1].type
    assert isinstance(method, OpaqueType)
    assert method.text == "(name: string) => string"


def test_interface_extends_and_type_parameters() -> None:
    source = "interface Box<T, U = string> extends Base<T>, Other { v: T }"
    (decl,) = parse_source(source).declarations
    assert decl.type_parameters == ("T", "U")
    assert [base.name for base in decl.extends] == ["Base", "Other"]


def test_tuple_elements() -> None:
    node = parse_type_expression("[name: string, age?: number, ...rest: boolean[]]")
    assert isinstance(node, TupleType)
    first, second, third = node.elements
    assert first == KeywordType("string")
    assert second == KeywordType("number")
    assert isinstance(third, ArrayType)
    assert third.element == KeywordType("boolean")
    assert node.variadic
    assert not parse_type_expression("[string, number]").variadic
    assert parse_type_expression("[string, number?]").variadic


def test_generic_references_nest() -> None:
    node = parse_type_expression("Record<string, Array<number>>")
    assert isinstance(node, TypeReference)
    assert node.name == "Record"
    key, value = node.arguments
    assert key == KeywordType("string")
    assert isinstance(value, TypeReference)
    assert value.name == "Array"
    assert value.arguments == (KeywordType("number"),)


def test_template_literal_spans() -> None:
    node = parse_type_expression("`user-${string}`")
    assert isinstance(node, TemplateLiteralType)
    assert node.spans == ("user-", KeywordType("string"), "")


def test_object_literal_members() -> None:
    node = parse_type_expression("{ a: string; b?: { c: number } }")
    assert isinstance(node, TypeLiteral)
    assert [member.name for member in node.members] == ["a", "b"]
    assert isinstance(node.members[1].type, TypeLiteral)


@pytest.mark.parametrize(
    ("source", "reason"),
    [
        ("keyof Foo", "keyof"),
        ("T extends string ? A : B", "conditional"),
        ("{ [K in Keys]: string }", "mapped"),
        ("(a: string) => void", "function"),
        ("Foo['bar']", "indexed access"),
        ("typeof config", "typeof"),
    ],
)
def test_unmodelled_shapes_are_opaque(source: str, reason: str) -> None:
    node = parse_type_expression(source)
    assert isinstance(node, OpaqueType)
    assert node.reason == reason
    assert node.text == source


def test_syntax_error_reports_position() -> None:
    with pytest.raises(TypeScriptSyntaxError) as excinfo:
        parse_source("type X = ;", "bad.ts")
    assert excinfo.value.unit == "bad.ts"
    assert (excinfo.value.line, excinfo.value.column) == (1, 10)
    assert str(excinfo.value).startswith("bad.ts:1:10:")
