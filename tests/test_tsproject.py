from pathlib import Path

import pytest

from ts_to_typespec.oracle import TypeKind
from ts_to_typespec.tsproject import TypeScriptProject


def _decl(project: TypeScriptProject, unit: str, name: str):
    found = project.get_unit(unit)
    assert found is not None
    return next(decl for decl in found.declarations if decl.name == name)


def _prop(type_, name: str):
    return next(prop for prop in type_.properties if prop.name == name)


def test_references_to_a_declaration_share_identity(make_project) -> None:
    project = make_project(a="interface A { a: string }\ntype B = { inner: A; other: A }")
    a_type = _decl(project, "a.ts", "A").type
    b_type = _decl(project, "a.ts", "B").type
    assert _prop(b_type, "inner").type is a_type
    assert _prop(b_type, "other").type is a_type
    assert _decl(project, "a.ts", "A").type is a_type


def test_primitives_are_fresh_per_occurrence(make_project) -> None:
    project = make_project(a="type Name = string;\ninterface X { s: string }")
    name_type = _decl(project, "a.ts", "Name").type
    field_type = _prop(_decl(project, "a.ts", "X").type, "s").type
    assert name_type.kind is TypeKind.STRING
    assert field_type.kind is TypeKind.STRING
    assert name_type is not field_type


def test_names_resolve_across_units(make_project) -> None:
    project = make_project(a="interface A { a: string }", b="type B = { a: A }")
    a_type = _decl(project, "a.ts", "A").type
    assert _prop(_decl(project, "b.ts", "B").type, "a").type is a_type


def test_enum_resolves_to_union_of_literals(make_project) -> None:
    project = make_project(a='enum Color { Red = "RED", Green = "GREEN" }')
    color = _decl(project, "a.ts", "Color")
    assert color.kind == "enum"
    assert color.type.kind is TypeKind.UNION
    assert [member.text for member in color.type.members] == ['"RED"', '"GREEN"']


def test_interface_properties_include_inherited_ones(make_project) -> None:
    source = """
interface Base { id: string; name: string }
interface Child extends Base { name: number; extra: boolean }
"""
    child = _decl(make_project(a=source), "a.ts", "Child").type
    assert [prop.name for prop in child.properties] == ["name", "extra", "id"]
    assert _prop(child, "name").type.kind is TypeKind.NUMBER


def test_intersection_with_union_distributes(make_project) -> None:
    source = """
interface A { a: string }
interface B { b: string }
interface C { c: string }
type U = (A | B) & C;
"""
    union = _decl(make_project(a=source), "a.ts", "U").type
    assert union.kind is TypeKind.UNION
    assert [member.kind for member in union.members] == [TypeKind.INTERSECTION] * 2
    assert [member.text for member in union.members] == ["A & C", "B & C"]


def test_generic_instantiations_and_type_parameters(make_project) -> None:
    source = """
type R = Record<string, number>;
interface Box<T> { value: T }
type M = Missing;
"""
    project = make_project(a=source)
    record = _decl(project, "a.ts", "R").type
    assert record.kind is TypeKind.GENERIC
    assert record.symbol_name == "Record"
    assert [arg.kind for arg in record.type_arguments] == [TypeKind.STRING, TypeKind.NUMBER]
    box = _decl(project, "a.ts", "Box")
    assert box.type_parameters == ("T",)
    value = _prop(box.type, "value").type
    assert (value.kind, value.text) == (TypeKind.OTHER, "T")
    missing = _decl(project, "a.ts", "M").type
    assert (missing.kind, missing.text) == (TypeKind.OTHER, "Missing")


def test_recursive_declarations_terminate(make_project) -> None:
    source = """
interface Node { next?: Node }
type A = B;
type B = A;
"""
    project = make_project(a=source)
    node = _decl(project, "a.ts", "Node").type
    assert _prop(node, "next").type is node
    assert _decl(project, "a.ts", "A").type.kind is TypeKind.OTHER


def test_template_literal_without_holes_is_a_string_literal(make_project) -> None:
    project = make_project(a="type T = `plain`;\ntype U = `id-${number}`;")
    plain = _decl(project, "a.ts", "T").type
    assert (plain.kind, plain.text) == (TypeKind.OTHER, '"plain"')
    spans = _decl(project, "a.ts", "U").type.template_spans
    assert spans[0] == "id-"
    assert spans[1].kind is TypeKind.NUMBER


def test_units_lookup_and_duplicates(tmp_path: Path) -> None:
    path = tmp_path / "a.ts"
    path.write_text("/** @model */\ntype A = string;\n")
    project = TypeScriptProject.from_files([path])
    assert [unit.name for unit in project.units] == [str(path)]
    assert project.get_unit(str(path)) is project.units[0]
    assert project.get_unit("missing.ts") is None
    with pytest.raises(ValueError):
        project.add_file(path)
