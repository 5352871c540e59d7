from pathlib import Path

import pytest

from ts_to_typespec.api import convert_project
from ts_to_typespec.tsproject import TypeScriptProject
from ts_to_typespec.validation import snapshot

FIXTURES = sorted((Path(__file__).parent / "fixtures").glob("*.ts"))


@pytest.mark.parametrize("path", FIXTURES, ids=lambda path: path.stem)
def test_fixture_matches_snapshot(path: Path) -> None:
    source = path.read_text(encoding="utf-8")
    project = TypeScriptProject()
    project.add_source(path.name, source)
    output = convert_project(project, [path.name])
    expected = path.with_suffix(".snap").read_text(encoding="utf-8")
    assert snapshot(source, output) == expected.rstrip("\n")
