from pathlib import Path

import pytest
import ujson as json
from typer.testing import CliRunner

from ts_to_typespec import get_version
from ts_to_typespec.cli import app


def _write_sources(root: Path, point_source: str) -> Path:
    src = root / "src"
    (src / "nested").mkdir(parents=True)
    (src / "point.ts").write_text(point_source)
    (src / "nested" / "status.ts").write_text('/** @model */\ntype Status = "on" | "off";\n')
    return src


def test_cli_convert_writes_document(tmp_path: Path, point_source: str) -> None:
    src = _write_sources(tmp_path, point_source)
    out = tmp_path / "typespec"
    runner = CliRunner()
    result = runner.invoke(app, ["convert", str(src / "*.ts"), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert (out / "main.tsp").read_text() == (
        f"// {src / 'point.ts'}\nmodel Point {{\n  x: float64;\n  y: float64;\n}};\n"
    )
    assert "Converted 1 files" in result.output


def test_cli_convert_recursive_pattern_with_workers(tmp_path: Path, point_source: str) -> None:
    src = _write_sources(tmp_path, point_source)
    out = tmp_path / "typespec"
    runner = CliRunner()
    result = runner.invoke(
        app, ["convert", str(src / "**" / "*.ts"), "--output", str(out), "--workers", "2"]
    )
    assert result.exit_code == 0, result.output
    text = (out / "main.tsp").read_text()
    assert f"// {src / 'nested' / 'status.ts'}\nalias Status = \"on\" | \"off\";" in text
    assert "model Point {" in text
    assert text.index("status.ts") < text.index("point.ts")


def test_cli_convert_uses_config(tmp_path: Path, point_source: str) -> None:
    src = _write_sources(tmp_path, point_source)
    config = tmp_path / "converter.yaml"
    config.write_text("number_type: int32\noutput_name: api.tsp\n")
    out = tmp_path / "typespec"
    runner = CliRunner()
    result = runner.invoke(
        app, ["convert", str(src / "point.ts"), "-o", str(out), "--config", str(config)]
    )
    assert result.exit_code == 0, result.output
    assert "x: int32;" in (out / "api.tsp").read_text()


def test_cli_convert_without_matches_fails(tmp_path: Path) -> None:
    out = tmp_path / "typespec"
    runner = CliRunner()
    result = runner.invoke(app, ["convert", str(tmp_path / "*.ts"), "-o", str(out)])
    assert result.exit_code == 1
    assert "No files match" in result.output
    assert not out.exists()


def test_cli_convert_syntax_error_writes_nothing(tmp_path: Path) -> None:
    bad = tmp_path / "bad.ts"
    bad.write_text("/** @model */\ntype X = ;\n")
    out = tmp_path / "typespec"
    runner = CliRunner()
    result = runner.invoke(app, ["convert", str(bad), "-o", str(out)])
    assert result.exit_code == 1
    assert "Failed to convert" in result.output
    assert not (out / "main.tsp").exists()


@pytest.mark.parametrize(
    "content",
    ["unknown_field: 1\n", "number_type: [int32\n", "- not\n- a mapping\n"],
    ids=["unknown-field", "malformed-yaml", "not-a-mapping"],
)
def test_cli_convert_rejects_invalid_config(
    tmp_path: Path, point_source: str, content: str
) -> None:
    src = _write_sources(tmp_path, point_source)
    config = tmp_path / "converter.yaml"
    config.write_text(content)
    runner = CliRunner()
    result = runner.invoke(
        app, ["convert", str(src / "*.ts"), "-o", str(tmp_path / "o"), "--config", str(config)]
    )
    assert result.exit_code == 1
    assert "Invalid config" in result.output


def test_cli_version() -> None:
    result = CliRunner().invoke(app, ["version"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == get_version()


def test_cli_config_schema(tmp_path: Path) -> None:
    out = tmp_path / "schema" / "config.json"
    result = CliRunner().invoke(app, ["config-schema", str(out)])
    assert result.exit_code == 0, result.output
    schema = json.loads(out.read_text())
    assert "export_tag" in schema["properties"]
    assert schema["properties"]["record_style"]["enum"] == ["value", "key-value"]
