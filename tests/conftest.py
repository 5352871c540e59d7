from collections.abc import Callable

import pytest

from ts_to_typespec.api import ConversionSuccess, convert_units
from ts_to_typespec.config import ConverterConfig
from ts_to_typespec.tsproject import TypeScriptProject


def build_project(**sources: str) -> TypeScriptProject:
    """Project whose units are named ``<key>.ts``."""
    project = TypeScriptProject()
    for name, text in sources.items():
        project.add_source(f"{name}.ts", text)
    return project


@pytest.fixture()
def make_project() -> Callable[..., TypeScriptProject]:
    return build_project


@pytest.fixture()
def convert_source() -> Callable[..., str]:
    """Convert one unit of source and return its statements without the header."""

    def _convert(source: str, config: ConverterConfig | None = None) -> str:
        project = build_project(input=source)
        (result,) = convert_units(project, ["input.ts"], config=config)
        assert isinstance(result, ConversionSuccess)
        return result.text

    return _convert


@pytest.fixture()
def point_source() -> str:
    return "/** @model */\ninterface Point { x: number; y: number }\n"
