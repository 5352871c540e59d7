"""Public API for converting TypeScript declarations to TypeSpec."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .config import ConverterConfig
from .engine import TypeSpecConverter
from .errors import ConversionError, UnitNotFoundError
from .lazy import ConversionScope, stanzas
from .oracle import TypeProject
from .registry import ModelRegistry
from .tsproject import TypeScriptProject

__all__ = [
    "ConversionFailure",
    "ConversionResult",
    "ConversionSuccess",
    "convert_files",
    "convert_project",
    "convert_units",
    "load_project",
    "render_document",
    "write_document",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionSuccess:
    unit: str
    text: str
    usings: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ConversionFailure:
    unit: str
    error: ConversionError


ConversionResult = Union[ConversionSuccess, ConversionFailure]


def load_project(paths: Iterable[str | Path]) -> TypeScriptProject:
    """Parse every file into one project; units are named by their path."""
    return TypeScriptProject.from_files(paths)


def _convert_one(
    project: TypeProject,
    name: str,
    registry: ModelRegistry,
    converter: TypeSpecConverter,
) -> ConversionResult:
    unit = project.get_unit(name)
    if unit is None:
        error = UnitNotFoundError(name)
        logger.warning("%s; skipping", error)
        return ConversionFailure(name, error)
    scope = ConversionScope()
    statements = [converter.convert_model(model) for model in registry.models_in(unit)]
    document = stanzas(*statements)
    document.attach(scope)
    text = document.render(scope)
    logger.debug("Converted %d models from %s", len(statements), name)
    return ConversionSuccess(name, text, frozenset(scope.usings))


def convert_units(
    project: TypeProject,
    units: Sequence[str],
    config: ConverterConfig | None = None,
    workers: int = 1,
) -> list[ConversionResult]:
    """Convert the requested units, in the order requested.

    The model registry covers every unit of the project, so references across
    files resolve even when only some files are converted.
    """
    config = config or ConverterConfig()
    registry = ModelRegistry.build(project.units, config)
    converter = TypeSpecConverter(registry, config)
    if workers <= 1 or len(units) <= 1:
        return [_convert_one(project, name, registry, converter) for name in units]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(
            executor.map(lambda name: _convert_one(project, name, registry, converter), units)
        )


def render_document(results: Iterable[ConversionResult]) -> str:
    """Join successful results under ``// <unit>`` headers; failures are left out."""
    usings: set[str] = set()
    sections: list[str] = []
    for result in results:
        if isinstance(result, ConversionFailure):
            continue
        usings.update(result.usings)
        sections.append(f"// {result.unit}\n{result.text}" if result.text else f"// {result.unit}")
    if usings:
        sections.insert(0, "\n".join(f"using {namespace};" for namespace in sorted(usings)))
    return "\n\n".join(sections)


def convert_project(
    project: TypeProject,
    units: Sequence[str],
    config: ConverterConfig | None = None,
    workers: int = 1,
) -> str:
    return render_document(convert_units(project, units, config=config, workers=workers))


def convert_files(
    paths: Sequence[str | Path],
    config: ConverterConfig | None = None,
    workers: int = 1,
) -> str:
    """Read, resolve and convert files in one call."""
    project = load_project(paths)
    return convert_project(project, [str(path) for path in paths], config=config, workers=workers)


def write_document(text: str, out_dir: str | Path, name: str = "main.tsp") -> Path:
    """Write ``text`` to ``out_dir/name`` atomically, creating ``out_dir``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / name
    with tempfile.NamedTemporaryFile(
        delete=False,
        dir=out_dir,
        prefix=f"{path.stem}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
    try:
        tmp_path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)
    return path
