"""Typed converter configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import ujson as json
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class ConverterConfig(BaseModel):
    """Knobs for tag conventions and output policies."""

    export_tag: str = "model"
    decorator_tag: str = "decorator"
    # JSON-quoted doc strings longer than this switch to a triple-quoted block
    doc_line_limit: int = Field(default=80, gt=0)
    number_type: str = "float64"
    record_style: Literal["value", "key-value"] = "value"
    output_name: str = "main.tsp"

    model_config = {"extra": "forbid"}

    @field_validator("export_tag", "decorator_tag")
    @classmethod
    def strip_tag_marker(cls, value: str) -> str:
        value = value.strip().lstrip("@")
        if not value:
            raise ValueError("tag names must not be empty")
        return value

    @field_validator("output_name")
    @classmethod
    def plain_file_name(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError("output_name must be a bare file name")
        return value


def load_converter_config(path: str | Path) -> ConverterConfig:
    """Load a config from YAML or JSON."""
    path = Path(path)
    data: Any
    text = path.read_text()
    try:
        if path.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, ValueError) as exc:
        raise ValueError(f"Invalid config {path}: {exc}") from exc
    if data is not None and not isinstance(data, dict):
        msg = f"Invalid config {path}: expected a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    try:
        return ConverterConfig(**(data or {}))
    except ValidationError as exc:
        raise ValueError(f"Invalid config {path}") from exc


def save_converter_config(config: ConverterConfig, path: str | Path) -> None:
    """Persist a config as YAML or JSON based on file suffix."""
    path = Path(path)
    if path.suffix in {".yaml", ".yml"}:
        path.write_text(yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False))
    else:
        path.write_text(json.dumps(config.model_dump(mode="python"), indent=2))


def config_json_schema() -> dict[str, Any]:
    """Return the JSON schema of `ConverterConfig` for editors and CI."""
    return ConverterConfig.model_json_schema()
