"""First conversion pass: collect exported declarations as named models."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .config import ConverterConfig
from .oracle import Declaration, ResolvedType, SourceUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Model:
    display_name: str
    type: ResolvedType
    declaration: Declaration


def export_name(declaration: Declaration, config: ConverterConfig) -> str | None:
    """Display name for an exported declaration, or None when not exported."""
    tags = declaration.docs.tags_named(config.export_tag)
    if not tags:
        return None
    words = tags[0].text.split()
    return words[0] if words else declaration.name


@dataclass(frozen=True)
class ModelRegistry:
    """Immutable, ordered table of exported models.

    Lookups compare types by identity, so two structurally equal but separately
    declared types stay distinct, and the first registered match wins.
    """

    models: tuple[Model, ...] = ()

    @classmethod
    def build(
        cls, units: Iterable[SourceUnit], config: ConverterConfig | None = None
    ) -> ModelRegistry:
        config = config or ConverterConfig()
        models: list[Model] = []
        for unit in units:
            for declaration in unit.declarations:
                name = export_name(declaration, config)
                if name is None:
                    continue
                models.append(Model(name, declaration.type, declaration))
        logger.debug("Registered %d exported models", len(models))
        return cls(tuple(models))

    def find(self, type_: ResolvedType) -> Model | None:
        return next((model for model in self.models if model.type is type_), None)

    def models_in(self, unit: SourceUnit) -> list[Model]:
        """Models declared in ``unit``, in declaration order."""
        owned = {id(declaration) for declaration in unit.declarations}
        return [model for model in self.models if id(model.declaration) in owned]

    def __len__(self) -> int:
        return len(self.models)
