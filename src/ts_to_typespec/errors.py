"""Exception hierarchy for conversion failures."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all converter errors."""


class UnitNotFoundError(ConversionError, LookupError):
    """A requested input unit is not part of the project."""

    def __init__(self, unit: str) -> None:
        super().__init__(f"Source unit {unit!r} not found in project")
        self.unit = unit


class TypeScriptSyntaxError(ConversionError, ValueError):
    """The declaration reader could not parse a unit."""

    def __init__(self, message: str, unit: str, line: int, column: int) -> None:
        super().__init__(f"{unit}:{line}:{column}: {message}")
        self.unit = unit
        self.line = line
        self.column = column


class ValidationFailed(ConversionError):
    """The TypeSpec compiler rejected a generated document."""

    def __init__(self, messages: list[str]) -> None:
        joined = "\n".join(messages)
        super().__init__(f"TypeSpec compilation failed with errors:\n{joined}")
        self.messages = messages
