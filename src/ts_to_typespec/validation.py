"""Check generated documents with the external TypeSpec compiler.

Only used by tests and CI: the converter itself never shells out. The
compiler is run on a temporary project holding the document as ``main.tsp``
plus a minimal ``package.json``; its ``file:line:col - severity code: message``
output is parsed into :class:`Diagnostic` records.
"""

from __future__ import annotations

import bisect
import logging
import re
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import ujson as json

from .errors import ValidationFailed

logger = logging.getLogger(__name__)

_LOCATED = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+) - "
    r"(?P<severity>error|warning) (?P<code>[\w/@.-]+): (?P<message>.*)$"
)
_UNLOCATED = re.compile(r"^(?P<severity>error|warning) (?P<code>[\w/@.-]+): (?P<message>.*)$")

PACKAGE_MANIFEST = {
    "name": "ts-to-typespec-validation",
    "version": "0.0.0",
    "private": True,
    "main": "main.tsp",
    "dependencies": {"@typespec/compiler": "*"},
}


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    code: str
    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def format(self) -> str:
        if self.file is None or self.line is None:
            return self.message
        return f"{self.message} @ {self.file}:{self.line}:{self.column}"


def line_starts(text: str) -> list[int]:
    """Offsets at which each line of ``text`` begins."""
    starts = [0]
    starts.extend(index + 1 for index, char in enumerate(text) if char == "\n")
    return starts


def position_to_line_column(starts: Sequence[int], pos: int) -> tuple[int, int]:
    """Map an offset to a 1-based (line, column) pair."""
    if pos < 0:
        msg = f"Position must be non-negative, got {pos}"
        raise ValueError(msg)
    line = bisect.bisect_right(starts, pos)
    return line, pos - starts[line - 1] + 1


def diagnostic_at(
    text: str,
    pos: int,
    message: str,
    file: str = "main.tsp",
    code: str = "",
    severity: str = "error",
) -> Diagnostic:
    """Build a diagnostic for an offset reported against ``text``."""
    line, column = position_to_line_column(line_starts(text), pos)
    return Diagnostic(severity, code, message, file, line, column)


def parse_diagnostics(output: str) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for row in output.splitlines():
        row = row.strip()
        match = _LOCATED.match(row)
        if match:
            diagnostics.append(
                Diagnostic(
                    severity=match["severity"],
                    code=match["code"],
                    message=match["message"],
                    file=match["file"],
                    line=int(match["line"]),
                    column=int(match["column"]),
                )
            )
            continue
        match = _UNLOCATED.match(row)
        if match:
            diagnostics.append(Diagnostic(match["severity"], match["code"], match["message"]))
    return diagnostics


def compiler_available(command: Sequence[str] = ("tsp",)) -> bool:
    return shutil.which(command[0]) is not None


def compile_document(
    text: str, command: Sequence[str] = ("tsp",), timeout: float = 300
) -> list[Diagnostic]:
    """Run ``<command> compile`` on ``text`` and return every diagnostic."""
    with tempfile.TemporaryDirectory(prefix="ts-to-typespec-") as tmp:
        root = Path(tmp)
        (root / "main.tsp").write_text(text, encoding="utf-8")
        (root / "package.json").write_text(json.dumps(PACKAGE_MANIFEST, indent=2))
        cmd = [*command, "compile", "main.tsp", "--no-emit"]
        logger.debug("Running %s in %s", " ".join(cmd), root)
        result = subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    diagnostics = parse_diagnostics(result.stdout + "\n" + result.stderr)
    if result.returncode != 0 and not any(d.is_error for d in diagnostics):
        message = (result.stderr or result.stdout).strip() or f"exit status {result.returncode}"
        diagnostics.append(Diagnostic("error", "compiler-failure", message))
    return diagnostics


def validate_document(
    text: str, command: Sequence[str] = ("tsp",), timeout: float = 300
) -> list[Diagnostic]:
    """Raise :class:`ValidationFailed` when the compiler reports errors; return warnings."""
    diagnostics = compile_document(text, command=command, timeout=timeout)
    errors = [diagnostic.format() for diagnostic in diagnostics if diagnostic.is_error]
    if errors:
        raise ValidationFailed(errors)
    return diagnostics


def snapshot(typescript: str, typespec: str) -> str:
    """Side-by-side record of a conversion, as stored in ``.snap`` files."""
    return (
        "<<<<<<<<<<< typescript <<<<<<<<<<<<\n"
        + typescript.strip()
        + "\n===================================\n"
        + typespec.strip()
        + "\n>>>>>>>>>>> typespec >>>>>>>>>>>>>>"
    )
