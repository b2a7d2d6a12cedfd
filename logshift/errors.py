"""Exceptions and per-file diagnostics for the rewrite engine.

Input errors (``GoParseError``) and output errors (``OutputError``) are fatal
to one file only. ``ShapeViolation`` is raised under the strict policy when a
field argument does not have the expected call shape; it aborts rewriting of
that file so no partially rewritten tree is ever written.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from logshift.tree import Node
from logshift.utils.logging import logger


class LogshiftError(Exception):
    """Base class for engine and driver errors."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.line = line

    def __str__(self) -> str:
        message = super().__str__()
        if self.line is not None:
            return f"line {self.line}: {message}"
        return message


class GoParseError(LogshiftError):
    """Source text could not be turned into a tree."""


class ShapeViolation(LogshiftError):
    """A logging call argument did not have the shape the rewrite needs."""


class OutputError(LogshiftError):
    """Rendering, formatting or writing a rewritten file failed."""


class ConfigError(LogshiftError):
    """Configuration value that cannot be used."""


@dataclass
class Diagnostic:
    line: int | None
    message: str
    severity: str = "warning"

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


@dataclass
class DiagnosticLog:
    """Collects diagnostics for one file and mirrors them to the logger."""

    source: bytes = b""
    path: str | None = None
    entries: list[Diagnostic] = field(default_factory=list)

    def line_of(self, node: Node | None) -> int | None:
        if node is None or node.span is None:
            return None
        return self.source.count(b"\n", 0, node.span[0]) + 1

    def warn(self, node: Node | None, message: str) -> Diagnostic:
        diagnostic = Diagnostic(self.line_of(node), message)
        self.entries.append(diagnostic)
        logger.warning("{where}{diag}", where=f"{self.path}: " if self.path else "", diag=diagnostic)
        return diagnostic

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
