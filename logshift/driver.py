"""File discovery and per-file transformation around the engine.

Every failure is confined to the file it happened in: reading, parsing, a
strict-policy abort, rendering, formatting and writing each end up as a
``failed`` report and the batch moves on.
"""

from __future__ import annotations

import difflib
import fnmatch
import os
import shutil
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from logshift.engine import Engine
from logshift.errors import Diagnostic, GoParseError, OutputError, ShapeViolation
from logshift.parser import parse_source
from logshift.printer import render_program
from logshift.utils.constants import DEFAULT_SKIP_DIRS, FILE_ENCODINGS, GO_EXTENSION, GOFMT_TIMEOUT
from logshift.utils.logging import logger


class OutputMode(str, Enum):
    INPLACE = "inplace"
    PRINT = "print"
    DIFF = "diff"
    DRY_RUN = "dry-run"


@dataclass
class FileReport:
    path: str
    status: str = "unchanged"  # unchanged | rewritten | failed
    rewrites: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: str | None = None
    output: str | None = None
    diff: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def changed(self) -> bool:
        return self.status == "rewritten"


def discover_files(
    paths: Iterable[str | Path],
    skip_dirs: set[str] | None = None,
    exclude: Iterable[str] = (),
) -> list[Path]:
    """Expand files and directories into the sorted list of Go files to process."""
    skip = DEFAULT_SKIP_DIRS | set(skip_dirs or ())
    patterns = list(exclude)
    found: list[Path] = []

    def excluded(candidate: Path) -> bool:
        posix = candidate.as_posix()
        return any(fnmatch.fnmatch(posix, p) or fnmatch.fnmatch(candidate.name, p) for p in patterns)

    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if d not in skip)
                for name in sorted(files):
                    candidate = Path(root) / name
                    if name.endswith(GO_EXTENSION) and not excluded(candidate):
                        found.append(candidate)
        elif path.is_file():
            if path.suffix != GO_EXTENSION:
                logger.warning("Skipping {path}: not a Go file", path=path)
            elif not excluded(path):
                found.append(path)
        else:
            logger.error("Path not found: {path}", path=path)

    unique = sorted(set(found))
    logger.debug("Discovered {n} Go file(s)", n=len(unique))
    return unique


def read_file_with_fallback(filepath: str | Path) -> tuple[str, str]:
    """Read file trying multiple encodings. Returns (content, encoding_used)."""
    for encoding in FILE_ENCODINGS:
        try:
            with open(filepath, encoding=encoding, newline="") as f:
                return f.read(), encoding
        except UnicodeDecodeError:
            continue
    raise UnicodeDecodeError(
        "all", b"", 0, 0, f"Failed to decode {filepath} with any of: {FILE_ENCODINGS}"
    )


def format_with_gofmt(text: str, timeout: int = GOFMT_TIMEOUT) -> str:
    """Pipe Go source through gofmt."""
    gofmt = shutil.which("gofmt")
    if gofmt is None:
        raise OutputError("gofmt not found on PATH")
    try:
        proc = subprocess.run(
            [gofmt],
            input=text,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise OutputError(f"gofmt timed out after {timeout}s") from e
    if proc.returncode != 0:
        raise OutputError(f"gofmt failed: {proc.stderr.strip()}")
    return proc.stdout


def unified_diff(path: str, before: str, after: str) -> str:
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        )
    )


def transform_file(
    file_path: str | Path,
    engine: Engine,
    mode: OutputMode = OutputMode.INPLACE,
    gofmt: bool = False,
    gofmt_timeout: int = GOFMT_TIMEOUT,
) -> FileReport:
    """Rewrite a single file and report what happened."""
    path = Path(file_path).as_posix()
    report = FileReport(path)

    def fail(message: str) -> FileReport:
        logger.error("{path}: {msg}", path=path, msg=message)
        report.status = "failed"
        report.error = message
        return report

    try:
        source, encoding = read_file_with_fallback(file_path)
    except (OSError, UnicodeDecodeError) as e:
        return fail(f"read error: {e}")

    try:
        program = parse_source(source.encode("utf-8"), path)
    except GoParseError as e:
        return fail(f"parse error: {e}")

    try:
        result = engine.process_file(program, path)
    except ShapeViolation as e:
        return fail(f"aborted, file left untouched: {e}")

    report.diagnostics = list(result.diagnostics)
    report.rewrites = result.rewrites
    if not result.changed:
        return report

    try:
        rewritten = render_program(program)
        if gofmt:
            rewritten = format_with_gofmt(rewritten, gofmt_timeout)
        # the output must parse again before it replaces anything
        parse_source(rewritten.encode("utf-8"), path)
    except (OutputError, GoParseError) as e:
        return fail(f"generated invalid code, original preserved: {e}")

    report.status = "rewritten"
    report.output = rewritten
    if mode is OutputMode.DIFF:
        report.diff = unified_diff(path, source, rewritten)

    if mode is OutputMode.INPLACE:
        try:
            with open(file_path, "w", encoding=encoding, newline="") as f:
                f.write(rewritten)
        except OSError as e:
            return fail(f"write error: {e}")
        logger.info("Rewrote {path} ({n} call(s))", path=path, n=result.rewrites)

    return report


def process_paths(
    paths: Iterable[str | Path],
    engine: Engine,
    mode: OutputMode = OutputMode.INPLACE,
    skip_dirs: set[str] | None = None,
    exclude: Iterable[str] = (),
    gofmt: bool = False,
    gofmt_timeout: int = GOFMT_TIMEOUT,
) -> list[FileReport]:
    """Discover and transform every Go file under ``paths``."""
    return [
        transform_file(path, engine, mode=mode, gofmt=gofmt, gofmt_timeout=gofmt_timeout)
        for path in discover_files(paths, skip_dirs, exclude)
    ]
