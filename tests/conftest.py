"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from logshift.engine import Engine
from logshift.parser import parse_source
from logshift.printer import render_program
from logshift.settings import ErrorPolicy, RewriteSettings, Scope


@pytest.fixture
def settings():
    """Default settings: singleton accessor, best-effort policy."""
    return RewriteSettings()


@pytest.fixture
def strict_settings():
    return RewriteSettings(policy=ErrorPolicy.STRICT)


@pytest.fixture
def receiver_settings():
    return RewriteSettings(scope=Scope.RECEIVER)


@pytest.fixture
def rewrite(settings):
    """Run the engine over Go source; returns (new_source, FileResult)."""

    def _rewrite(source: str, with_settings: RewriteSettings | None = None):
        program = parse_source(source)
        result = Engine(with_settings or settings).process_file(program, "test.go")
        return render_program(program), result

    return _rewrite


@pytest.fixture
def go_project(tmp_path: Path) -> Path:
    """A small Go module with one file to rewrite and one to leave alone."""
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.21\n")

    handler = tmp_path / "handler"
    handler.mkdir()
    (handler / "handler.go").write_text(
        """package handler

import (
\t"example.com/app/utils"

\t"go.uber.org/zap"
)

func Handle(id string, n int) {
\tutils.Logger.Info("handled", zap.String("id", id), zap.Int("n", n))
}
"""
    )
    (handler / "clean.go").write_text(
        """package handler

import "fmt"

func Print() {
\tfmt.Println("nothing to see")
}
"""
    )

    vendor = tmp_path / "vendor" / "example.com" / "dep"
    vendor.mkdir(parents=True)
    (vendor / "dep.go").write_text(
        """package dep

func Dep() {
\tutils.Logger.Info("vendored")
}
"""
    )
    return tmp_path
