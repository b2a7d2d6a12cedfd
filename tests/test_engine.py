"""
End-to-end engine tests.

Each test parses a complete Go file, runs the engine and checks the printed
result, covering idempotence, non-interference, message preservation, the
error-message rewrite, unknown-field skipping, import hygiene, receiver
scoping and the strict policy.
"""

import pytest

from logshift.engine import Engine
from logshift.errors import ShapeViolation
from logshift.parser import parse_source
from logshift.printer import render_program

HANDLER = """package handler

import (
\t"example.com/app/utils"

\t"go.uber.org/zap"
)

// Handle processes one request.
func Handle(id string, n int) {
\tutils.Logger.Info("handled", zap.String("id", id), zap.Int("n", n))
}
"""

HANDLER_REWRITTEN = """package handler

import (
\t"example.com/app/utils"
\t"github.com/rs/zerolog"
)

// Handle processes one request.
func Handle(id string, n int) {
\tlogger.Info().Str("id", id).Int("n", n).Msg("handled")
}
"""


class TestRewrite:
    def test_full_file(self, rewrite):
        out, result = rewrite(HANDLER)

        assert out == HANDLER_REWRITTEN
        assert result.changed is True
        assert result.rewrites == 1
        assert result.imports_changed is True
        assert len(result.diagnostics) == 0

    def test_idempotent(self, rewrite):
        once, _ = rewrite(HANDLER)
        twice, result = rewrite(once)

        assert twice == once
        assert result.changed is False
        assert result.rewrites == 0

    def test_non_interference(self, rewrite):
        source = """package main

import (
\t"fmt"
\t"log"
)

func main() {
\tlog.Println("plain")
\tother.Logger.Info("not ours")
\tfmt.Println(utils.Logger)
}
"""
        out, result = rewrite(source)

        assert out == source
        assert result.changed is False

    def test_message_preserved(self, rewrite):
        source = """package main

func f(user string) {
\tutils.Logger.Warn(fmt.Sprintf("user %s", user))
\tutils.Logger.Debug(`raw
message`)
}
"""
        out, result = rewrite(source)

        assert result.rewrites == 2
        assert 'logger.Warn().Msg(fmt.Sprintf("user %s", user))' in out
        assert "logger.Debug().Msg(`raw\nmessage`)" in out

    def test_error_message_rewrite(self, rewrite):
        source = """package main

func f(err error) {
\tutils.Logger.Error(err.Error(), zap.String("op", "save"))
}
"""
        out, _ = rewrite(source)

        assert out == """package main

import (
\t"github.com/rs/zerolog"
\t"github.com/pkg/errors"
)

func f(err error) {
\tlogger.Error().Str("op", "save").Err(errors.Wrap(err, "from error")).Msg("")
}
"""

    def test_unknown_field_skipped(self, rewrite):
        source = """package main

import "go.uber.org/zap"

func f(s fmt.Stringer) {
\tutils.Logger.Info("m", zap.Stringer("s", s), zap.Bool("ok", true))
}
"""
        out, result = rewrite(source)

        assert 'logger.Info().Bool("ok", true).Msg("m")' in out
        assert len(result.diagnostics) == 1
        assert result.diagnostics.entries[0].line == 6
        assert "go.uber.org/zap" not in out


    def test_comments_between_arguments_are_reported(self, rewrite):
        source = """package main

func f(id string) {
\tutils.Logger.Info(
\t\t"m", // request id follows
\t\tzap.String("id", id),
\t)
}
"""
        out, result = rewrite(source)

        assert 'logger.Info().Str("id", id).Msg("m")' in out
        assert [(d.line, d.message) for d in result.diagnostics] == [
            (4, "comments inside the logging call were dropped")
        ]

    def test_comment_inside_string_is_not_reported(self, rewrite):
        source = """package main

func f() {
\tutils.Logger.Info("see http://example.com /* docs */")
}
"""
        _, result = rewrite(source)

        assert len(result.diagnostics) == 0


class TestImports:
    def test_stdlib_errors_gets_aliased_helper(self, rewrite):
        source = """package main

import (
\t"errors"

\t"go.uber.org/zap"
)

var ErrClosed = errors.New("closed")

func f(err error) {
\tutils.Logger.Error("failed", zap.Error(err))
}
"""
        out, _ = rewrite(source)

        assert '\tpkgerrors "github.com/pkg/errors"\n' in out
        assert '\t"errors"\n' in out
        assert 'logger.Error().Err(pkgerrors.Wrap(err, "from error")).Msg("failed")' in out

    def test_existing_helper_import_is_reused(self, rewrite):
        source = """package main

import (
\t"github.com/pkg/errors"
\t"go.uber.org/zap"
)

func f(err error) {
\tutils.Logger.Error("failed", zap.Error(err))
}
"""
        out, _ = rewrite(source)

        assert out.count('"github.com/pkg/errors"') == 1
        assert "errors.Wrap(err" in out

    def test_source_import_kept_when_still_used(self, rewrite):
        source = """package main

import "go.uber.org/zap"

func setup() *zap.Logger {
\tl, _ := zap.NewProduction()
\treturn l
}

func f() {
\tutils.Logger.Info("x")
}
"""
        out, _ = rewrite(source)

        assert '\t"go.uber.org/zap"\n\t"github.com/rs/zerolog"\n' in out

    def test_unused_source_import_removed_without_rewrite(self, rewrite):
        out, result = rewrite('package main\n\nimport "go.uber.org/zap"\n\nfunc f() {}\n')

        assert out == "package main\n\nfunc f() {}\n"
        assert result.changed is True
        assert result.rewrites == 0

    def test_new_import_group(self, rewrite):
        out, _ = rewrite('package main\n\nfunc f() {\n\tutils.Logger.Info("x")\n}\n')

        assert out == 'package main\n\nimport "github.com/rs/zerolog"\n\nfunc f() {\n\tlogger.Info().Msg("x")\n}\n'

    def test_aliased_source_import(self, rewrite):
        source = """package main

import uzap "go.uber.org/zap"

func f(id string) {
\tutils.Logger.Info("m", uzap.String("id", id))
}
"""
        out, _ = rewrite(source)

        assert 'logger.Info().Str("id", id).Msg("m")' in out
        assert "go.uber.org/zap" not in out


class TestReceiverScope:
    SOURCE = """package svc

import "go.uber.org/zap"

type Service struct {
\tlogger *zap.Logger
}

func (s *Service) Run(id string) {
\ts.logger.Info("run", zap.String("id", id))
}

func helper() {
\tutils.Logger.Warn("helper")
}
"""

    def test_methods_only(self, rewrite, receiver_settings):
        out, result = rewrite(self.SOURCE, receiver_settings)

        assert result.rewrites == 1
        assert 's.logger.Info().Str("id", id).Msg("run")' in out
        assert 'utils.Logger.Warn("helper")' in out
        # the struct field still references zap
        assert '\t"go.uber.org/zap"\n\t"github.com/rs/zerolog"\n' in out

    def test_idempotent(self, rewrite, receiver_settings):
        once, _ = rewrite(self.SOURCE, receiver_settings)
        _, result = rewrite(once, receiver_settings)

        assert result.changed is False

    def test_singleton_call_in_method_uses_receiver_logger(self, rewrite, receiver_settings):
        source = """package svc

func (s *Svc) Run(id string) {
\tutils.Logger.Info("run", zap.String("id", id))
\tgo func() {
\t\tutils.Logger.Debug("worker")
\t}()
}
"""
        out, result = rewrite(source, receiver_settings)

        assert result.rewrites == 2
        assert 's.logger.Info().Str("id", id).Msg("run")' in out
        assert 's.logger.Debug().Msg("worker")' in out
        assert "utils.Logger" not in out


class TestPolicy:
    SOURCE = """package main

import "go.uber.org/zap"

func f(extra zap.Field) {
\tutils.Logger.Info("first", zap.Int("n", 1))
\tutils.Logger.Info("second", extra)
}
"""

    def test_best_effort_skips_field(self, rewrite):
        out, result = rewrite(self.SOURCE)

        assert result.rewrites == 2
        assert 'logger.Info().Int("n", 1).Msg("first")' in out
        assert 'logger.Info().Msg("second")' in out
        assert [d.line for d in result.diagnostics] == [7]

    def test_strict_aborts_file(self, strict_settings):
        program = parse_source(self.SOURCE)

        with pytest.raises(ShapeViolation) as excinfo:
            Engine(strict_settings).process_file(program)

        assert excinfo.value.line == 7

    def test_spread_fields(self, rewrite, strict_settings):
        source = "package main\n\nfunc f(fs []zap.Field) {\n\tutils.Logger.Info(\"m\", fs...)\n}\n"

        out, result = rewrite(source)
        assert 'logger.Info().Msg("m")' in out
        assert len(result.diagnostics) == 1

        with pytest.raises(ShapeViolation):
            Engine(strict_settings).process_file(parse_source(source))


class TestScan:
    def test_reports_call_sites(self, settings):
        source = """package main

func f(err error) {
\tutils.Logger.Info("a", zap.String("k", "v"), zap.Stringer("s", s), other)
\tgo func() {
\t\tutils.Logger.Error(err.Error())
\t}()
}
"""
        program = parse_source(source)

        sites = Engine(settings).scan(program)

        assert [(s.line, s.function, s.level) for s in sites] == [(4, "f", "Info"), (6, "f", "Error")]
        assert sites[0].kinds == ["String"]
        assert sites[0].unknown == ["Stringer"]
        assert sites[0].malformed == 1
        assert sites[1].error_message is True

    def test_scan_is_read_only(self, settings):
        program = parse_source(HANDLER)

        Engine(settings).scan(program)

        assert render_program(program) == HANDLER
