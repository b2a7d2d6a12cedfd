"""Printer tests: verbatim copy of untouched code, generation of new nodes."""

import pytest

from logshift.errors import OutputError
from logshift.imports import ImportSet
from logshift.parser import parse_source
from logshift.printer import Renderer, render_node, render_program
from logshift.tree import (
    BlockStmt,
    CallExpr,
    ExprStmt,
    Ident,
    ImportDecl,
    ImportSpec,
    IndexExpr,
    SelectorExpr,
    SliceExpr,
    dotted,
    go_string,
    method_call,
)

MESSY_SOURCE = """// Copyright notice.

package main

import (
\t"fmt" // formatting

\t"go.uber.org/zap"
)

type  weird struct{ a, b int }   // odd spacing

/* block comment */
func main( ) {
\tx := []int{1,2,   3} // keep this
\tif len(x)>2 {
\t\tfmt.Println( x [1:2] )
\t}
}
"""


class TestVerbatim:
    """Unchanged trees print exactly as parsed."""

    def test_roundtrip_preserves_every_byte(self):
        program = parse_source(MESSY_SOURCE)

        assert render_program(program) == MESSY_SOURCE

    def test_clean_node_is_sliced(self):
        program = parse_source(MESSY_SOURCE)
        func = program.decls[-1]
        renderer = Renderer(program.source)

        assert not renderer.is_dirty(func)
        assert renderer.render(func).startswith(b"func main( ) {")


class TestSplicing:
    """A replaced node is generated, the text around it is kept."""

    def test_replacement_inside_statement(self):
        source = """package main

func f() {
\t// before
\tutils.Logger.Info("hi") // trailing
}
"""
        program = parse_source(source)
        stmt = program.decls[0].body.stmts[0]
        replacement = method_call(method_call(dotted("logger"), "Info"), "Msg", [stmt.x.args[0]])
        replacement.span = stmt.x.span
        replacement.generated = True
        stmt.x = replacement

        assert render_program(program) == """package main

func f() {
\t// before
\tlogger.Info().Msg("hi") // trailing
}
"""

    def test_dirty_tracking(self):
        program = parse_source("package main\n\nfunc f() {\n\tg()\n}\n")
        stmt = program.decls[0].body.stmts[0]
        stmt.x.generated = True
        renderer = Renderer(program.source)

        assert renderer.is_dirty(program.decls[0])
        assert renderer.is_dirty(stmt)


class TestGeneration:
    """Nodes built from scratch render in gofmt style."""

    def test_fluent_chain(self):
        chain = method_call(
            method_call(method_call(dotted("logger"), "Info"), "Str", [go_string("k"), Ident("v")]),
            "Msg",
            [go_string("done")],
        )

        assert render_node(chain) == 'logger.Info().Str("k", v).Msg("done")'

    def test_string_escaping(self):
        assert render_node(go_string('say "hi"\n')) == '"say \\"hi\\"\\n"'

    def test_misc_expressions(self):
        assert render_node(IndexExpr(Ident("m"), [Ident("k")])) == "m[k]"
        assert render_node(SliceExpr(Ident("s"), None, Ident("n"), None)) == "s[:n]"
        assert render_node(CallExpr(Ident("f"), [Ident("xs")], ellipsis=True)) == "f(xs...)"
        assert render_node(SelectorExpr(CallExpr(Ident("f"), []), "x")) == "f().x"

    def test_single_import(self):
        decl = ImportDecl([ImportSpec("github.com/rs/zerolog")])

        assert render_node(decl) == 'import "github.com/rs/zerolog"'

    def test_grouped_import_with_alias(self):
        decl = ImportDecl([ImportSpec("errors"), ImportSpec("github.com/pkg/errors", "pkgerrors")])

        assert render_node(decl) == 'import (\n\t"errors"\n\tpkgerrors "github.com/pkg/errors"\n)'

    def test_new_import_group_after_package_clause(self):
        program = parse_source("package main\n\nfunc f() {}\n")
        ImportSet(program).add("github.com/rs/zerolog")

        assert render_program(program) == 'package main\n\nimport "github.com/rs/zerolog"\n\nfunc f() {}\n'

    def test_statements_cannot_be_generated(self):
        with pytest.raises(OutputError):
            render_node(ExprStmt(Ident("x")))

    def test_unspanned_block_cannot_be_generated(self):
        with pytest.raises(OutputError):
            render_node(BlockStmt([]))
