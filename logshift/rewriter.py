"""Walk function bodies and replace matched logging calls in place.

The walk covers every statement and expression variant of the tree model, so
calls nested in conditions, closures, composite literals or ``var``
initializers are found. Each ``isinstance`` chain ends in ``assert_never``.
"""

from __future__ import annotations

from typing import assert_never

from logshift.chain import ChainBuilder
from logshift.matcher import TraversalContext, match_log_call
from logshift.settings import RewriteSettings, Scope
from logshift.tree import (
    ArrayType,
    AssignStmt,
    BasicLit,
    BinaryExpr,
    BlockStmt,
    BranchStmt,
    CallExpr,
    CaseClause,
    ChanType,
    CommClause,
    CompositeLit,
    DeclStmt,
    DeferStmt,
    EllipsisExpr,
    EmptyStmt,
    Expr,
    ExprStmt,
    ForStmt,
    FuncDecl,
    FuncLit,
    FuncType,
    GenDecl,
    GoStmt,
    Ident,
    IfStmt,
    IncDecStmt,
    IndexExpr,
    InterfaceType,
    KeyValueExpr,
    LabeledStmt,
    MapType,
    Node,
    ParenExpr,
    Program,
    RangeStmt,
    ReturnStmt,
    SelectorExpr,
    SelectStmt,
    SendStmt,
    SliceExpr,
    StarExpr,
    Stmt,
    StructType,
    SwitchStmt,
    TypeAssertExpr,
    TypeSwitchStmt,
    UnaryExpr,
    ValueSpec,
    walk,
)
from logshift.utils.logging import logger


def collect_receivers(program: Program) -> dict[int, str]:
    """Map ``id(body)`` of every method with a usable receiver name to that name."""
    receivers = {}
    for decl in program.decls:
        if not isinstance(decl, FuncDecl) or decl.body is None or decl.recv is None:
            continue
        if decl.recv.name in (None, "_"):
            continue
        receivers[id(decl.body)] = decl.recv.name
    return receivers


class Rewriter:
    """Rewrites the functions of one file. ``rewrites`` counts replaced calls."""

    def __init__(
        self,
        settings: RewriteSettings,
        builder: ChainBuilder,
        receivers: dict[int, str] | None = None,
    ):
        self.settings = settings
        self.builder = builder
        self.receivers = receivers or {}
        self.rewrites = 0

    def rewrite_function(self, decl: FuncDecl) -> bool:
        """Rewrite every matching call in ``decl``; return whether it changed."""
        if decl.body is None or not decl.body.stmts:
            return False

        receiver = None
        if self.settings.scope is Scope.RECEIVER:
            receiver = self.receivers.get(id(decl.body))
            if receiver is None:
                logger.debug("Skipping {func}: no named receiver", func=decl.name)
                return False

        context = TraversalContext(receiver)
        if not self.has_log_calls(decl.body, context):
            return False

        before = self.rewrites
        self._block(decl.body, context)
        changed = self.rewrites > before
        if changed:
            logger.debug("Rewrote {n} call(s) in {func}", n=self.rewrites - before, func=decl.name)
        return changed

    def has_log_calls(self, node: Node, context: TraversalContext) -> bool:
        return any(
            isinstance(n, CallExpr) and match_log_call(n, self.settings, context) is not None
            for n in walk(node)
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _block(self, block: BlockStmt, ctx: TraversalContext) -> None:
        self._stmts(block.stmts, ctx)

    def _stmts(self, stmts: list[Stmt], ctx: TraversalContext) -> None:
        for stmt in stmts:
            self._stmt(stmt, ctx)

    def _optional_stmt(self, stmt: Stmt | None, ctx: TraversalContext) -> None:
        if stmt is not None:
            self._stmt(stmt, ctx)

    def _stmt(self, stmt: Stmt, ctx: TraversalContext) -> None:
        if isinstance(stmt, ExprStmt):
            stmt.x = self._expr(stmt.x, ctx)
        elif isinstance(stmt, AssignStmt):
            stmt.lhs = self._exprs(stmt.lhs, ctx)
            stmt.rhs = self._exprs(stmt.rhs, ctx)
        elif isinstance(stmt, IncDecStmt):
            stmt.x = self._expr(stmt.x, ctx)
        elif isinstance(stmt, SendStmt):
            stmt.chan = self._expr(stmt.chan, ctx)
            stmt.value = self._expr(stmt.value, ctx)
        elif isinstance(stmt, (GoStmt, DeferStmt)):
            stmt.call = self._expr(stmt.call, ctx)
        elif isinstance(stmt, ReturnStmt):
            stmt.results = self._exprs(stmt.results, ctx)
        elif isinstance(stmt, (BranchStmt, EmptyStmt)):
            pass
        elif isinstance(stmt, BlockStmt):
            self._block(stmt, ctx)
        elif isinstance(stmt, IfStmt):
            self._optional_stmt(stmt.init, ctx)
            stmt.cond = self._expr(stmt.cond, ctx)
            self._block(stmt.body, ctx)
            self._optional_stmt(stmt.else_, ctx)
        elif isinstance(stmt, CaseClause):
            if stmt.exprs is not None:
                stmt.exprs = self._exprs(stmt.exprs, ctx)
            self._stmts(stmt.body, ctx)
        elif isinstance(stmt, SwitchStmt):
            self._optional_stmt(stmt.init, ctx)
            stmt.tag = self._optional_expr(stmt.tag, ctx)
            self._stmts(stmt.clauses, ctx)
        elif isinstance(stmt, TypeSwitchStmt):
            self._optional_stmt(stmt.init, ctx)
            stmt.alias = self._exprs(stmt.alias, ctx)
            stmt.x = self._expr(stmt.x, ctx)
            self._stmts(stmt.clauses, ctx)
        elif isinstance(stmt, CommClause):
            self._optional_stmt(stmt.comm, ctx)
            self._stmts(stmt.body, ctx)
        elif isinstance(stmt, SelectStmt):
            self._stmts(stmt.clauses, ctx)
        elif isinstance(stmt, ForStmt):
            self._optional_stmt(stmt.init, ctx)
            stmt.cond = self._optional_expr(stmt.cond, ctx)
            self._optional_stmt(stmt.post, ctx)
            self._block(stmt.body, ctx)
        elif isinstance(stmt, RangeStmt):
            stmt.key = self._optional_expr(stmt.key, ctx)
            stmt.value = self._optional_expr(stmt.value, ctx)
            stmt.x = self._expr(stmt.x, ctx)
            self._block(stmt.body, ctx)
        elif isinstance(stmt, LabeledStmt):
            self._optional_stmt(stmt.stmt, ctx)
        elif isinstance(stmt, DeclStmt):
            self._gen_decl(stmt.decl, ctx)
        else:
            assert_never(stmt)

    def _gen_decl(self, decl: GenDecl, ctx: TraversalContext) -> None:
        for spec in decl.specs:
            if isinstance(spec, ValueSpec):
                spec.type = self._optional_expr(spec.type, ctx)
                spec.values = self._exprs(spec.values, ctx)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _exprs(self, exprs: list[Expr], ctx: TraversalContext) -> list[Expr]:
        return [self._expr(e, ctx) for e in exprs]

    def _optional_expr(self, expr: Expr | None, ctx: TraversalContext) -> Expr | None:
        return self._expr(expr, ctx) if expr is not None else None

    def _expr(self, expr: Expr, ctx: TraversalContext) -> Expr:
        """Rewrite inside ``expr`` and return it, or its replacement."""
        if isinstance(expr, CallExpr):
            expr.func = self._expr(expr.func, ctx)
            expr.args = self._exprs(expr.args, ctx)
            return self._replace_call(expr, ctx)
        if isinstance(expr, (Ident, BasicLit, StructType, InterfaceType, FuncType)):
            return expr
        if isinstance(expr, SelectorExpr):
            expr.x = self._expr(expr.x, ctx)
        elif isinstance(expr, IndexExpr):
            expr.x = self._expr(expr.x, ctx)
            expr.indices = self._exprs(expr.indices, ctx)
        elif isinstance(expr, SliceExpr):
            expr.x = self._expr(expr.x, ctx)
            expr.low = self._optional_expr(expr.low, ctx)
            expr.high = self._optional_expr(expr.high, ctx)
            expr.max = self._optional_expr(expr.max, ctx)
        elif isinstance(expr, TypeAssertExpr):
            expr.x = self._expr(expr.x, ctx)
            expr.type = self._optional_expr(expr.type, ctx)
        elif isinstance(expr, CompositeLit):
            expr.type = self._optional_expr(expr.type, ctx)
            expr.elts = self._exprs(expr.elts, ctx)
        elif isinstance(expr, UnaryExpr):
            expr.x = self._expr(expr.x, ctx)
        elif isinstance(expr, BinaryExpr):
            expr.x = self._expr(expr.x, ctx)
            expr.y = self._expr(expr.y, ctx)
        elif isinstance(expr, FuncLit):
            self._block(expr.body, ctx.enter_closure(expr.signature))
        elif isinstance(expr, KeyValueExpr):
            expr.key = self._expr(expr.key, ctx)
            expr.value = self._expr(expr.value, ctx)
        elif isinstance(expr, (ParenExpr, StarExpr)):
            expr.x = self._expr(expr.x, ctx)
        elif isinstance(expr, ArrayType):
            expr.len = self._optional_expr(expr.len, ctx)
            expr.elt = self._expr(expr.elt, ctx)
        elif isinstance(expr, MapType):
            expr.key = self._expr(expr.key, ctx)
            expr.value = self._expr(expr.value, ctx)
        elif isinstance(expr, ChanType):
            expr.value = self._expr(expr.value, ctx)
        elif isinstance(expr, EllipsisExpr):
            expr.elt = self._optional_expr(expr.elt, ctx)
        else:
            assert_never(expr)
        return expr

    def _replace_call(self, call: CallExpr, ctx: TraversalContext) -> Expr:
        log_call = match_log_call(call, self.settings, ctx)
        if log_call is None:
            return call
        replacement = self.builder.build(log_call, ctx)
        self.builder.warn_dropped_comments(call, log_call)
        replacement.span = call.span
        replacement.generated = True
        self.rewrites += 1
        return replacement
