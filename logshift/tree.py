"""Go syntax tree model used by the rewrite engine.

The model is a closed set of dataclasses. ``Expr``, ``Stmt`` and ``Decl`` are
unions over every variant; walkers over them end in ``assert_never`` so a type
checker flags a variant that was added without being handled.

Nodes built by the parser carry the byte ``span`` they were read from. Nodes
built by the engine have no span, except a replacement node, which inherits
the span of the node it replaced and is marked ``generated``. Spans and flags
do not take part in equality, so two trees compare equal when they have the
same shape.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import Union

Span = tuple[int, int]


@dataclass
class Node:
    """Base for all tree nodes."""

    span: Span | None = field(default=None, kw_only=True, compare=False, repr=False)
    generated: bool = field(default=False, kw_only=True, compare=False, repr=False)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Ident(Node):
    """Identifier, including predeclared true/false/nil/iota."""

    name: str


@dataclass
class BasicLit(Node):
    """Literal with kind INT, FLOAT, IMAG, CHAR or STRING. ``value`` is source text."""

    kind: str
    value: str


@dataclass
class CallExpr(Node):
    func: Expr
    args: list[Expr]
    ellipsis: bool = False


@dataclass
class SelectorExpr(Node):
    """``x.sel``, also used for qualified types such as ``zap.Field``."""

    x: Expr
    sel: str


@dataclass
class IndexExpr(Node):
    """``x[i]``, and generic instantiation ``x[T1, T2]``."""

    x: Expr
    indices: list[Expr]


@dataclass
class SliceExpr(Node):
    x: Expr
    low: Expr | None
    high: Expr | None
    max: Expr | None


@dataclass
class TypeAssertExpr(Node):
    """``x.(T)``; ``type`` is None for the ``x.(type)`` of a type switch."""

    x: Expr
    type: Expr | None


@dataclass
class CompositeLit(Node):
    type: Expr | None
    elts: list[Expr]


@dataclass
class UnaryExpr(Node):
    op: str
    x: Expr


@dataclass
class BinaryExpr(Node):
    x: Expr
    op: str
    y: Expr


@dataclass
class FuncLit(Node):
    signature: Signature
    body: BlockStmt


@dataclass
class KeyValueExpr(Node):
    key: Expr
    value: Expr


@dataclass
class ParenExpr(Node):
    x: Expr


@dataclass
class StarExpr(Node):
    x: Expr


@dataclass
class ArrayType(Node):
    """``[len]elt``; ``len`` is None for a slice type."""

    len: Expr | None
    elt: Expr


@dataclass
class MapType(Node):
    key: Expr
    value: Expr


@dataclass
class ChanType(Node):
    dir: str
    value: Expr


@dataclass
class EllipsisExpr(Node):
    """``...`` in ``[...]T``."""

    elt: Expr | None = None


@dataclass
class OpaqueType(Node):
    """Type literal kept as text, with the package qualifiers it references."""

    text: str
    qualifiers: tuple[str, ...] = ()


@dataclass
class StructType(OpaqueType):
    pass


@dataclass
class InterfaceType(OpaqueType):
    pass


@dataclass
class FuncType(OpaqueType):
    pass


@dataclass
class Signature(Node):
    """Parameter and result text of a function, plus bound parameter names."""

    text: str
    qualifiers: tuple[str, ...] = ()
    params: tuple[str, ...] = ()


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class ExprStmt(Node):
    x: Expr


@dataclass
class AssignStmt(Node):
    """Assignment, ``:=`` declaration, or receive assignment in a select case."""

    lhs: list[Expr]
    op: str
    rhs: list[Expr]


@dataclass
class IncDecStmt(Node):
    x: Expr
    op: str


@dataclass
class SendStmt(Node):
    chan: Expr
    value: Expr


@dataclass
class GoStmt(Node):
    call: Expr


@dataclass
class DeferStmt(Node):
    call: Expr


@dataclass
class ReturnStmt(Node):
    results: list[Expr]


@dataclass
class BranchStmt(Node):
    """break, continue, goto or fallthrough."""

    tok: str
    label: str | None = None


@dataclass
class BlockStmt(Node):
    stmts: list[Stmt]


@dataclass
class IfStmt(Node):
    init: Stmt | None
    cond: Expr
    body: BlockStmt
    else_: Stmt | None = None


@dataclass
class CaseClause(Node):
    """Switch arm. ``exprs`` is None for ``default``."""

    exprs: list[Expr] | None
    body: list[Stmt]


@dataclass
class SwitchStmt(Node):
    init: Stmt | None
    tag: Expr | None
    clauses: list[CaseClause]


@dataclass
class TypeSwitchStmt(Node):
    init: Stmt | None
    alias: list[Expr]
    x: Expr
    clauses: list[CaseClause]


@dataclass
class CommClause(Node):
    """Select arm. ``comm`` is None for ``default``."""

    comm: Stmt | None
    body: list[Stmt]


@dataclass
class SelectStmt(Node):
    clauses: list[CommClause]


@dataclass
class ForStmt(Node):
    init: Stmt | None
    cond: Expr | None
    post: Stmt | None
    body: BlockStmt


@dataclass
class RangeStmt(Node):
    key: Expr | None
    value: Expr | None
    tok: str | None
    x: Expr
    body: BlockStmt


@dataclass
class LabeledStmt(Node):
    label: str
    stmt: Stmt | None


@dataclass
class DeclStmt(Node):
    decl: GenDecl


@dataclass
class EmptyStmt(Node):
    pass


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class TopLevel(Node):
    """Top-level declaration; ``leading`` is the source text before it."""

    leading: bytes = field(default=b"\n\n", kw_only=True, compare=False, repr=False)


@dataclass
class ImportSpec(Node):
    path: str
    name: str | None = None


@dataclass
class ImportDecl(TopLevel):
    specs: list[ImportSpec]


@dataclass
class Receiver(Node):
    name: str | None
    type_text: str


@dataclass
class FuncDecl(TopLevel):
    name: str
    recv: Receiver | None
    signature: Signature
    body: BlockStmt | None


@dataclass
class ValueSpec(Node):
    names: list[str]
    type: Expr | None
    values: list[Expr]


@dataclass
class TypeSpec(Node):
    text: str
    qualifiers: tuple[str, ...] = ()


@dataclass
class GenDecl(TopLevel):
    """var, const or type declaration."""

    tok: str
    specs: list[ValueSpec | TypeSpec]


@dataclass
class Program(Node):
    package: str
    decls: list[Decl]
    source: bytes = field(default=b"", compare=False, repr=False)
    header_end: int = field(default=0, compare=False, repr=False)
    trailing: bytes = field(default=b"\n", compare=False, repr=False)


Expr = Union[
    Ident,
    BasicLit,
    CallExpr,
    SelectorExpr,
    IndexExpr,
    SliceExpr,
    TypeAssertExpr,
    CompositeLit,
    UnaryExpr,
    BinaryExpr,
    FuncLit,
    KeyValueExpr,
    ParenExpr,
    StarExpr,
    ArrayType,
    MapType,
    ChanType,
    EllipsisExpr,
    StructType,
    InterfaceType,
    FuncType,
]

Stmt = Union[
    ExprStmt,
    AssignStmt,
    IncDecStmt,
    SendStmt,
    GoStmt,
    DeferStmt,
    ReturnStmt,
    BranchStmt,
    BlockStmt,
    IfStmt,
    CaseClause,
    SwitchStmt,
    TypeSwitchStmt,
    CommClause,
    SelectStmt,
    ForStmt,
    RangeStmt,
    LabeledStmt,
    DeclStmt,
    EmptyStmt,
]

Decl = Union[ImportDecl, FuncDecl, GenDecl]


# ============================================================
# HELPERS
# ============================================================


def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of ``node`` in field order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children(current))))


def qualified_name(expr: Expr | None) -> str | None:
    """Return ``a.b.c`` for a selector chain rooted at an identifier, else None."""
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, SelectorExpr):
        base = qualified_name(expr.x)
        if base is None:
            return None
        return f"{base}.{expr.sel}"
    return None


def dotted(name: str) -> Expr:
    """Build the selector chain for a dotted name such as ``utils.Logger``."""
    head, *rest = name.split(".")
    expr: Expr = Ident(head)
    for part in rest:
        expr = SelectorExpr(expr, part)
    return expr


def go_string(text: str) -> BasicLit:
    """Build an interpreted Go string literal holding ``text``."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return BasicLit("STRING", f'"{escaped}"')


def method_call(receiver: Expr, method: str, args: list[Expr] | None = None) -> CallExpr:
    """Build ``receiver.method(args...)``."""
    return CallExpr(SelectorExpr(receiver, method), list(args or []))
