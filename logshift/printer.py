"""Render a tree model back to Go source.

Nodes that still match the text they were parsed from are copied from the
original bytes, comments and spacing included. A node the engine replaced, or
built from scratch, is generated from its fields. A parsed node with a
replaced descendant is spliced: the original text around each child is kept
and each child is rendered recursively.
"""

from __future__ import annotations

from logshift.errors import OutputError
from logshift.tree import (
    ArrayType,
    BasicLit,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    ChanType,
    CompositeLit,
    EllipsisExpr,
    FuncLit,
    Ident,
    ImportDecl,
    ImportSpec,
    IndexExpr,
    KeyValueExpr,
    MapType,
    Node,
    OpaqueType,
    ParenExpr,
    Program,
    SelectorExpr,
    Signature,
    SliceExpr,
    StarExpr,
    TypeAssertExpr,
    UnaryExpr,
    iter_children,
)


class Renderer:
    def __init__(self, source: bytes):
        self.source = source
        self._dirty: dict[int, bool] = {}

    def is_dirty(self, node: Node) -> bool:
        """True when ``node`` cannot be copied verbatim from the source."""
        key = id(node)
        if key not in self._dirty:
            self._dirty[key] = (
                node.span is None
                or node.generated
                or any(self.is_dirty(child) for child in iter_children(node))
            )
        return self._dirty[key]

    def render(self, node: Node) -> bytes:
        if node.span is None or node.generated:
            return self._generate(node)
        start, end = node.span
        if not self.is_dirty(node):
            return self.source[start:end]
        return self._splice(node)

    def _splice(self, node: Node) -> bytes:
        children = list(iter_children(node))
        if any(child.span is None for child in children):
            return self._generate(node)

        start, end = node.span
        out = []
        pos = start
        for child in sorted(children, key=lambda c: c.span[0]):
            child_start, child_end = child.span
            out.append(self.source[pos:child_start])
            out.append(self.render(child))
            pos = child_end
        out.append(self.source[pos:end])
        return b"".join(out)

    def _list(self, nodes: list[Node], sep: bytes = b", ") -> bytes:
        return sep.join(self.render(n) for n in nodes)

    def _generate(self, node: Node) -> bytes:
        if isinstance(node, Ident):
            return node.name.encode()
        if isinstance(node, BasicLit):
            return node.value.encode()
        if isinstance(node, CallExpr):
            dots = b"..." if node.ellipsis else b""
            return self.render(node.func) + b"(" + self._list(node.args) + dots + b")"
        if isinstance(node, SelectorExpr):
            return self.render(node.x) + b"." + node.sel.encode()
        if isinstance(node, IndexExpr):
            return self.render(node.x) + b"[" + self._list(node.indices) + b"]"
        if isinstance(node, SliceExpr):
            parts = [node.low, node.high] + ([node.max] if node.max is not None else [])
            inner = b":".join(self.render(p) if p is not None else b"" for p in parts)
            return self.render(node.x) + b"[" + inner + b"]"
        if isinstance(node, TypeAssertExpr):
            target = self.render(node.type) if node.type is not None else b"type"
            return self.render(node.x) + b".(" + target + b")"
        if isinstance(node, CompositeLit):
            head = self.render(node.type) if node.type is not None else b""
            return head + b"{" + self._list(node.elts) + b"}"
        if isinstance(node, UnaryExpr):
            return node.op.encode() + self.render(node.x)
        if isinstance(node, BinaryExpr):
            return self.render(node.x) + f" {node.op} ".encode() + self.render(node.y)
        if isinstance(node, FuncLit):
            return b"func" + self.render(node.signature) + b" " + self.render(node.body)
        if isinstance(node, KeyValueExpr):
            return self.render(node.key) + b": " + self.render(node.value)
        if isinstance(node, ParenExpr):
            return b"(" + self.render(node.x) + b")"
        if isinstance(node, StarExpr):
            return b"*" + self.render(node.x)
        if isinstance(node, ArrayType):
            length = self.render(node.len) if node.len is not None else b""
            return b"[" + length + b"]" + self.render(node.elt)
        if isinstance(node, MapType):
            return b"map[" + self.render(node.key) + b"]" + self.render(node.value)
        if isinstance(node, ChanType):
            return node.dir.encode() + b" " + self.render(node.value)
        if isinstance(node, EllipsisExpr):
            return b"..." + (self.render(node.elt) if node.elt is not None else b"")
        if isinstance(node, (OpaqueType, Signature)):
            return node.text.encode()
        if isinstance(node, ImportSpec):
            name = f"{node.name} " if node.name else ""
            return f'{name}"{node.path}"'.encode()
        if isinstance(node, ImportDecl):
            return self._import_decl(node)
        if isinstance(node, BlockStmt) and node.span is not None:
            return self._splice(node)
        raise OutputError(f"cannot generate source for {type(node).__name__}")

    def _import_decl(self, node: ImportDecl) -> bytes:
        if len(node.specs) == 1:
            return b"import " + self.render(node.specs[0])
        lines = [b"\t" + self.render(spec) + b"\n" for spec in node.specs]
        return b"import (\n" + b"".join(lines) + b")"


def render_node(node: Node, source: bytes = b"") -> str:
    """Render a single node, e.g. a generated call chain."""
    return Renderer(source).render(node).decode("utf-8")


def render_program(program: Program) -> str:
    """Render a whole file."""
    renderer = Renderer(program.source)
    out = [program.source[: program.header_end]]
    if not program.header_end:
        out.append(f"package {program.package}".encode())
    for decl in program.decls:
        out.append(decl.leading)
        out.append(renderer.render(decl))
    out.append(program.trailing)
    return b"".join(out).decode("utf-8")
