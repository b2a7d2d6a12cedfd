"""Go source to tree model, using tree-sitter.

Every node the builder creates records the byte span it was read from, so the
printer can reproduce untouched code exactly. Syntax errors and constructs the
tree model has no variant for raise ``GoParseError``: a file that cannot be
represented faithfully is never rewritten.
"""

from functools import lru_cache
from typing import Any

from tree_sitter_language_pack import get_parser

from logshift.errors import GoParseError
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
    ExprStmt,
    ForStmt,
    FuncDecl,
    FuncLit,
    FuncType,
    GenDecl,
    GoStmt,
    Ident,
    IfStmt,
    ImportDecl,
    ImportSpec,
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
    Receiver,
    ReturnStmt,
    SelectorExpr,
    SelectStmt,
    SendStmt,
    Signature,
    SliceExpr,
    StarExpr,
    StructType,
    SwitchStmt,
    TypeAssertExpr,
    TypeSpec,
    TypeSwitchStmt,
    UnaryExpr,
    ValueSpec,
)

IDENTIFIER_TYPES = {
    "identifier",
    "field_identifier",
    "type_identifier",
    "package_identifier",
    "label_name",
    "blank_identifier",
    "true",
    "false",
    "nil",
    "iota",
}

LITERAL_KINDS = {
    "int_literal": "INT",
    "float_literal": "FLOAT",
    "imaginary_literal": "IMAG",
    "rune_literal": "CHAR",
    "interpreted_string_literal": "STRING",
    "raw_string_literal": "STRING",
}

BRANCH_TOKENS = {
    "break_statement": "break",
    "continue_statement": "continue",
    "goto_statement": "goto",
    "fallthrough_statement": "fallthrough",
}

DECLARATION_TYPES = {"var_declaration", "const_declaration", "type_declaration"}


@lru_cache(maxsize=1)
def _go_parser():
    return get_parser("go")


def _get_node_text(node: Any) -> str:
    """Extract text from a tree-sitter node."""
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="ignore")


def _find_child_by_type(node: Any, child_type: str) -> Any | None:
    """Find first child of given type."""
    for child in node.children:
        if child.type == child_type:
            return child
    return None


def _named(node: Any) -> list[Any]:
    """Named children, without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def _same(a: Any, b: Any) -> bool:
    return (
        b is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
        and a.type == b.type
    )


def _first_error(node: Any) -> Any | None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


def _token(node: Any, choices: tuple[str, ...]) -> str | None:
    """Return the first anonymous child token among ``choices``."""
    for child in node.children:
        if not child.is_named and child.type in choices:
            return child.type
    return None


def _qualifiers(node: Any | None) -> tuple[str, ...]:
    """Package names referenced as ``pkg.Name`` anywhere under ``node``."""
    if node is None:
        return ()
    found: set[str] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "qualified_type":
            package = current.child_by_field_name("package")
            if package is not None:
                found.add(_get_node_text(package))
        elif current.type == "selector_expression":
            operand = current.child_by_field_name("operand")
            if operand is not None and operand.type == "identifier":
                found.add(_get_node_text(operand))
        stack.extend(current.children)
    return tuple(sorted(found))


def _param_names(param_list: Any | None) -> tuple[str, ...]:
    if param_list is None:
        return ()
    names = []
    for param in _named(param_list):
        if param.type in ("parameter_declaration", "variadic_parameter_declaration"):
            names.extend(_get_node_text(n) for n in param.children_by_field_name("name"))
    return tuple(names)


def _unquote(literal: str) -> str:
    if len(literal) >= 2 and literal[0] in "\"`" and literal[-1] == literal[0]:
        return literal[1:-1]
    return literal


def parse_source(source: bytes | str, path: str | None = None) -> Program:
    """Parse Go source into a Program tree.

    Raises:
        GoParseError: the text has syntax errors or uses a construct the tree
            model cannot represent.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")

    tree = _go_parser().parse(source)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        line = bad.start_point[0] + 1 if bad is not None else None
        raise GoParseError(f"syntax error in {path or 'source'}", line=line)

    return _TreeBuilder(source).program(root)


class _TreeBuilder:
    """Converts tree-sitter nodes into tree model nodes."""

    def __init__(self, source: bytes):
        self.source = source

    def _at(self, ts_node: Any, node: Node) -> Node:
        node.span = (ts_node.start_byte, ts_node.end_byte)
        return node

    def _unsupported(self, ts_node: Any, what: str) -> GoParseError:
        return GoParseError(
            f"unsupported {what} '{ts_node.type}'", line=ts_node.start_point[0] + 1
        )

    # ------------------------------------------------------------------
    # Program and declarations
    # ------------------------------------------------------------------

    def program(self, root: Any) -> Program:
        package = None
        header_end = 0
        cursor = 0
        decls = []

        for child in _named(root):
            if child.type == "package_clause":
                package = _get_node_text(_find_child_by_type(child, "package_identifier"))
                header_end = cursor = child.end_byte
                continue
            if package is None:
                raise GoParseError("declaration before package clause", line=child.start_point[0] + 1)

            decl = self._top_level(child)
            decl.leading = self.source[cursor:child.start_byte]
            cursor = child.end_byte
            decls.append(decl)

        if package is None:
            raise GoParseError("missing package clause")

        return Program(
            package,
            decls,
            source=self.source,
            header_end=header_end,
            trailing=self.source[cursor:],
            span=(0, len(self.source)),
        )

    def _top_level(self, node: Any):
        if node.type == "import_declaration":
            return self._import_decl(node)
        if node.type in ("function_declaration", "method_declaration"):
            return self._func_decl(node)
        if node.type in DECLARATION_TYPES:
            return self._gen_decl(node)
        raise self._unsupported(node, "top-level construct")

    def _import_decl(self, node: Any) -> ImportDecl:
        spec_nodes = []
        for child in _named(node):
            if child.type == "import_spec":
                spec_nodes.append(child)
            elif child.type == "import_spec_list":
                spec_nodes.extend(c for c in _named(child) if c.type == "import_spec")

        specs = []
        for spec in spec_nodes:
            name_node = spec.child_by_field_name("name")
            path_node = spec.child_by_field_name("path")
            specs.append(
                self._at(
                    spec,
                    ImportSpec(
                        _unquote(_get_node_text(path_node)),
                        _get_node_text(name_node) if name_node is not None else None,
                    ),
                )
            )
        return self._at(node, ImportDecl(specs))

    def _signature(self, node: Any, parts: list[Any | None]) -> Signature:
        present = [p for p in parts if p is not None]
        params = node.child_by_field_name("parameters")
        if not present:
            return Signature("", span=(node.start_byte, node.start_byte))
        start, end = present[0].start_byte, present[-1].end_byte
        qualifiers: set[str] = set()
        for part in present:
            qualifiers.update(_qualifiers(part))
        signature = Signature(
            self.source[start:end].decode("utf-8", errors="ignore"),
            tuple(sorted(qualifiers)),
            _param_names(params),
        )
        signature.span = (start, end)
        return signature

    def _func_decl(self, node: Any) -> FuncDecl:
        name = _get_node_text(node.child_by_field_name("name"))
        signature = self._signature(
            node,
            [
                node.child_by_field_name("type_parameters"),
                node.child_by_field_name("parameters"),
                node.child_by_field_name("result"),
            ],
        )

        recv = None
        receiver_list = node.child_by_field_name("receiver")
        if receiver_list is not None:
            recv = self._receiver(receiver_list)

        body_node = node.child_by_field_name("body")
        body = self._block(body_node) if body_node is not None else None
        return self._at(node, FuncDecl(name, recv, signature, body))

    def _receiver(self, receiver_list: Any) -> Receiver:
        params = [p for p in _named(receiver_list) if p.type == "parameter_declaration"]
        if not params:
            return self._at(receiver_list, Receiver(None, ""))
        param = params[0]
        names = param.children_by_field_name("name")
        type_node = param.child_by_field_name("type")
        return self._at(
            receiver_list,
            Receiver(
                _get_node_text(names[0]) if names else None,
                _get_node_text(type_node),
            ),
        )

    def _gen_decl(self, node: Any) -> GenDecl:
        tok = node.type.split("_", 1)[0]
        spec_nodes = []
        for child in _named(node):
            if child.type.endswith("_spec_list"):
                spec_nodes.extend(_named(child))
            else:
                spec_nodes.append(child)

        specs = []
        for spec in spec_nodes:
            if spec.type in ("var_spec", "const_spec"):
                specs.append(self._value_spec(spec))
            elif spec.type in ("type_spec", "type_alias"):
                specs.append(self._at(spec, TypeSpec(_get_node_text(spec), _qualifiers(spec))))
            else:
                raise self._unsupported(spec, "declaration spec")
        return self._at(node, GenDecl(tok, specs))

    def _value_spec(self, node: Any) -> ValueSpec:
        names = [_get_node_text(n) for n in node.children_by_field_name("name")]
        type_node = node.child_by_field_name("type")
        value_node = node.child_by_field_name("value")
        return self._at(
            node,
            ValueSpec(
                names,
                self._expr(type_node) if type_node is not None else None,
                self._expr_list(value_node) if value_node is not None else [],
            ),
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statements(self, nodes: list[Any]) -> list:
        stmts = []
        for child in nodes:
            if child.type == "statement_list":
                stmts.extend(self._stmt(c) for c in _named(child))
            else:
                stmts.append(self._stmt(child))
        return stmts

    def _block(self, node: Any) -> BlockStmt:
        return self._at(node, BlockStmt(self._statements(_named(node))))

    def _optional_stmt(self, node: Any | None):
        return self._stmt(node) if node is not None else None

    def _optional_expr(self, node: Any | None):
        return self._expr(node) if node is not None else None

    def _stmt(self, node: Any):
        kind = node.type

        if kind == "expression_statement":
            return self._at(node, ExprStmt(self._expr(_named(node)[0])))

        if kind == "send_statement":
            return self._at(
                node,
                SendStmt(
                    self._expr(node.child_by_field_name("channel")),
                    self._expr(node.child_by_field_name("value")),
                ),
            )

        if kind in ("inc_statement", "dec_statement"):
            op = "++" if kind == "inc_statement" else "--"
            return self._at(node, IncDecStmt(self._expr(_named(node)[0]), op))

        if kind == "assignment_statement":
            return self._at(
                node,
                AssignStmt(
                    self._expr_list(node.child_by_field_name("left")),
                    _get_node_text(node.child_by_field_name("operator")),
                    self._expr_list(node.child_by_field_name("right")),
                ),
            )

        if kind == "short_var_declaration":
            return self._at(
                node,
                AssignStmt(
                    self._expr_list(node.child_by_field_name("left")),
                    ":=",
                    self._expr_list(node.child_by_field_name("right")),
                ),
            )

        if kind == "receive_statement":
            left = node.child_by_field_name("left")
            right = self._expr(node.child_by_field_name("right"))
            if left is None:
                return self._at(node, ExprStmt(right))
            op = _token(node, ("=", ":=")) or "="
            return self._at(node, AssignStmt(self._expr_list(left), op, [right]))

        if kind == "go_statement":
            return self._at(node, GoStmt(self._expr(_named(node)[0])))

        if kind == "defer_statement":
            return self._at(node, DeferStmt(self._expr(_named(node)[0])))

        if kind == "return_statement":
            children = _named(node)
            results = self._expr_list(children[0]) if children else []
            return self._at(node, ReturnStmt(results))

        if kind in BRANCH_TOKENS:
            label = _find_child_by_type(node, "label_name")
            return self._at(
                node,
                BranchStmt(BRANCH_TOKENS[kind], _get_node_text(label) if label is not None else None),
            )

        if kind == "block":
            return self._block(node)

        if kind == "if_statement":
            return self._at(
                node,
                IfStmt(
                    self._optional_stmt(node.child_by_field_name("initializer")),
                    self._expr(node.child_by_field_name("condition")),
                    self._block(node.child_by_field_name("consequence")),
                    self._optional_stmt(node.child_by_field_name("alternative")),
                ),
            )

        if kind == "for_statement":
            return self._for(node)

        if kind == "expression_switch_statement":
            clauses = [self._case(c) for c in _named(node) if c.type in ("expression_case", "default_case")]
            return self._at(
                node,
                SwitchStmt(
                    self._optional_stmt(node.child_by_field_name("initializer")),
                    self._optional_expr(node.child_by_field_name("value")),
                    clauses,
                ),
            )

        if kind == "type_switch_statement":
            alias = node.child_by_field_name("alias")
            clauses = [self._case(c) for c in _named(node) if c.type in ("type_case", "default_case")]
            return self._at(
                node,
                TypeSwitchStmt(
                    self._optional_stmt(node.child_by_field_name("initializer")),
                    self._expr_list(alias) if alias is not None else [],
                    self._expr(node.child_by_field_name("value")),
                    clauses,
                ),
            )

        if kind == "select_statement":
            clauses = [
                self._comm(c) for c in _named(node) if c.type in ("communication_case", "default_case")
            ]
            return self._at(node, SelectStmt(clauses))

        if kind in ("labeled_statement", "empty_labeled_statement"):
            label = node.child_by_field_name("label")
            rest = [c for c in _named(node) if not _same(c, label)]
            return self._at(
                node,
                LabeledStmt(_get_node_text(label), self._stmt(rest[0]) if rest else None),
            )

        if kind in DECLARATION_TYPES:
            return self._at(node, DeclStmt(self._gen_decl(node)))

        if kind == "empty_statement":
            return self._at(node, EmptyStmt())

        raise self._unsupported(node, "statement")

    def _for(self, node: Any):
        body_node = node.child_by_field_name("body")
        body = self._block(body_node)
        header = [c for c in _named(node) if not _same(c, body_node)]

        if not header:
            return self._at(node, ForStmt(None, None, None, body))

        clause = header[0]
        if clause.type == "for_clause":
            return self._at(
                node,
                ForStmt(
                    self._optional_stmt(clause.child_by_field_name("initializer")),
                    self._optional_expr(clause.child_by_field_name("condition")),
                    self._optional_stmt(clause.child_by_field_name("update")),
                    body,
                ),
            )

        if clause.type == "range_clause":
            left = clause.child_by_field_name("left")
            targets = self._expr_list(left) if left is not None else []
            return self._at(
                node,
                RangeStmt(
                    targets[0] if targets else None,
                    targets[1] if len(targets) > 1 else None,
                    _token(clause, ("=", ":=")),
                    self._expr(clause.child_by_field_name("right")),
                    body,
                ),
            )

        return self._at(node, ForStmt(None, self._expr(clause), None, body))

    def _case(self, node: Any) -> CaseClause:
        if node.type == "default_case":
            return self._at(node, CaseClause(None, self._statements(_named(node))))

        if node.type == "type_case":
            heads = node.children_by_field_name("type")
            exprs = [self._expr(t) for t in heads]
        else:
            value = node.child_by_field_name("value")
            heads = [value]
            exprs = self._expr_list(value)

        body = [c for c in _named(node) if not any(_same(c, h) for h in heads)]
        return self._at(node, CaseClause(exprs, self._statements(body)))

    def _comm(self, node: Any) -> CommClause:
        if node.type == "default_case":
            return self._at(node, CommClause(None, self._statements(_named(node))))
        comm = node.child_by_field_name("communication")
        body = [c for c in _named(node) if not _same(c, comm)]
        return self._at(node, CommClause(self._stmt(comm), self._statements(body)))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expr_list(self, node: Any) -> list:
        if node.type == "expression_list":
            return [self._expr(c) for c in _named(node)]
        return [self._expr(node)]

    def _element(self, node: Any):
        """Composite literal element: plain, keyed, or nested literal value."""
        if node.type in ("literal_element", "element"):
            return self._element(_named(node)[0])
        if node.type == "keyed_element":
            parts = _named(node)
            return self._at(node, KeyValueExpr(self._element(parts[0]), self._element(parts[-1])))
        if node.type == "literal_value":
            return self._at(node, CompositeLit(None, [self._element(c) for c in _named(node)]))
        return self._expr(node)

    def _expr(self, node: Any):
        kind = node.type

        if kind in IDENTIFIER_TYPES:
            return self._at(node, Ident(_get_node_text(node)))

        if kind in LITERAL_KINDS:
            return self._at(node, BasicLit(LITERAL_KINDS[kind], _get_node_text(node)))

        if kind == "call_expression":
            return self._call(node)

        if kind == "selector_expression":
            return self._at(
                node,
                SelectorExpr(
                    self._expr(node.child_by_field_name("operand")),
                    _get_node_text(node.child_by_field_name("field")),
                ),
            )

        if kind == "qualified_type":
            return self._at(
                node,
                SelectorExpr(
                    self._expr(node.child_by_field_name("package")),
                    _get_node_text(node.child_by_field_name("name")),
                ),
            )

        if kind == "index_expression":
            indices = node.children_by_field_name("index")
            return self._at(
                node,
                IndexExpr(
                    self._expr(node.child_by_field_name("operand")),
                    [self._expr(i) for i in indices],
                ),
            )

        if kind in ("generic_type", "type_instantiation_expression"):
            base = node.child_by_field_name("type")
            args = node.child_by_field_name("type_arguments")
            if args is not None:
                indices = [self._expr(a) for a in _named(args)]
            else:
                indices = [self._expr(a) for a in _named(node) if not _same(a, base)]
            return self._at(node, IndexExpr(self._expr(base), indices))

        if kind == "slice_expression":
            return self._at(
                node,
                SliceExpr(
                    self._expr(node.child_by_field_name("operand")),
                    self._optional_expr(node.child_by_field_name("start")),
                    self._optional_expr(node.child_by_field_name("end")),
                    self._optional_expr(node.child_by_field_name("capacity")),
                ),
            )

        if kind == "type_assertion_expression":
            return self._at(
                node,
                TypeAssertExpr(
                    self._expr(node.child_by_field_name("operand")),
                    self._expr(node.child_by_field_name("type")),
                ),
            )

        if kind == "type_conversion_expression":
            return self._at(
                node,
                CallExpr(
                    self._expr(node.child_by_field_name("type")),
                    [self._expr(node.child_by_field_name("operand"))],
                ),
            )

        if kind == "composite_literal":
            type_node = node.child_by_field_name("type")
            body = node.child_by_field_name("body")
            return self._at(
                node,
                CompositeLit(
                    self._optional_expr(type_node),
                    [self._element(c) for c in _named(body)],
                ),
            )

        if kind in ("literal_value", "literal_element", "keyed_element"):
            return self._element(node)

        if kind == "unary_expression":
            return self._at(
                node,
                UnaryExpr(
                    _get_node_text(node.child_by_field_name("operator")),
                    self._expr(node.child_by_field_name("operand")),
                ),
            )

        if kind == "binary_expression":
            return self._at(
                node,
                BinaryExpr(
                    self._expr(node.child_by_field_name("left")),
                    _get_node_text(node.child_by_field_name("operator")),
                    self._expr(node.child_by_field_name("right")),
                ),
            )

        if kind == "func_literal":
            signature = self._signature(
                node,
                [node.child_by_field_name("parameters"), node.child_by_field_name("result")],
            )
            return self._at(
                node, FuncLit(signature, self._block(node.child_by_field_name("body")))
            )

        if kind in ("parenthesized_expression", "parenthesized_type"):
            return self._at(node, ParenExpr(self._expr(_named(node)[0])))

        if kind == "type_elem":
            parts = _named(node)
            if len(parts) != 1:
                raise self._unsupported(node, "type constraint")
            return self._expr(parts[0])

        if kind == "pointer_type":
            return self._at(node, StarExpr(self._expr(_named(node)[0])))

        if kind == "array_type":
            return self._at(
                node,
                ArrayType(
                    self._expr(node.child_by_field_name("length")),
                    self._expr(node.child_by_field_name("element")),
                ),
            )

        if kind == "implicit_length_array_type":
            dots = _find_child_by_type(node, "...")
            length = self._at(dots, EllipsisExpr()) if dots is not None else None
            return self._at(
                node, ArrayType(length, self._expr(node.child_by_field_name("element")))
            )

        if kind == "slice_type":
            return self._at(node, ArrayType(None, self._expr(node.child_by_field_name("element"))))

        if kind == "map_type":
            return self._at(
                node,
                MapType(
                    self._expr(node.child_by_field_name("key")),
                    self._expr(node.child_by_field_name("value")),
                ),
            )

        if kind == "channel_type":
            value = node.child_by_field_name("value")
            direction = self.source[node.start_byte:value.start_byte].decode("utf-8", errors="ignore")
            return self._at(node, ChanType("".join(direction.split()), self._expr(value)))

        if kind == "struct_type":
            return self._at(node, StructType(_get_node_text(node), _qualifiers(node)))

        if kind == "interface_type":
            return self._at(node, InterfaceType(_get_node_text(node), _qualifiers(node)))

        if kind == "function_type":
            return self._at(node, FuncType(_get_node_text(node), _qualifiers(node)))

        raise self._unsupported(node, "expression")

    def _call(self, node: Any) -> CallExpr:
        func = self._expr(node.child_by_field_name("function"))
        type_args = node.child_by_field_name("type_arguments")
        if type_args is not None:
            func = IndexExpr(func, [self._expr(a) for a in _named(type_args)])
            func.span = (node.child_by_field_name("function").start_byte, type_args.end_byte)

        args_node = node.child_by_field_name("arguments")
        args = []
        ellipsis = _token(args_node, ("...",)) is not None
        for arg in _named(args_node):
            if arg.type == "variadic_argument":
                ellipsis = True
                arg = _named(arg)[0]
            args.append(self._expr(arg))
        return self._at(node, CallExpr(func, args, ellipsis))
