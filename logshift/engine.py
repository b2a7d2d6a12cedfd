"""Per-file entry point: rewrite every function, then reconcile imports."""

from __future__ import annotations

from dataclasses import dataclass, field

from logshift.chain import ChainBuilder, error_message_operand, field_kind
from logshift.errors import DiagnosticLog
from logshift.imports import (
    UNBOUND_NAMES,
    ImportSet,
    reconcile_imports,
    resolve_wrap_qualifier,
)
from logshift.matcher import TraversalContext, match_log_call
from logshift.rewriter import Rewriter, collect_receivers
from logshift.settings import RewriteSettings, Scope
from logshift.tree import CallExpr, FuncDecl, FuncLit, Node, Program, iter_children
from logshift.utils.logging import logger


@dataclass
class FileResult:
    program: Program
    changed: bool
    rewrites: int = 0
    imports_changed: bool = False
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)


@dataclass
class CallSite:
    """One matching call found by ``Engine.scan``."""

    line: int | None
    function: str
    level: str
    kinds: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)
    malformed: int = 0
    error_message: bool = False


class Engine:
    """Rewrites Program trees according to one set of ``RewriteSettings``.

    An engine holds no per-file state, so one instance can process any number
    of files.
    """

    def __init__(self, settings: RewriteSettings | None = None):
        self.settings = settings or RewriteSettings()

    def namespace_for(self, imports: ImportSet) -> str:
        """Identifier the source field constructors are reached through."""
        spec = imports.get(self.settings.source_import)
        if spec is not None and spec.name and spec.name not in UNBOUND_NAMES:
            return spec.name
        return self.settings.source_namespace

    def process_file(self, program: Program, path: str | None = None) -> FileResult:
        """Rewrite ``program`` in place.

        Raises:
            ShapeViolation: strict policy and a malformed field. The tree may be
                partially rewritten and must be discarded.
        """
        settings = self.settings
        diagnostics = DiagnosticLog(program.source, path)
        imports = ImportSet(program)
        namespace = self.namespace_for(imports)
        wrap_qualifier = resolve_wrap_qualifier(imports, settings)

        builder = ChainBuilder(settings, diagnostics, namespace, wrap_qualifier)
        rewriter = Rewriter(settings, builder, collect_receivers(program))

        rewrote = False
        for decl in program.decls:
            if isinstance(decl, FuncDecl):
                rewrote |= rewriter.rewrite_function(decl)

        imports_changed = reconcile_imports(
            program,
            settings,
            rewrote=rewrote,
            used_wrap=builder.used_wrap,
            namespace=namespace,
            wrap_qualifier=wrap_qualifier,
        )

        if rewrote or imports_changed:
            logger.debug(
                "{path}: {n} call(s) rewritten, imports changed: {imports}",
                path=path or "<source>",
                n=rewriter.rewrites,
                imports=imports_changed,
            )

        return FileResult(
            program,
            changed=rewrote or imports_changed,
            rewrites=rewriter.rewrites,
            imports_changed=imports_changed,
            diagnostics=diagnostics,
        )

    def scan(self, program: Program) -> list[CallSite]:
        """List the calls ``process_file`` would rewrite, without changing anything."""
        diagnostics = DiagnosticLog(program.source)
        namespace = self.namespace_for(ImportSet(program))
        receivers = collect_receivers(program)
        sites: list[CallSite] = []

        for decl in program.decls:
            if not isinstance(decl, FuncDecl) or decl.body is None:
                continue
            receiver = receivers.get(id(decl.body))
            if self.settings.scope is Scope.RECEIVER and receiver is None:
                continue
            self._scan(decl.body, TraversalContext(receiver), decl.name, namespace, diagnostics, sites)
        return sites

    def _scan(
        self,
        node: Node,
        ctx: TraversalContext,
        function: str,
        namespace: str,
        diagnostics: DiagnosticLog,
        sites: list[CallSite],
    ) -> None:
        if isinstance(node, FuncLit):
            ctx = ctx.enter_closure(node.signature)
        elif isinstance(node, CallExpr):
            log_call = match_log_call(node, self.settings, ctx)
            if log_call is not None:
                site = CallSite(
                    diagnostics.line_of(node),
                    function,
                    log_call.level,
                    error_message=error_message_operand(log_call.message) is not None,
                )
                for index, arg in enumerate(log_call.fields):
                    kind = field_kind(arg, namespace)
                    spread = log_call.spread and index == len(log_call.fields) - 1
                    if kind is None or spread:
                        site.malformed += 1
                    elif kind in self.settings.field_methods:
                        site.kinds.append(kind)
                    else:
                        site.unknown.append(kind)
                sites.append(site)

        for child in iter_children(node):
            self._scan(child, ctx, function, namespace, diagnostics, sites)
