"""Build the zerolog fluent chain that replaces a matched zap call."""

from __future__ import annotations

from logshift.errors import DiagnosticLog, ShapeViolation
from logshift.matcher import LogCall, TraversalContext
from logshift.settings import RewriteSettings, Scope
from logshift.tree import (
    CallExpr,
    Expr,
    Ident,
    SelectorExpr,
    dotted,
    go_string,
    method_call,
)


def error_message_operand(message: Expr) -> Expr | None:
    """Return ``x`` when the message is ``x.Error()``, else None."""
    if (
        isinstance(message, CallExpr)
        and not message.args
        and isinstance(message.func, SelectorExpr)
        and message.func.sel == "Error"
    ):
        return message.func.x
    return None


def field_kind(field: Expr, namespace: str) -> str | None:
    """Return ``Kind`` when ``field`` is ``namespace.Kind(args)``, else None."""
    if (
        isinstance(field, CallExpr)
        and not field.ellipsis
        and isinstance(field.func, SelectorExpr)
        and isinstance(field.func.x, Ident)
        and field.func.x.name == namespace
    ):
        return field.func.sel
    return None


class ChainBuilder:
    """Translates one file's matched calls into replacement chains.

    ``namespace`` is the identifier the source field constructors are called
    through (``zap`` unless the import is aliased) and ``wrap_qualifier`` the
    identifier the wrap helper is called through.
    """

    def __init__(
        self,
        settings: RewriteSettings,
        diagnostics: DiagnosticLog,
        namespace: str | None = None,
        wrap_qualifier: str | None = None,
    ):
        self.settings = settings
        self.diagnostics = diagnostics
        self.namespace = namespace or settings.source_namespace
        self.wrap_qualifier = wrap_qualifier or settings.wrap_qualifier
        self.used_wrap = False

    def entry(self, context: TraversalContext) -> Expr:
        """The target logger expression the chain starts from.

        Inside a method in receiver scope every matched call, whichever
        accessor it was written with, moves onto the receiver's logger field.
        """
        if self.settings.scope is Scope.RECEIVER and context.receiver is not None:
            return SelectorExpr(Ident(context.receiver), self.settings.receiver_field)
        return dotted(self.settings.target_accessor)

    def build(self, log_call: LogCall, context: TraversalContext) -> Expr:
        """Return the replacement expression for ``log_call``.

        Raises:
            ShapeViolation: a field is malformed and the policy is strict.
        """
        settings = self.settings
        chain = method_call(self.entry(context), log_call.level)

        message = log_call.message
        error_operand = error_message_operand(message)
        if error_operand is not None:
            message = go_string("")

        last = len(log_call.fields) - 1
        for index, field in enumerate(log_call.fields):
            translated = self._translate_field(field, log_call.spread and index == last)
            if translated is None:
                continue
            method, args = translated
            chain = method_call(chain, method, args)

        if error_operand is not None:
            chain = method_call(chain, settings.error_method, [self.wrap(error_operand)])

        return method_call(chain, settings.message_method, [message])

    def warn_dropped_comments(self, call: CallExpr, log_call: LogCall) -> None:
        """Warn when ``call`` has comments outside the arguments that survive the rewrite."""
        source = self.diagnostics.source
        if call.span is None or not source:
            return

        kept = [log_call.message.span]
        for field in log_call.fields:
            if isinstance(field, CallExpr):
                kept.extend(arg.span for arg in field.args)
            else:
                kept.append(field.span)
        if None in kept:
            return

        gaps = []
        pos, end = call.span
        for start, stop in sorted(kept):
            gaps.append(source[pos:start])
            pos = max(pos, stop)
        gaps.append(source[pos:end])
        if any(b"//" in gap or b"/*" in gap for gap in gaps):
            self.diagnostics.warn(call, "comments inside the logging call were dropped")

    def wrap(self, value: Expr) -> Expr:
        """Wrap an error value in the error-context helper."""
        if not self.settings.wrap_errors:
            return value
        self.used_wrap = True
        return CallExpr(
            SelectorExpr(Ident(self.wrap_qualifier), self.settings.wrap_function),
            [value, go_string(self.settings.wrap_message)],
        )

    def _violation(self, node: Expr, message: str) -> None:
        if self.settings.strict:
            raise ShapeViolation(message, line=self.diagnostics.line_of(node))
        self.diagnostics.warn(node, f"{message}, field skipped")

    def _translate_field(self, field: Expr, spread: bool) -> tuple[str, list[Expr]] | None:
        if spread:
            self._violation(field, "spread field argument")
            return None

        kind = field_kind(field, self.namespace)
        if kind is None:
            self._violation(field, f"field argument is not a {self.namespace}.X(...) call")
            return None

        method = self.settings.field_methods.get(kind)
        if method is None:
            # unknown kinds never abort, under either policy
            self.diagnostics.warn(field, f"unknown field kind {self.namespace}.{kind}, field skipped")
            return None

        args = list(field.args)
        if method == self.settings.error_method:
            if len(args) != 1:
                self._violation(field, f"{self.namespace}.{kind} expects one argument, got {len(args)}")
                return None
            args = [self.wrap(args[0])]
        return method, args
