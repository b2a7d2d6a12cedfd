"""Recognize calls of the source logging idiom.

Matching is purely syntactic: ``utils.Logger.Info(msg, fields...)`` matches
because of how the callee is spelled, never because of what it resolves to.
Anything that does not match exactly is left alone, since a rewrite cannot be
undone.
"""

from __future__ import annotations

from dataclasses import dataclass

from logshift.settings import RewriteSettings, Scope
from logshift.tree import CallExpr, Expr, Ident, SelectorExpr, Signature, qualified_name


@dataclass
class LogCall:
    """A matched logging call, split into its parts.

    ``spread`` is set when the last field was passed as ``fields...``.
    """

    level: str
    accessor: Expr
    message: Expr
    fields: list[Expr]
    spread: bool = False


@dataclass(frozen=True)
class TraversalContext:
    """State threaded down the traversal of one function body.

    ``receiver`` is the name bound to the method receiver, or None outside
    methods and inside closures that shadow it.
    """

    receiver: str | None = None

    def enter_closure(self, signature: Signature) -> TraversalContext:
        if self.receiver is not None and self.receiver in signature.params:
            return TraversalContext(receiver=None)
        return self


def is_logger_accessor(
    base: Expr, settings: RewriteSettings, context: TraversalContext
) -> bool:
    """Whether ``base`` spells the logger the source idiom logs through."""
    if qualified_name(base) == settings.source_accessor:
        return True
    if settings.scope is not Scope.RECEIVER or context.receiver is None:
        return False
    return (
        isinstance(base, SelectorExpr)
        and base.sel == settings.receiver_field
        and isinstance(base.x, Ident)
        and base.x.name == context.receiver
    )


def match_log_call(
    call: CallExpr, settings: RewriteSettings, context: TraversalContext
) -> LogCall | None:
    """Return the parts of ``call`` if it is a source-idiom logging call."""
    callee = call.func
    if not isinstance(callee, SelectorExpr) or callee.sel not in settings.levels:
        return None
    # zerolog entry points take no arguments; this keeps a second run a no-op
    if not call.args or (call.ellipsis and len(call.args) == 1):
        return None
    if not is_logger_accessor(callee.x, settings, context):
        return None
    return LogCall(callee.sel, callee.x, call.args[0], list(call.args[1:]), call.ellipsis)
