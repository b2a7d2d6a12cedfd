"""Chain builder tests: field translation, wrapping and error policy."""

import pytest

from logshift.chain import ChainBuilder, error_message_operand, field_kind
from logshift.errors import DiagnosticLog, ShapeViolation
from logshift.matcher import TraversalContext, match_log_call
from logshift.printer import render_node
from logshift.settings import RewriteSettings
from logshift.tree import CallExpr, Ident, SelectorExpr, dotted, go_string, method_call


def zap(kind: str, *args, namespace: str = "zap"):
    return CallExpr(SelectorExpr(Ident(namespace), kind), list(args))


def build(settings, message, *fields, accessor="utils.Logger", level="Info", receiver=None, **kwargs):
    """Build the replacement for ``accessor.level(message, fields...)``; returns (text, builder)."""
    call = CallExpr(SelectorExpr(dotted(accessor), level), [message, *fields])
    context = TraversalContext(receiver)
    log_call = match_log_call(call, settings, context)
    assert log_call is not None
    builder = ChainBuilder(settings, DiagnosticLog(), **kwargs)
    return render_node(builder.build(log_call, context)), builder


class TestFieldTranslation:
    def test_fields_in_order(self, settings):
        text, builder = build(
            settings,
            go_string("handled"),
            zap("String", go_string("id"), Ident("id")),
            zap("Int", go_string("n"), Ident("n")),
            zap("Bool", go_string("ok"), Ident("true")),
        )

        assert text == 'logger.Info().Str("id", id).Int("n", n).Bool("ok", true).Msg("handled")'
        assert builder.used_wrap is False

    @pytest.mark.parametrize(
        "kind,method",
        [
            ("Int64", "Int64"),
            ("Uint", "Uint"),
            ("Uint64", "Uint64"),
            ("Float64", "Float64"),
            ("Duration", "Dur"),
            ("Time", "Time"),
            ("Any", "Interface"),
        ],
    )
    def test_translation_table(self, settings, kind, method):
        text, _ = build(settings, go_string("m"), zap(kind, go_string("k"), Ident("v")))

        assert text == f'logger.Info().{method}("k", v).Msg("m")'

    def test_level_is_kept(self, settings):
        text, _ = build(settings, go_string("boom"), level="Fatal")

        assert text == 'logger.Fatal().Msg("boom")'

    def test_message_expression_passes_through(self, settings):
        text, _ = build(settings, CallExpr(dotted("fmt.Sprintf"), [go_string("%d"), Ident("n")]))

        assert text == 'logger.Info().Msg(fmt.Sprintf("%d", n))'

    def test_extra_mapping_from_settings(self):
        settings = RewriteSettings(field_methods={"String": "Str", "Stringer": "Stringer"})

        text, _ = build(settings, go_string("m"), zap("Stringer", go_string("k"), Ident("s")))

        assert text == 'logger.Info().Stringer("k", s).Msg("m")'

    def test_aliased_namespace(self, settings):
        text, _ = build(
            settings,
            go_string("m"),
            zap("String", go_string("k"), Ident("v"), namespace="uzap"),
            namespace="uzap",
        )

        assert text == 'logger.Info().Str("k", v).Msg("m")'


class TestErrors:
    def test_error_field_is_wrapped(self, settings):
        text, builder = build(settings, go_string("failed"), zap("Error", Ident("err")))

        assert text == 'logger.Info().Err(errors.Wrap(err, "from error")).Msg("failed")'
        assert builder.used_wrap is True

    def test_error_message_becomes_err_field(self, settings):
        message = CallExpr(SelectorExpr(Ident("err"), "Error"), [])

        text, builder = build(
            settings, message, zap("String", go_string("id"), Ident("id")), level="Error"
        )

        assert text == 'logger.Error().Str("id", id).Err(errors.Wrap(err, "from error")).Msg("")'
        assert builder.used_wrap is True

    def test_error_message_operand(self):
        err = Ident("err")

        assert error_message_operand(CallExpr(SelectorExpr(err, "Error"), [])) is err
        assert error_message_operand(CallExpr(SelectorExpr(err, "Error"), [Ident("x")])) is None
        assert error_message_operand(go_string("x")) is None

    def test_wrapping_disabled(self):
        settings = RewriteSettings(wrap_errors=False)

        text, builder = build(settings, go_string("m"), zap("Error", Ident("err")))

        assert text == 'logger.Info().Err(err).Msg("m")'
        assert builder.used_wrap is False

    def test_wrap_qualifier_override(self, settings):
        text, _ = build(settings, go_string("m"), zap("Error", Ident("err")), wrap_qualifier="pkgerrors")

        assert text == 'logger.Info().Err(pkgerrors.Wrap(err, "from error")).Msg("m")'


class TestPolicy:
    def test_unknown_kind_is_skipped(self, settings):
        text, builder = build(
            settings,
            go_string("m"),
            zap("Stringer", go_string("s"), Ident("s")),
            zap("String", go_string("k"), Ident("v")),
        )

        assert text == 'logger.Info().Str("k", v).Msg("m")'
        assert len(builder.diagnostics) == 1
        assert "zap.Stringer" in builder.diagnostics.entries[0].message

    def test_unknown_kind_is_not_fatal_when_strict(self, strict_settings):
        text, builder = build(strict_settings, go_string("m"), zap("Namespace", go_string("ns")))

        assert text == 'logger.Info().Msg("m")'
        assert len(builder.diagnostics) == 1

    def test_non_call_field_skipped_best_effort(self, settings):
        text, builder = build(settings, go_string("m"), Ident("field"), zap("Int", go_string("n"), Ident("n")))

        assert text == 'logger.Info().Int("n", n).Msg("m")'
        assert "not a zap.X(...) call" in builder.diagnostics.entries[0].message

    def test_non_call_field_fatal_when_strict(self, strict_settings):
        with pytest.raises(ShapeViolation):
            build(strict_settings, go_string("m"), Ident("field"))

    def test_foreign_namespace_is_a_violation(self, strict_settings):
        with pytest.raises(ShapeViolation):
            build(strict_settings, go_string("m"), zap("String", go_string("k"), Ident("v"), namespace="other"))

    def test_error_field_arity(self, settings, strict_settings):
        text, builder = build(settings, go_string("m"), zap("Error", Ident("a"), Ident("b")))

        assert text == 'logger.Info().Msg("m")'
        assert len(builder.diagnostics) == 1
        with pytest.raises(ShapeViolation):
            build(strict_settings, go_string("m"), zap("Error"))

    def test_field_kind(self):
        assert field_kind(zap("String", go_string("k")), "zap") == "String"
        assert field_kind(zap("String"), "uzap") is None
        assert field_kind(Ident("f"), "zap") is None


class TestReceiverEntry:
    def test_receiver_chain(self, receiver_settings):
        text, _ = build(
            receiver_settings,
            go_string("run"),
            zap("String", go_string("id"), Ident("id")),
            accessor="s.logger",
            receiver="s",
        )

        assert text == 's.logger.Info().Str("id", id).Msg("run")'

    def test_singleton_call_moves_onto_receiver(self, receiver_settings):
        text, _ = build(receiver_settings, go_string("m"), receiver="s")

        assert text == 's.logger.Info().Msg("m")'

    def test_shadowed_receiver_uses_target_accessor(self, receiver_settings):
        text, _ = build(receiver_settings, go_string("m"), receiver=None)

        assert text == 'logger.Info().Msg("m")'

    def test_singleton_scope_ignores_receiver(self, settings):
        text, _ = build(settings, go_string("m"), receiver="s")

        assert text == 'logger.Info().Msg("m")'

    def test_custom_target_accessor(self):
        settings = RewriteSettings(target_accessor="log.Logger")

        text, _ = build(settings, go_string("m"))

        assert text == 'log.Logger.Info().Msg("m")'

    def test_chain_helper(self):
        assert render_node(method_call(Ident("x"), "Done")) == "x.Done()"
