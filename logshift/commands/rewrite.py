"""Rewrite zap logging calls into zerolog chains.

Usage: logshift rewrite ./service --inplace
"""

import sys

import click
from rich.markup import escape

from logshift.config_runtime import load_runtime_config, settings_from_config
from logshift.driver import OutputMode, process_paths
from logshift.engine import Engine
from logshift.ui import console, print_header, print_success, print_warning, report_table
from logshift.utils.error_handler import handle_exceptions
from logshift.utils.exit_codes import ExitCodes
from logshift.utils.logging import logger

STATUS_STYLES = {"rewritten": "success", "unchanged": "dim", "failed": "error"}


def _mode(inplace: bool, show_diff: bool, dry_run: bool) -> OutputMode:
    if dry_run:
        return OutputMode.DRY_RUN
    if show_diff:
        return OutputMode.DIFF
    if inplace:
        return OutputMode.INPLACE
    return OutputMode.PRINT


@click.command("rewrite")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--inplace", "-w", is_flag=True, help="Write rewritten files back to disk")
@click.option("--diff", "show_diff", is_flag=True, help="Print a unified diff instead of the source")
@click.option("--dry-run", is_flag=True, help="Report what would change, print nothing")
@click.option("--strict", is_flag=True, help="Abort a file on any malformed field argument")
@click.option(
    "--scope",
    type=click.Choice(["singleton", "receiver"]),
    help="Rewrite utils.Logger calls, or also <recv>.logger calls inside methods",
)
@click.option("--gofmt", is_flag=True, help="Format rewritten files with gofmt")
@click.option("--skip", multiple=True, help="Extra directory names to skip")
@click.option("--exclude", multiple=True, help="Glob patterns of files to leave alone")
@click.option("--config", "config_path", type=click.Path(), help="Config file (default: ./logshift.json)")
@click.option("--show-unchanged", is_flag=True, help="List unchanged files in the summary")
@handle_exceptions
def rewrite(
    paths, inplace, show_diff, dry_run, strict, scope, gofmt, skip, exclude, config_path, show_unchanged
):
    """Rewrite zap-style logging calls into zerolog fluent chains.

    Every call of the form utils.Logger.<Level>(msg, zap.<Kind>(...), ...)
    becomes logger.<Level>().<Method>(...).Msg(msg). Messages built from
    err.Error() become .Err(errors.Wrap(err, "from error")).Msg(""). Imports
    are reconciled afterwards: zerolog (and pkg/errors when needed) is added,
    and go.uber.org/zap is dropped once nothing references it.

    Without --inplace the rewritten source is printed on stdout, like gofmt.
    The summary goes to stderr.

    MODES:
      (default)   print rewritten files to stdout
      --inplace   write files back
      --diff      print unified diffs
      --dry-run   only report

    ERROR POLICY:
      best-effort (default): malformed fields are skipped with a warning
      --strict:              a malformed field aborts the whole file

      Unknown field kinds (e.g. zap.Stringer) are always skipped with a
      warning, never fatal.

    EXIT CODES:
      0  success
      1  at least one file failed (parse error, strict abort, write error)
      3  no Go files found

    EXAMPLES:
      logshift rewrite --diff ./internal
      logshift rewrite --inplace --gofmt ./...
      logshift rewrite --inplace --scope receiver ./service/handler.go
    """
    config = load_runtime_config(".", config_path)
    settings = settings_from_config(config, policy="strict" if strict else None, scope=scope)
    engine = Engine(settings)

    driver_cfg = config["driver"]
    mode = _mode(inplace, show_diff, dry_run)
    logger.debug("rewrite: mode={mode} policy={policy} scope={scope}", mode=mode.value,
                 policy=settings.policy.value, scope=settings.scope.value)

    reports = process_paths(
        [p.rstrip("/").removesuffix("/...") or "." for p in paths],
        engine,
        mode=mode,
        skip_dirs=set(driver_cfg["skip_dirs"]) | set(skip),
        exclude=list(driver_cfg["exclude"]) + list(exclude),
        gofmt=gofmt or driver_cfg["gofmt"],
        gofmt_timeout=driver_cfg["gofmt_timeout"],
    )

    if not reports:
        print_warning("No Go files found")
        sys.exit(ExitCodes.NOTHING_TO_DO)

    for report in reports:
        if not report.changed:
            continue
        if mode is OutputMode.PRINT:
            click.echo(report.output, nl=False)
        elif mode is OutputMode.DIFF:
            click.echo(report.diff, nl=False)

    print_header("REWRITE SUMMARY")
    table = report_table(
        "Files",
        [("File", "path"), ("Status", ""), ("Calls", "bold"), ("Warnings", "warning")],
    )
    for report in reports:
        if report.status == "unchanged" and not show_unchanged and not report.diagnostics:
            continue
        style = STATUS_STYLES[report.status]
        table.add_row(
            report.path,
            f"[{style}]{report.status}[/{style}]",
            str(report.rewrites),
            str(len(report.diagnostics)) if report.diagnostics else "",
        )
    if table.row_count:
        console.print(table)

    for report in reports:
        for diagnostic in report.diagnostics:
            console.print(f"  [path]{escape(report.path)}[/path] {escape(str(diagnostic))}", highlight=False)
        if report.failed:
            console.print(f"  [path]{escape(report.path)}[/path] [error]{escape(report.error)}[/error]", highlight=False)

    rewritten = sum(1 for r in reports if r.changed)
    failed = sum(1 for r in reports if r.failed)
    calls = sum(r.rewrites for r in reports if r.changed)
    verb = "would be rewritten" if mode in (OutputMode.DRY_RUN, OutputMode.PRINT, OutputMode.DIFF) else "rewritten"
    console.print(
        f"\n{len(reports)} file(s) scanned, {rewritten} {verb} ({calls} call(s)), {failed} failed"
    )

    if failed:
        sys.exit(ExitCodes.FILES_FAILED)
    if mode is OutputMode.DRY_RUN:
        console.print("[info]Dry run - no files were modified[/info]")
    elif rewritten:
        print_success("done")
