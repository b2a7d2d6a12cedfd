"""Read-only report of the logging calls a rewrite would touch.

Usage: logshift scan ./service
"""

import json
import sys

import click
from rich.markup import escape

from logshift.config_runtime import load_runtime_config, settings_from_config
from logshift.driver import discover_files, read_file_with_fallback
from logshift.engine import Engine
from logshift.errors import GoParseError
from logshift.parser import parse_source
from logshift.ui import console, print_error, print_header, print_warning, report_table
from logshift.utils.error_handler import handle_exceptions
from logshift.utils.exit_codes import ExitCodes


@click.command("scan")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option(
    "--scope",
    type=click.Choice(["singleton", "receiver"]),
    help="Match utils.Logger calls, or also <recv>.logger calls inside methods",
)
@click.option("--skip", multiple=True, help="Extra directory names to skip")
@click.option("--exclude", multiple=True, help="Glob patterns of files to leave alone")
@click.option("--config", "config_path", type=click.Path(), help="Config file (default: ./logshift.json)")
@click.option("--json", "as_json", is_flag=True, help="Print call sites as JSON on stdout")
@handle_exceptions
def scan(paths, scope, skip, exclude, config_path, as_json):
    """List zap logging calls and how their fields would translate.

    Nothing is modified. Each matching call is listed with its level and
    field kinds. Field kinds missing from the translation table are flagged
    as unknown, and arguments that are not zap.<Kind>(...) calls are counted
    as malformed: both would be skipped by a best-effort rewrite.

    EXAMPLES:
      logshift scan ./internal
      logshift scan --json ./internal | jq '.[] | select(.unknown != [])'
    """
    config = load_runtime_config(".", config_path)
    settings = settings_from_config(config, scope=scope)
    engine = Engine(settings)
    driver_cfg = config["driver"]

    files = discover_files(
        paths,
        skip_dirs=set(driver_cfg["skip_dirs"]) | set(skip),
        exclude=list(driver_cfg["exclude"]) + list(exclude),
    )
    if not files:
        print_warning("No Go files found")
        sys.exit(ExitCodes.NOTHING_TO_DO)

    rows = []
    failed = 0
    for path in files:
        try:
            source, _ = read_file_with_fallback(path)
            program = parse_source(source.encode("utf-8"), str(path))
        except (OSError, UnicodeDecodeError, GoParseError) as e:
            print_error(f"{escape(path.as_posix())}: {escape(str(e))}")
            failed += 1
            continue
        for site in engine.scan(program):
            rows.append({"file": path.as_posix(), **site.__dict__})

    if as_json:
        click.echo(json.dumps(rows, indent=2))
    else:
        print_header("LOGGING CALLS")
        table = report_table(
            "Call sites",
            [
                ("Location", "path"),
                ("Function", ""),
                ("Level", "bold"),
                ("Fields", ""),
                ("Unknown", "warning"),
                ("Malformed", "error"),
            ],
        )
        for row in rows:
            table.add_row(
                f"{row['file']}:{row['line']}",
                escape(row["function"]),
                row["level"],
                escape(", ".join(row["kinds"]) + (" +err-msg" if row["error_message"] else "")),
                escape(", ".join(row["unknown"])),
                str(row["malformed"]) if row["malformed"] else "",
            )
        console.print(table)

    unknown = sum(len(r["unknown"]) for r in rows)
    malformed = sum(r["malformed"] for r in rows)
    console.print(
        f"\n{len(files)} file(s), {len(rows)} call(s), "
        f"{unknown} unknown field(s), {malformed} malformed field(s), {failed} unreadable file(s)"
    )

    if failed:
        sys.exit(ExitCodes.FILES_FAILED)
