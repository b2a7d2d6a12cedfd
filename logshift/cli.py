"""logshift CLI - main entry point and command registration hub."""
# ruff: noqa: E402 - commands are imported after the cli group definition

import click

from logshift import __version__
from logshift.utils.logging import set_console_level


@click.group()
@click.version_option(version=__version__, prog_name="logshift")
@click.help_option("-h", "--help")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors")
def cli(verbose, quiet):
    """logshift - rewrite zap logging calls into zerolog chains

    \b
    QUICK START:
      logshift scan ./internal              # What would change
      logshift rewrite --diff ./internal    # Review the rewrite
      logshift rewrite --inplace ./internal # Apply it

    \b
    For detailed options: logshift <command> --help"""
    if verbose:
        set_console_level("DEBUG")
    elif quiet:
        set_console_level("ERROR")


from logshift.commands.rewrite import rewrite
from logshift.commands.scan import scan

cli.add_command(rewrite)
cli.add_command(scan)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
