"""
agda-bdist — CLI entrypoint.

Usage:
    agda-bdist --help
    agda-bdist options --input agda-version=2.6.4
    agda-bdist features --input agda-version=2.6.4 --explain
    agda-bdist setup --from-env
"""

from __future__ import annotations

import os

import click

from agda_bdist import __version__
from agda_bdist.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="agda-bdist")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """agda-bdist — build, package and publish Agda binary distributions."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


# ── Register sub-commands from agda_bdist/ui/cli/ ──────────────────

from agda_bdist.ui.cli.bdist import features, name, options, setup  # noqa: E402

cli.add_command(options)
cli.add_command(features)
cli.add_command(name)
cli.add_command(setup)


if __name__ == "__main__":
    cli()
