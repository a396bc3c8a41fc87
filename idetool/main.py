"""
idetool — CLI entrypoint.

Usage:
    python -m idetool.main --help
    python -m idetool.main install java 17*
    python -m idetool.main uninstall mvn --force
"""

from __future__ import annotations

from pathlib import Path

import click

from idetool import __version__
from idetool.core.observability.logging_config import resolve_level, setup_from_environment


@click.group()
@click.version_option(version=__version__, prog_name="idetool")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to ide.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """idetool — install and manage your project's developer tools."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_environment(resolve_level(debug=debug, verbose=verbose, quiet=quiet))


# ── Register commands from idetool/ui/cli/ ──────────────────────

from idetool.ui.cli.tools import cves, install, list_editions, list_versions, run, uninstall  # noqa: E402

cli.add_command(install)
cli.add_command(uninstall)
cli.add_command(list_versions)
cli.add_command(list_editions)
cli.add_command(cves)
cli.add_command(run)


if __name__ == "__main__":
    cli()
