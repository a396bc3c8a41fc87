"""
CLI commands for tool lifecycle management.

Thin wrappers over ``idetool.core.use_cases.install``.
"""

from __future__ import annotations

import json
import sys

import click


def _interactive(batch: bool) -> bool:
    return not batch and sys.stdin.isatty()


# ── Install / uninstall ─────────────────────────────────────────


@click.command()
@click.argument("tool")
@click.argument("version", required=False)
@click.option("--batch", is_flag=True, help="Never prompt (security choice from ide.yml or stay on current).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, tool: str, version: str | None, batch: bool, as_json: bool) -> None:
    """Install TOOL (optionally in VERSION: 17.0.10, 17*, [3.8,4))."""
    from idetool.core.use_cases.install import install_tool

    result = install_tool(
        tool, version,
        config_path=ctx.obj.get("config_path"),
        interactive=_interactive(batch) and not as_json,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    inst = result.installation
    assert inst is not None
    if inst.newly_installed:
        click.secho(f"✅ {tool} {inst.resolved_version} installed", fg="green", bold=True)
    elif not ctx.obj.get("quiet"):
        click.echo(f"✓ {tool} {inst.resolved_version} is already installed")
    if not ctx.obj.get("quiet"):
        click.echo(f"   → {inst.root_dir}")


@click.command()
@click.argument("tool")
@click.option("--force", "-f", is_flag=True, help="Also delete the shared installation from the software repository.")
@click.pass_context
def uninstall(ctx: click.Context, tool: str, force: bool) -> None:
    """Uninstall TOOL from this project."""
    from idetool.core.use_cases.install import uninstall_tool

    result = uninstall_tool(tool, force=force, config_path=ctx.obj.get("config_path"))

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if result.uninstalled:
        click.secho(f"✅ {tool} uninstalled", fg="green")
    else:
        click.secho(f"⚠️  {tool} was not uninstalled", fg="yellow")


# ── Queries ─────────────────────────────────────────────────────


@click.command("list-versions")
@click.argument("tool")
@click.option("--edition", "-e", default=None, help="Edition (default: configured).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_versions(ctx: click.Context, tool: str, edition: str | None, as_json: bool) -> None:
    """List available versions of TOOL (latest first)."""
    from idetool.core.use_cases.install import list_versions as _list_versions

    result = _list_versions(tool, edition, config_path=ctx.obj.get("config_path"))
    _print_listing(result, as_json)


@click.command("list-editions")
@click.argument("tool")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_editions(ctx: click.Context, tool: str, as_json: bool) -> None:
    """List available editions of TOOL."""
    from idetool.core.use_cases.install import list_editions as _list_editions

    result = _list_editions(tool, config_path=ctx.obj.get("config_path"))
    _print_listing(result, as_json)


def _print_listing(result, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)
    for item in result.items:
        click.echo(item)


@click.command()
@click.argument("tool")
@click.argument("version", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cves(ctx: click.Context, tool: str, version: str | None, as_json: bool) -> None:
    """Show known CVEs of TOOL (installed or configured version, or VERSION)."""
    from idetool.core.use_cases.install import report_cves

    report = report_cves(tool, version, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(1 if report.error else 0)

    if report.error:
        click.secho(f"❌ {report.error}", fg="red")
        sys.exit(1)

    if not report.cves:
        click.secho(f"✅ No CVEs found for {tool}/{report.edition}@{report.version}", fg="green")
        return

    click.secho(
        f"⚠️  {len(report.cves)} CVE(s) for {tool}/{report.edition}@{report.version}:",
        fg="yellow", bold=True,
    )
    for cve in report.cves:
        click.echo(f"   • {cve['id']} (severity {cve['severity']:g})")
        click.echo(f"     Affected versions: {', '.join(cve['versions'])}")
        click.echo(f"     {cve['url']}")


# ── Run ─────────────────────────────────────────────────────────


@click.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("tool")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx: click.Context, tool: str, args: tuple[str, ...]) -> None:
    """Run TOOL with ARGS, installing it first if needed."""
    from idetool.core.use_cases.install import run_tool

    result = run_tool(tool, args, config_path=ctx.obj.get("config_path"))
    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
    sys.exit(result.exit_code)
