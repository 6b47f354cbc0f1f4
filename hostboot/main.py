"""
hostboot — CLI entrypoint.

Usage:
    sudo hostboot install
    hostboot status
    python -m hostboot.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hostboot import __version__
from hostboot.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="hostboot")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hostboot.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hostboot — bootstrap a host and capture the app's admin credential."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        _console_level(verbose=verbose, quiet=quiet, debug=debug),
        log_file=os.environ.get("HOSTBOOT_LOG_FILE"),
        log_file_level=os.environ.get("HOSTBOOT_LOG_FILE_LEVEL"),
    )


def _console_level(*, verbose: bool, quiet: bool, debug: bool) -> str:
    """Flags win over HOSTBOOT_LOG_LEVEL; the most verbose flag wins among flags."""
    for flag, name in ((debug, "DEBUG"), (verbose, "INFO"), (quiet, "WARNING")):
        if flag:
            return name
    return os.environ.get("HOSTBOOT_LOG_LEVEL", "INFO")


def _load(ctx: click.Context):
    """Resolve (environment, config) or exit with a stage-labeled error."""
    from hostboot.adapters.host import HostEnvironment
    from hostboot.core.config.loader import load_config
    from hostboot.core.errors import ConfigError

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(e.describe(), fg="red", err=True)
        sys.exit(1)

    env = ctx.obj.get("env") or HostEnvironment()
    return env, config


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the run report as JSON.")
@click.pass_context
def install(ctx: click.Context, as_json: bool) -> None:
    """Run the full bootstrap pipeline (requires root)."""
    from hostboot.core.errors import BootstrapError
    from hostboot.core.services.bootstrap.orchestration.orchestrator import BootstrapPipeline

    env, config = _load(ctx)
    pipeline = BootstrapPipeline(env, config, console=ctx.obj.get("console"))

    try:
        report = pipeline.run()
    except Exception as e:
        if as_json:
            click.echo(json.dumps(pipeline.report.to_dict(), indent=2))
        if isinstance(e, BootstrapError):
            message = e.describe()
        else:
            # Not one of ours, but the pipeline still recorded which stage raised it.
            stage = pipeline.report.failed_stage or "bootstrap"
            message = f"[{stage}] {e.__class__.__name__}: {e}"
        click.secho(message, fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.echo()
    click.secho("✅ Bootstrap complete", fg="green", bold=True)
    for warning in report.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")
    click.echo(f"   Admin credential saved to: {report.credential_path}")
    click.echo(f"   Web UI: {config.tool.ui_url}")
    query = " ".join([config.artifact.binary_name, *config.tool.fallback_query])
    click.echo(f"   Retrieve the credential again with: {query}")
    reset = " ".join([config.artifact.binary_name, *config.tool.reset_args])
    click.echo(f"   Reset the admin password later with: {reset}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show how far this host has been bootstrapped (read-only)."""
    from hostboot.core.services.bootstrap.orchestration.orchestrator import collect_status

    env, config = _load(ctx)
    result = collect_status(env, config)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    def mark(flag: bool | None) -> str:
        return "✓" if flag else "✗"

    host = result["host"]
    identity = host["identity"]
    repo = result["repository"]
    click.secho("\n🖥  Host", fg="cyan", bold=True)
    click.echo(f"   codename: {host['codename']} → {repo['family']} suite {repo['codename']}")
    click.echo(f"   arch: {host['architecture']}")
    click.echo(f"   user: {identity['effective']} (invoked by {identity['invoking']})")

    click.secho("\n📦 Components", fg="cyan", bold=True)
    click.echo(f"   {mark(repo['sources_present'])} repository entry")
    click.echo(f"   {mark(repo['keyring_present'])} signing key")
    runtime = result["runtime"]
    click.echo(f"   {mark(runtime['active'])} {runtime['service']} active")
    click.echo(f"   {mark(runtime.get('responsive'))} {runtime['service']} responsive")
    click.echo(f"   {mark(result['tool']['installed'])} {result['tool']['path']}")
    cred = result["credential"]
    click.echo(f"   {mark(cred['present'])} credential file {cred['path']}")
    click.echo()


if __name__ == "__main__":
    cli()
