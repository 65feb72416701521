"""
macprovision — CLI entrypoint.

Usage:
    macprovision --help
    macprovision run
    macprovision plan
    macprovision config check

Exit status of ``run``:
    0  every mandatory step succeeded (optional failures are listed)
    1  a mandatory step failed; the steps after it were skipped
    2  a prerequisite failed; nothing was run
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from macprovision import __version__
from macprovision.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="macprovision")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provision.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """macprovision — set up a Mac from provision.yml."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Ask the questions but run no commands.")
@click.option("--mock", is_flag=True, help="Use mock runner (no real execution).")
@click.option("--no-reboot", is_flag=True, help="Don't reboot at the end.")
@click.pass_context
def run(ctx: click.Context, as_json: bool, dry_run: bool, mock: bool, no_reboot: bool) -> None:
    """Provision this Mac.

    Examples:

        macprovision run

        macprovision --config ~/dotfiles/provision.yml run --no-reboot

        macprovision run --dry-run
    """
    from macprovision.core.config.loader import YamlConfigSource
    from macprovision.core.prompt import Prompt
    from macprovision.core.use_cases.provision import run_provisioning

    quiet = ctx.obj.get("quiet", False)
    if not (as_json or quiet):
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"\n⚡ {mode_label}macprovision {__version__}", fg="cyan", bold=True)
        click.secho("   Enter your password when sudo asks for it.\n", fg="green")

    # stdout carries only the JSON document
    prompt = Prompt(output_stream=sys.stderr) if as_json else Prompt()

    result = run_provisioning(
        YamlConfigSource(ctx.obj.get("config_path")),
        prompt=prompt,
        mock=mock,
        dry_run=dry_run,
        include_reboot=not no_reboot,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(result.exit_code)

    report = result.report
    assert report is not None

    click.echo()
    if ctx.obj.get("verbose"):
        for r in report.results:
            marker, color = {
                "succeeded": ("✓", "green"),
                "failed": ("✗", "red"),
                "skipped": ("⊘", "yellow"),
            }[r.state.value]
            timing = f" ({r.duration_ms}ms)" if r.duration_ms else ""
            click.secho(f"   {marker} {r.step_name}{timing}", fg=color)
        click.echo()

    if report.failed:
        click.secho(f"   Failed ({len(report.failed)}):", fg="red", bold=True)
        for r in report.failed:
            label = "" if r.optional else " [mandatory]"
            click.secho(f"   ✗ {r.step_name}{label}", fg="red")
            for line in (r.error_detail or "").split("\n")[:5]:
                click.echo(f"     │ {line}")
        click.echo()

    if report.skipped:
        click.secho(f"   Skipped ({len(report.skipped)}):", fg="yellow", bold=True)
        for r in report.skipped:
            click.echo(f"   ⊘ {r.step_name} ({r.reason})")
        click.echo()

    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}[report.status]
    click.secho(
        f"   Result: {len(report.succeeded)}/{report.total} succeeded",
        fg=status_color,
        bold=True,
    )
    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-reboot", is_flag=True, help="Leave out the reboot step.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool, no_reboot: bool) -> None:
    """List the steps a run would take, in order."""
    from macprovision.core.config.loader import YamlConfigSource
    from macprovision.core.use_cases.provision import plan_provisioning

    result = plan_provisioning(
        YamlConfigSource(ctx.obj.get("config_path")),
        include_reboot=not no_reboot,
    )

    if as_json:
        click.echo(json.dumps(
            {
                **({"error": result.error} if result.error else {}),
                "steps": [
                    {
                        "name": s.name,
                        "description": s.description,
                        "optional": s.optional,
                        "confirm_group": s.confirm_group,
                        "within": s.within,
                    }
                    for s in result.steps
                ],
            },
            indent=2,
        ))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(result.exit_code)

    click.secho(f"\n📋 {len(result.steps)} steps", fg="cyan", bold=True)
    for index, step in enumerate(result.steps, start=1):
        flags = []
        if step.optional:
            flags.append("optional")
        if step.confirm_group:
            flags.append(f"asks: {step.confirm_group}")
        if step.within:
            flags.append(f"after: {step.within}")
        flag_label = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"   {index:>3}. {step.name}{flag_label}")
        if ctx.obj.get("verbose") and step.description:
            click.echo(f"        {step.description}")
    click.echo()


@cli.group()
def config() -> None:
    """Provisioning configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate provision.yml."""
    from macprovision.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Formulae: {len(result.config.formulae)}")
        click.echo(f"   Casks: {len(result.config.casks)}")
        click.echo(f"   Settings: {len(result.config.settings)}")
        click.echo(f"   Extras: {len(result.config.extras)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
