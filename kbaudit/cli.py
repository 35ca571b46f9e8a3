"""CLI entry point: run the nightly audit, print a summary, exit by severity."""

import logging
from pathlib import Path

import click
import typer

from .audit import run_audit
from .checks import CHECK_INFO
from .config import build_config
from .errors import AuditAbort, ConfigError
from .format import ALL_CLEAR
from .severity import GRADE_LABELS

EXIT_FATAL = 1
# click also exits 2 on its own usage errors
EXIT_USAGE = 2
EXIT_CRITICAL = 3

app = typer.Typer(
    help="Audit a knowledge repository and report its health.",
    epilog="Exit codes: 0 clean or warnings only, 1 fatal or bad config, 2 usage error, 3 critical findings.",
)


def _err(msg: str) -> None:
    """Print a red usage error to stderr and exit with the usage code."""
    click.secho(f"Error: {msg}", fg="red", err=True)
    raise typer.Exit(EXIT_USAGE)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_explain(check_name: str) -> None:
    if check_name in ("list", "checks"):
        typer.echo("Available checks (in run order):")
        for name, info in CHECK_INFO.items():
            typer.echo(f"  {name:<16} {info['category']}")
        typer.echo("\nUse: kbaudit --explain <check>")
        return
    info = CHECK_INFO.get(check_name)
    if not info:
        _err(f"Unknown check: {check_name}. Use --explain list to see all checks.")
    typer.echo(f"Check: {check_name}")
    typer.echo(f"Category: {info['category']}")
    typer.echo(f"Description: {info['description']}")
    typer.echo(f"Fix: {info['fix']}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    repo_path: Path = typer.Option(None, "--repo-path", "-p", file_okay=False, dir_okay=True, help="Content repository (default: $KBAUDIT_REPO or ../edgebot-brain)"),
    home: Path = typer.Option(None, "--home", file_okay=False, dir_okay=True, help="Work root holding reports/, state/, .credentials/ (default: $KBAUDIT_HOME or .)"),
    config_file: Path = typer.Option(None, "--config", "-c", dir_okay=False, help="YAML overrides (default: <home>/kbaudit.yaml)"),
    fix: bool = typer.Option(False, "--fix", help="Apply auto-fixes, then commit and push if anything changed"),
    no_notify: bool = typer.Option(False, "--no-notify", help="Do not send the alert message"),
    explain: str = typer.Option(None, "--explain", "-e", help="Explain a check by name ('list' for all) and exit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run every check, write the daily report, update the trend series.

    Exit codes: 0 clean or warnings only, 1 fatal precondition or bad config,
    2 usage error, 3 one or more Critical findings.
    """
    if ctx.invoked_subcommand is not None:
        return
    if explain:
        _print_explain(explain)
        return
    _setup_logging(verbose)

    try:
        config = build_config(
            repo_path=repo_path,
            home=home,
            config_file=config_file,
            apply_fixes=fix,
            notify=not no_notify,
        )
        outcome = run_audit(config)
    except (AuditAbort, ConfigError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_FATAL)

    run = outcome.run
    typer.echo(f"Grade: {GRADE_LABELS[run.grade]}")
    typer.echo(f"Criticals: {run.critical_count} | Warnings: {run.warning_count}")
    if run.critical_count == 0 and run.warning_count == 0:
        typer.echo(ALL_CLEAR)
    if run.fix_report is not None and run.fix_report.applied:
        typer.echo(f"Auto-fixes applied: {len(run.fix_report.applied)}")
    typer.echo(f"Report: {outcome.report_path}")

    if run.critical_count:
        raise typer.Exit(EXIT_CRITICAL)


def _main() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    _main()
