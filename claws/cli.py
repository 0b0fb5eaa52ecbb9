"""CLI interface for claws."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from claws.config import ClawsSettings, ConfigError, set_settings
from claws.formatters import display_violations, format_as_github, format_as_sarif
from claws.pipeline.expressions import ExpressionSyntaxError
from claws.pipeline.pipeline import AnalysisResult, run_pipeline
from claws.pipeline.rules import MissingExternalTool
from claws.rules import RULES

console = Console()
error_console = Console(stderr=True)

EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


def setup_logging(log_level: str) -> None:
    """Configure logging with rich handler."""
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, rich_tracebacks=True)],
    )


def _write_output(text: str, output_path: Path | None) -> None:
    """Write output text to file or stdout."""
    if output_path:
        output_path.write_text(text)
    else:
        click.echo(text, nl=False)


def _parse_names(names: str) -> list[str]:
    """Parse comma-separated rule names into a list."""
    return [name.strip() for name in names.split(",") if name.strip()]


def _print_rules() -> None:
    """Print every built-in rule with the first line of its description."""
    table = Table(title="[bold cyan]Rules[/bold cyan]", show_header=True, header_style="bold")
    table.add_column("Rule", style="cyan")
    table.add_column("Description")
    for name, rule in RULES.items():
        table.add_row(name, rule.description.strip().splitlines()[0])
    console.print(table)


def display_failed_files(result: AnalysisResult) -> None:
    """Display files that could not be parsed."""
    if not result.failed_files:
        return

    error_console.print("\n[bold red]Failed Files:[/bold red]")
    for file_path, error in result.failed_files.items():
        error_console.print(f"  [red]✗[/red] {file_path}")
        error_console.print(f"    [dim]{escape(error)}[/dim]")


def _handle_output(result: AnalysisResult, output_format: str, output_path: Path | None) -> None:
    """Handle formatting and outputting results."""
    output_format = output_format.lower()
    if output_format == "sarif":
        _write_output(format_as_sarif(result, pretty=True) + "\n", output_path)
    elif output_format == "github":
        _write_output(format_as_github(result.violations), output_path)
    else:  # stdout
        display_violations(console, result.violations)
        if not result.violations:
            console.print("[green]No violations found.[/green]")
        console.print(
            f"[dim]{result.files_analyzed} file(s) analyzed, "
            f"{len(result.violations)} violation(s)[/dim]"
        )


@click.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["stdout", "github", "sarif"], case_sensitive=False),
    default="stdout",
    help="Output format (default: stdout)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path for github/sarif formats (default: stdout)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with per-rule configuration",
)
@click.option(
    "--enable",
    type=str,
    default="",
    help="Comma-separated list of rules to run (default: all)",
)
@click.option(
    "--disable",
    type=str,
    default="",
    help="Comma-separated list of rules to skip",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="WARNING",
    help="Set the logging level",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    help="Number of files analyzed concurrently (default: 1)",
)
@click.option(
    "--trace",
    is_flag=True,
    default=False,
    help="Log every evaluated rule expression and its result (use with --log-level DEBUG)",
)
@click.option(
    "--list-rules",
    is_flag=True,
    default=False,
    help="List the built-in rules and exit",
)
def main(
    paths: tuple[Path, ...],
    output_format: str,
    output: Path | None,
    config_file: Path | None,
    enable: str,
    disable: str,
    log_level: str,
    workers: int,
    trace: bool,
    list_rules: bool,
) -> None:
    """Analyze GitHub Actions workflows for security issues.

    PATHS are workflow files or directories (default: .github/workflows).
    Exits with 1 when violations are found and 2 on a fatal error.
    """
    setup_logging(log_level.upper())

    if list_rules:
        _print_rules()
        sys.exit(0)

    settings = ClawsSettings(
        config_file=str(config_file) if config_file else None,
        enabled_rules=_parse_names(enable),
        disabled_rules=_parse_names(disable),
        trace=trace,
        workers=workers,
    )
    set_settings(settings)

    try:
        result = run_pipeline(list(paths) or None, settings)
    except (MissingExternalTool, ConfigError, ExpressionSyntaxError, FileNotFoundError) as e:
        error_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
        sys.exit(EXIT_FATAL)

    display_failed_files(result)
    _handle_output(result, output_format, output)

    if result.violations:
        sys.exit(EXIT_VIOLATIONS)


if __name__ == "__main__":
    main()
