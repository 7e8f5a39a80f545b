"""deadwire CLI - dead code and DI wiring audit for TypeScript projects."""
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from .analyzer.dead_code_analyzer import DeadCodeAnalyzer
from .analyzer.graph_builder import DiGraphBuilder
from .analyzer.project import get_project_loader
from .config import __version__, get_config
from .errors import ConfigurationError
from .reporting.diagnostic import Diagnostic
from .reporting.reporter import DeadCodeReporter
from .utils.logger import configure_logging
from .utils.safe_console import SafeConsole

app = typer.Typer(
    name="deadwire",
    help="Find dead classes, methods and broken DI wiring in TypeScript projects",
    add_completion=False
)
console = SafeConsole()

EXIT_FINDINGS = 1
EXIT_CONFIGURATION_ERROR = 2


def _print_diagnostics_table(diagnostics: List[Diagnostic]):
    table = Table(title="Dead Code Findings")
    table.add_column("Category", style="yellow")
    table.add_column("Finding", style="cyan", no_wrap=False)
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    table.add_column("Detail", style="dim", no_wrap=False)

    for diagnostic in diagnostics:
        table.add_row(
            diagnostic.code,
            escape(diagnostic.message),
            escape(diagnostic.file),
            str(diagnostic.line),
            escape(diagnostic.detail or ""),
        )

    console.print(table)


@app.command()
def audit(
    config_path: str = typer.Argument("tsconfig.json", help="tsconfig.json path, or the directory holding it"),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format (table, json)"),
    allow_class: Optional[List[str]] = typer.Option(None, "--allow-class", help="Class name never reported (repeatable)"),
    allow_file: Optional[List[str]] = typer.Option(None, "--allow-file", help="File glob never reported (repeatable)"),
    exempt_token: Optional[List[str]] = typer.Option(None, "--exempt-token", help="DI token exempt from unresolved-token checks (repeatable)"),
    include_functions: bool = typer.Option(False, "--include-functions", help="Also report exported functions with no call-sites"),
    fail_on_findings: bool = typer.Option(False, "--fail-on-findings", help="Exit with status 1 when anything is found"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Analyze a TypeScript project and list dead code findings."""
    configure_logging("DEBUG" if verbose else None)

    if output_format not in ("table", "json"):
        console.error(f"Unknown format: {output_format}")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR)

    settings = get_config().analyzer_settings().extended(
        allowlisted_classes=allow_class or (),
        allowlisted_files=allow_file or (),
        exempt_tokens=exempt_token or (),
        include_functions=True if include_functions else None,
    )
    reporter = DeadCodeReporter(DeadCodeAnalyzer(settings=settings))

    try:
        diagnostics = reporter.collect_diagnostics(Path(config_path))
    except ConfigurationError as e:
        console.error(str(e))
        raise typer.Exit(EXIT_CONFIGURATION_ERROR)

    if output_format == "json":
        typer.echo(json.dumps([diagnostic.to_dict() for diagnostic in diagnostics], indent=2))
    elif diagnostics:
        _print_diagnostics_table(diagnostics)
        console.print(f"\n[bold yellow]{len(diagnostics)} findings[/bold yellow]")
    else:
        console.print("[bold green]No dead code found![/bold green]")

    if fail_on_findings and diagnostics:
        raise typer.Exit(EXIT_FINDINGS)


@app.command()
def graph(
    config_path: str = typer.Argument("tsconfig.json", help="tsconfig.json path, or the directory holding it"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Show the DI bindings and resolutions recognized in a project."""
    configure_logging("DEBUG" if verbose else None)
    settings = get_config().analyzer_settings()

    try:
        model = get_project_loader().load(Path(config_path))
    except ConfigurationError as e:
        console.error(str(e))
        raise typer.Exit(EXIT_CONFIGURATION_ERROR)

    di_graph = DiGraphBuilder(settings).build(model)

    bindings = Table(title="Bindings")
    bindings.add_column("Token", style="cyan")
    bindings.add_column("Class", style="yellow")
    bindings.add_column("File", style="magenta", no_wrap=False)
    bindings.add_column("Line", style="green", justify="right")
    for binding in di_graph.bindings:
        bindings.add_row(binding.token_name, binding.class_name, escape(binding.file_path), str(binding.line))
    console.print(bindings)

    resolutions = Table(title="Resolutions")
    resolutions.add_column("Token", style="cyan")
    resolutions.add_column("Kind", style="yellow")
    resolutions.add_column("File", style="magenta", no_wrap=False)
    resolutions.add_column("Line", style="green", justify="right")
    for resolution in di_graph.resolutions:
        resolutions.add_row(resolution.token_name, resolution.kind.value,
                            escape(resolution.file_path), str(resolution.line))
    console.print(resolutions)

    console.print(f"\n{len(di_graph.bindings)} bindings, {len(di_graph.resolutions)} resolutions")


def _version_callback(value: bool):
    if value:
        typer.echo(f"deadwire {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """deadwire - dead code and DI wiring audit for TypeScript projects."""
    pass


if __name__ == "__main__":
    app()
