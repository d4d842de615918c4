"""
Preview Medic CLI
Main entry point for the command-line interface

Usage:
    medic version                                   # Show version information
    medic detect "<message>"                        # Guess error type and location
    medic diagnose error.json --files ./generated   # Diagnose a captured preview error
    medic prompt error.json --files ./generated --prompt "..."  # Print the corrective prompt
    medic config show                               # Show self-heal policy and settings
    medic config init                               # Write the default policy file
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from medic import __version__
from medic.capture.detection import detect_error_type, parse_error_message
from medic.capture.models import GeneratedFile, PreviewError, preview_error_from_json
from medic.self_healing.classifier import ErrorClassifier
from medic.self_healing.config import SelfHealConfig, load_self_heal_config, save_self_heal_config
from medic.self_healing.models import DiagnosticReport
from medic.self_healing.prompts import PromptSynthesizer
from medic.self_healing.regenerator import infer_language
from medic.self_healing.suggestions import create_fix_description, generate_suggestions
from medic.shared.domain.exceptions import ConfigurationError
from medic.shared.infrastructure.config import settings
from medic.shared.infrastructure.logging import configure_logging

app = typer.Typer(
    name="medic",
    help="Preview Medic - diagnose failing previews of generated code",
    add_completion=False,
    no_args_is_help=True,
)
config_app = typer.Typer(help="Inspect and initialise the self-heal policy", no_args_is_help=True)
app.add_typer(config_app, name="config")
console = Console()

SEVERITY_STYLES = {"critical": "red", "major": "yellow", "minor": "cyan"}


@app.command()
def version():
    """Show Preview Medic version information"""
    console.print(Panel.fit(
        "[bold cyan]Preview Medic[/bold cyan]\n"
        f"[dim]Version:[/dim] {__version__}\n"
        f"[dim]Regenerator:[/dim] {settings.regenerate_endpoint}\n",
        title="About Medic",
        border_style="cyan"
    ))


@app.command()
def detect(
    message: str = typer.Argument(..., help="Raw error message from the preview or bundler"),
):
    """Guess the error type of a raw message and extract its location."""
    error_type = detect_error_type(message)
    location = parse_error_message(message)

    table = Table(title="Detection", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan bold")
    table.add_column("Value", style="white")
    table.add_row("Type", error_type.value)
    table.add_row("File", str(location.get("file_path", "-")))
    table.add_row("Line", str(location.get("line_number", "-")))
    table.add_row("Column", str(location.get("column_number", "-")))
    console.print(table)


@app.command()
def diagnose(
    error_file: Path = typer.Argument(..., help="JSON file holding a captured preview error"),
    files_dir: Optional[Path] = typer.Option(None, "--files", "-f", help="Directory with the generated files"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
):
    """Diagnose a captured preview error and list candidate fixes."""
    error = _load_error(error_file)
    files = _load_files(files_dir) if files_dir else []
    config = _load_config()

    report = ErrorClassifier(context_lines=config.context_lines).analyze(error, files)
    report.suggested_fixes = generate_suggestions(report, error)

    if as_json:
        typer.echo(json.dumps(report.to_json(), indent=2))
        return

    _print_report(report)


@app.command()
def prompt(
    error_file: Path = typer.Argument(..., help="JSON file holding a captured preview error"),
    files_dir: Path = typer.Option(..., "--files", "-f", help="Directory with the generated files"),
    original_prompt: str = typer.Option(..., "--prompt", "-p", help="The user's original generation request"),
):
    """Print the corrective prompt that would be sent to the regenerator."""
    error = _load_error(error_file)
    files = _load_files(files_dir)
    config = _load_config()

    report = ErrorClassifier(context_lines=config.context_lines).analyze(error, files)
    report.suggested_fixes = generate_suggestions(report, error)
    typer.echo(PromptSynthesizer().build(error, report, original_prompt, files))


@config_app.command("show")
def config_show(
    path: Optional[Path] = typer.Option(None, "--path", help="Policy file (defaults to MEDIC_SELF_HEAL_CONFIG_PATH)"),
):
    """Show the effective self-heal policy and process settings."""
    config = _load_config(path)
    source = path or Path(settings.self_heal_config_path)

    table = Table(title="Self-Heal Policy", box=box.ROUNDED)
    table.add_column("Option", style="cyan bold")
    table.add_column("Value", style="white")
    for key, value in config.to_dict().items():
        shown = ", ".join(value) if isinstance(value, list) else str(value)
        table.add_row(key, shown)
    console.print(table)
    console.print(f"[dim]Source:[/dim] {source}{'' if source.exists() else ' (defaults)'}")
    console.print(f"[dim]Environment:[/dim] {settings.app_env}")
    console.print(f"[dim]Regenerator:[/dim] {settings.regenerate_endpoint}")


@config_app.command("init")
def config_init(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write the policy file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write the default self-heal policy file."""
    target = path or Path(settings.self_heal_config_path)
    if target.exists() and not force:
        console.print(f"[yellow]Policy file already exists:[/yellow] {target} (use --force to overwrite)")
        raise typer.Exit(code=1)

    written = save_self_heal_config(SelfHealConfig(), target)
    console.print(f"[green]✓[/green] Wrote default policy to {written}")


def _load_error(error_file: Path) -> PreviewError:
    if not error_file.exists():
        console.print(f"[red]Error:[/red] File not found: {error_file}")
        raise typer.Exit(code=1)
    try:
        data = json.loads(error_file.read_text(encoding="utf-8"))
        return preview_error_from_json(data)
    except (ValueError, TypeError, AttributeError) as e:
        console.print(f"[red]Invalid error file:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _load_files(directory: Path) -> list[GeneratedFile]:
    if not directory.is_dir():
        console.print(f"[red]Error:[/red] Not a directory: {directory}")
        raise typer.Exit(code=1)

    files = []
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            continue
        relative = path.relative_to(directory).as_posix()
        files.append(GeneratedFile(path=relative, content=content, language=infer_language(relative)))
    return files


def _load_config(path: Optional[Path] = None) -> SelfHealConfig:
    try:
        return load_self_heal_config(path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _print_report(report: DiagnosticReport) -> None:
    style = SEVERITY_STYLES.get(report.severity.value, "white")
    console.print(Panel.fit(
        f"[bold]{escape(report.summary)}[/bold]\n"
        f"[dim]Category:[/dim] {report.category.value}\n"
        f"[dim]Severity:[/dim] [{style}]{report.severity.value}[/{style}]\n"
        f"[dim]Confidence:[/dim] {report.confidence}%\n"
        f"[dim]Root cause:[/dim] {escape(report.root_cause)} ({report.root_cause_pattern})\n"
        f"[dim]Location:[/dim] {escape(report.affected_code)}",
        title="Diagnosis",
        border_style=style
    ))

    files = Table(title="Files", box=box.SIMPLE)
    files.add_column("Path", style="white")
    files.add_column("Status")
    for path in report.failed_files:
        files.add_row(escape(path), "[red]regenerate[/red]")
    for path in report.retained_files:
        files.add_row(escape(path), "[green]retain[/green]")
    if report.failed_files or report.retained_files:
        console.print(files)

    if report.code_context:
        console.print(Panel(Text(report.code_context), title="Code context", border_style="dim"))

    console.print(create_fix_description(report.suggested_fixes), markup=False)


def main():
    """Main entry point"""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
