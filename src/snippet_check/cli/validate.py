import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from snippet_check.config import load_settings
from snippet_check.core.validate import validate_code
from snippet_check.models import ValidationResult

console = Console()


def _read_source(path: str | None, code: str | None) -> str:
    if code is not None:
        return code
    if path == "-":
        return sys.stdin.read()
    if path is None:
        console.print("[red]Provide a file path, '-' for stdin, or --code.[/red]")
        raise typer.Exit(2)
    file_path = Path(path)
    if not file_path.is_file():
        console.print(f"[red]No such file: {path}[/red]")
        raise typer.Exit(2)
    return file_path.read_text(encoding="utf-8")


def _render_result(result: ValidationResult, library: str) -> None:
    if result.diagnostics:
        table = Table(show_lines=False)
        for h in ["line", "col", "severity", "code", "message"]:
            table.add_column(h)
        for d in result.diagnostics:
            style = "red" if d.severity == "error" else "yellow"
            table.add_row(str(d.line), str(d.column), f"[{style}]{d.severity}[/{style}]", d.code or "", d.message)
        console.print(table)
    if result.imports_prepended:
        console.print(f"[dim]{library} imports auto-added[/dim]")
    if result.success:
        console.print("[green]Validation PASSED[/green]")
    else:
        console.print(f"[red]Validation FAILED[/red] ({len(result.errors)} error(s))")


def validate(
    path: Annotated[str | None, typer.Argument(help="Snippet file to check, or '-' to read stdin.")] = None,
    code: Annotated[str | None, typer.Option(help="Snippet source to check instead of a file.")] = None,
    auto_import: Annotated[
        bool, typer.Option("--auto-import/--no-auto-import", help="Add default library imports when none exist.")
    ] = True,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
) -> None:
    """Type-check a snippet against the configured library."""
    source = _read_source(path, code)
    settings = load_settings()
    result = validate_code(source, auto_import, settings=settings)
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        _render_result(result, settings.library)
    if not result.success:
        raise typer.Exit(1)
