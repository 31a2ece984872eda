"""reftrace CLI - show how Vue reactive bindings are referenced in a source file."""
from pathlib import Path
from typing import Optional
import typer
from rich.table import Table
from rich.markup import escape

from reftrace.config import __version__, get_config
from reftrace.analyzer.context import AnalysisContext
from reftrace.analyzer.estree import node_text
from reftrace.analyzer.ref_object_references import (
    extract_reactive_variable_references,
    extract_ref_object_references,
)
from reftrace.utils.safe_console import SafeConsole

app = typer.Typer(
    name="reftrace",
    help="Static reference resolution for Vue reactivity APIs and macros",
    add_completion=False
)
console = SafeConsole(force_terminal=True)

# Longest source snippet shown in a table cell
MAX_SNIPPET = 40


def load_context(file_path: str, language: Optional[str]) -> AnalysisContext:
    """Parse a file for the CLI, turning failures into a clean exit.

    Args:
        file_path: Path given on the command line
        language: Optional grammar override

    Returns:
        AnalysisContext for the file

    Raises:
        typer.Exit: With status 1 on configuration, language or I/O errors
    """
    path = Path(file_path)
    try:
        options = get_config().to_options()
        return AnalysisContext.from_file(path, language=language, options=options)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)


def snippet(context: AnalysisContext, node) -> str:
    text = ' '.join(node_text(node, context.source).split())
    if len(text) > MAX_SNIPPET:
        text = text[:MAX_SNIPPET - 1] + '…'
    return escape(text)


@app.command()
def refs(
    file_path: str = typer.Argument(..., help="JavaScript, TypeScript or Vue file to analyze"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Grammar override (javascript, typescript, tsx, vue)"),
    chain: bool = typer.Option(False, "--chain", help="Show how each reference derives from its defining call"),
):
    """List references to ref objects created by ref(), computed(), toRefs() and friends."""
    context = load_context(file_path, language)
    references = extract_ref_object_references(context)

    if not len(references):
        console.print("[yellow]No ref-object references found.[/yellow]")
        return

    table = Table(title=f"Ref-object references in {escape(file_path)}")
    table.add_column("Location", style="cyan", no_wrap=True)
    table.add_column("Code", style="white")
    table.add_column("Kind", style="magenta")
    table.add_column("Role", style="green")
    table.add_column("Method", style="yellow")
    table.add_column("Defined", style="dim", justify="right")
    if chain:
        table.add_column("Chain", style="blue")

    for record in sorted(references, key=lambda r: r.node.range):
        row = [
            f"{record.node.line}:{record.node.column}",
            snippet(context, record.node),
            record.kind,
            'write' if record.type == 'pattern' else 'read',
            record.method,
            str(record.definition_site.line),
        ]
        if chain:
            row.append(' → '.join(snippet(context, n) for n in references.chain(record.node)))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(references)} reference(s)", highlight=False)


@app.command()
def reactive(
    file_path: str = typer.Argument(..., help="JavaScript, TypeScript or Vue file to analyze"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Grammar override (javascript, typescript, tsx, vue)"),
):
    """List references to variables declared with $ref(), $computed(), $() and friends."""
    context = load_context(file_path, language)
    references = extract_reactive_variable_references(context)

    if not len(references):
        console.print("[yellow]No reactive-variable references found.[/yellow]")
        return

    table = Table(title=f"Reactive-variable references in {escape(file_path)}")
    table.add_column("Location", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Method", style="yellow")
    table.add_column("Escaped", style="magenta")
    table.add_column("Defined", style="dim", justify="right")

    for record in sorted(references, key=lambda r: r.node.range):
        table.add_row(
            f"{record.node.line}:{record.node.column}",
            escape(record.node.name),
            escape(record.method),
            "✓" if record.escape else "",
            str(record.definition_site.line),
        )

    console.print(table)
    escaped = sum(1 for record in references if record.escape)
    console.print(f"\n[bold]Total:[/bold] {len(references)} reference(s), {escaped} inside $$()",
                  highlight=False)


def version_callback(value: bool):
    if value:
        console.print(f"reftrace {__version__}", highlight=False)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """reftrace - static reference resolution for Vue reactivity."""
    pass


if __name__ == "__main__":
    app()
