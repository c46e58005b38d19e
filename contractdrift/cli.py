"""CLI entry point for contractdrift."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from contractdrift.core.config import EngineConfig
from contractdrift.core.engine import ContractEngine
from contractdrift.core.exceptions import ConfigError, ProjectRootError
from contractdrift.core.graph import GraphBuilder, find_cycles
from contractdrift.core.models import ExportedFunction, ExportedShape, Finding, Role

app = typer.Typer(
    name="contractdrift",
    help="Detect drift between shared contracts and the code that consumes them.",
    no_args_is_help=True,
)
console = Console()

_ROLE_COLORS = {
    Role.SHARED: "magenta",
    Role.CLIENT: "cyan",
    Role.SERVER: "blue",
    Role.UNCLASSIFIED: "dim",
}


def build_config(
    shared: list[str] | None,
    client: list[str] | None,
    server: list[str] | None,
    threshold: float = 0.7,
    workers: int = 4,
    scan_shared: bool = False,
) -> EngineConfig:
    """Build an engine config from CLI options, exiting with code 2 on bad values."""
    try:
        return EngineConfig(
            shared_dirs=shared,
            client_dirs=client,
            server_dirs=server,
            similarity_threshold=threshold,
            max_workers=workers,
            scan_shared=scan_shared,
        )
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(2) from e


def setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def function_to_dict(func: ExportedFunction) -> dict[str, object]:
    return {
        "identity": func.identity,
        "name": func.name,
        "class": func.class_name,
        "file": func.file,
        "line": func.line,
        "async": func.is_async,
        "parameters": [
            {"name": p.name, "required": p.required, "type": p.type_text} for p in func.parameters
        ],
    }


def shape_to_dict(shape: ExportedShape) -> dict[str, object]:
    return {
        "name": shape.name,
        "kind": shape.kind.value,
        "file": shape.file,
        "line": shape.line,
        "fields": [
            {"name": f.name, "optional": f.optional, "type": f.type_text} for f in shape.fields
        ],
    }


def format_finding(finding: Finding) -> str:
    """One-line rich markup for a finding."""
    loc = f"{finding.file}:{finding.line}"
    if finding.column is not None:
        loc += f":{finding.column}"
    confidence = f"{finding.mismatch.confidence:.2f}"
    return f"[red]{finding.kind.value}[/] [dim]{loc}[/] {finding.message} [dim]({confidence})[/]"


DirsOption = Annotated[
    list[str] | None,
    typer.Option(help="Directory holding files of this role (repeatable)"),
]


@app.command()
def check(
    path: Annotated[Path, typer.Argument(help="Project root to check")] = Path("."),
    shared: DirsOption = None,
    client: DirsOption = None,
    server: DirsOption = None,
    threshold: Annotated[
        float, typer.Option("--threshold", "-t", help="Minimum similarity score to report")
    ] = 0.7,
    workers: Annotated[int, typer.Option("--workers", "-w", help="Worker threads")] = 4,
    scan_shared: Annotated[
        bool, typer.Option("--scan-shared", help="Also check shared files as consumers")
    ] = False,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Check consumer code against the contracts declared in shared files."""
    setup_logging(verbose)
    path = path.resolve()
    config = build_config(shared, client, server, threshold, workers, scan_shared)
    engine = ContractEngine(config)

    try:
        if output_json:
            result = engine.run(path)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
            ) as progress:
                task = progress.add_task(f"Checking [cyan]{path.name}[/]", total=None)

                def on_progress(file: str, current: int, total: int) -> None:
                    progress.update(task, total=total, completed=current)
                    progress.update(task, description=f"[cyan]{file}[/]")

                result = engine.run(path, on_progress=on_progress)
    except ProjectRootError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e

    stats = result.stats
    if output_json:
        print(
            json.dumps(
                {
                    "findings": [f.to_dict() for f in result.findings],
                    "stats": stats.to_dict(),
                    "contracts_indexed": result.contracts_indexed,
                }
            )
        )
    else:
        if not result.contracts_indexed:
            console.print("[yellow]No shared contracts found.[/yellow] Use --shared to name them.")
        for finding in result.findings:
            console.print(format_finding(finding))
            if finding.suggestion:
                console.print(f"    [green]{finding.suggestion}[/]")

        console.print()
        console.print(
            f"  Files: {stats.files} "
            f"({stats.shared_files} shared, {stats.consumer_files} consumers)"
        )
        console.print(f"  Contracts: {stats.functions} functions, {stats.shapes} shapes")
        console.print(f"  Usages checked: {stats.usages}")
        if stats.skipped:
            console.print(f"  [dim]Skipped: {stats.skipped}[/]")
        if stats.errors:
            console.print(f"  [red]Errors: {len(stats.errors)}[/red]")
            for error in stats.errors:
                console.print(f"    {error}")
        if result.findings:
            console.print(f"[red]{len(result.findings)} finding(s)[/red]")
        else:
            console.print("[green]No drift found.[/green]")

    if result.findings:
        raise typer.Exit(1)


@app.command()
def exports(
    path: Annotated[Path, typer.Argument(help="Project root")] = Path("."),
    shared: DirsOption = None,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List the contracts exported by shared files."""
    engine = ContractEngine(build_config(shared, None, None))
    try:
        engine.run(path.resolve())
    except ProjectRootError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e

    functions = engine.index.functions()
    shapes = engine.index.shapes()

    if output_json:
        print(
            json.dumps(
                {
                    "functions": [function_to_dict(f) for f in functions],
                    "shapes": [shape_to_dict(s) for s in shapes],
                }
            )
        )
        return

    if not functions and not shapes:
        console.print("No shared contracts found")
        return

    for func in functions:
        params = ", ".join(p.name if p.required else f"{p.name}?" for p in func.parameters)
        console.print(f"[cyan]{func.identity}[/cyan]({params})")
        console.print(f"  [dim]{func.file}:{func.line}[/]")
    for shape in shapes:
        console.print(f"[magenta]{shape.name}[/magenta] ({shape.kind.value})")
        console.print(f"  [dim]{shape.file}:{shape.line}[/]")
        for fld in shape.fields:
            marker = "?" if fld.optional else ""
            console.print(f"    {fld.name}{marker}")


@app.command()
def roles(
    path: Annotated[Path, typer.Argument(help="Project root")] = Path("."),
    shared: DirsOption = None,
    client: DirsOption = None,
    server: DirsOption = None,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the role assigned to every source file."""
    builder = GraphBuilder(build_config(shared, client, server))
    try:
        graph = builder.scan(path.resolve())
    except ProjectRootError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e

    files = graph.files()
    if output_json:
        print(json.dumps({f.path: f.role.value for f in files}))
        return

    for file in files:
        color = _ROLE_COLORS[file.role]
        console.print(f"[{color}]{file.role.value:<12}[/] {file.path}")


@app.command()
def graph(
    path: Annotated[Path, typer.Argument(help="Project root")] = Path("."),
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show import graph size and import cycles."""
    builder = GraphBuilder()
    try:
        source_graph = builder.scan(path.resolve())
    except ProjectRootError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2) from e

    cycles = find_cycles(source_graph)
    if output_json:
        print(
            json.dumps(
                {
                    "nodes": source_graph.num_nodes,
                    "edges": source_graph.num_edges,
                    "cycles": cycles,
                }
            )
        )
        return

    console.print(f"Files: {source_graph.num_nodes}")
    console.print(f"Imports: {source_graph.num_edges}")
    if not cycles:
        console.print("[green]No import cycles[/green]")
        return
    console.print(f"[yellow]Import cycles: {len(cycles)}[/yellow]")
    for cycle in cycles:
        console.print("  " + " -> ".join([*cycle, cycle[0]]))


if __name__ == "__main__":
    app()
