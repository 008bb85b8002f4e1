from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from universal_schematic.core.inject import inject_dependency
from universal_schematic.core.scanner import scan_references
from universal_schematic.core.syntax import SourceDocument
from universal_schematic.models import Capability, TargetReference
from universal_schematic.tree import FileSystemTree

console = Console()


def _open(file: str) -> tuple[FileSystemTree, str]:
    path = Path(file)
    return FileSystemTree(path.parent), path.name


def inject(
    file: Annotated[str, typer.Argument(help="TypeScript file to rewrite.")],
    name: Annotated[str, typer.Option(help="Global name to route through an injected member.")],
    type_label: Annotated[str, typer.Option("--type", help="Type of the injected member.")],
    token: Annotated[str, typer.Option(help="Injection token providing the value.")],
    provider: Annotated[str, typer.Option(help="Module exporting the token.")] = "@ng-toolkit/universal",
    prefix: Annotated[str, typer.Option(help="Qualifying prefix for rewritten references.")] = "this.",
) -> None:
    """Inject a dependency into every class of FILE and qualify its free uses."""
    tree, path = _open(file)
    capability = Capability(type_label=type_label, provider_module=provider, provider_token=token)
    try:
        result = inject_dependency(tree, path, name, capability, prefix=prefix)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None

    if not result.matched:
        console.print(f"No references to '{name}' in {file}")
        return
    tree.commit()
    console.print(f"[green]Qualified[/green] {result.edits} reference(s) to '{name}' in {file}")


def scan(
    file: Annotated[str, typer.Argument(help="TypeScript file to scan.")],
    name: Annotated[str, typer.Option(help="Global name to look for.")],
    prefix: Annotated[str, typer.Option(help="Qualifying prefix for rewritten references.")] = "this.",
) -> None:
    """List the free references to NAME that a rewrite would qualify."""
    tree, path = _open(file)
    try:
        document = SourceDocument.load(tree, path)
        spans = scan_references(document, TargetReference(name=name, prefix=prefix))
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None

    table = Table(show_lines=False)
    for header in ("line", "start", "end", "replacement"):
        table.add_column(header)
    for span in spans:
        line = document.text.count("\n", 0, span.start) + 1
        table.add_row(str(line), str(span.start), str(span.end), span.replacement)
    console.print(table)
    console.print(f"({len(spans)} references)")
