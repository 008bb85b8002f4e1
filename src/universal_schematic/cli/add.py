import shutil
import subprocess
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from universal_schematic.core.tasks import TaskQueue
from universal_schematic.core.universal import run_universal
from universal_schematic.models import UniversalOptions
from universal_schematic.tree import FileSystemTree

console = Console()


def _render_changes(changes: list[tuple[str, str]]) -> None:
    table = Table(show_lines=False)
    table.add_column("path")
    table.add_column("action")
    for path, action in changes:
        table.add_row(path, action)
    console.print(table)
    console.print(f"({len(changes)} changes)")


def _npm_available() -> bool:
    return shutil.which("npm") is not None


def _run_follow_ups(root: Path, tasks: TaskQueue) -> None:
    for task in tasks:
        if task.kind == "node-package-install":
            if not _npm_available():
                console.print("[yellow]npm not found in PATH, run 'npm install' yourself.[/yellow]")
                continue
            console.print(f"Installing packages in {root / task.directory}...")
            subprocess.run(["npm", "install"], cwd=str(root / task.directory), check=True)
        else:
            console.print(f"[yellow]Pending:[/yellow] ng add {task.package} ({task.schematic}) with {task.options}")


def add(
    directory: Annotated[str, typer.Argument(help="Angular workspace directory.")] = ".",
    project: Annotated[str | None, typer.Option(help="Project name in angular.json.")] = None,
    skip_install: Annotated[bool, typer.Option("--skip-install", help="Do not run npm install.")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show staged changes without writing.")] = False,
    no_diagnostics: Annotated[bool, typer.Option("--no-diagnostics", help="Do not report failures.")] = False,
) -> None:
    """Add server-side rendering support to an Angular application."""
    root = Path(directory)
    tree = FileSystemTree(root)
    options = UniversalOptions(project=project, skip_install=skip_install, disable_diagnostics=no_diagnostics)

    try:
        context = run_universal(tree, options)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None

    changes = tree.changes()
    if dry_run:
        _render_changes(changes)
        return

    tree.commit()
    console.print(f"[green]Applied[/green] {len(changes)} change(s) to {root}")
    rewritten = sorted({result.path for result in context.injections if result.changed})
    for path in rewritten:
        console.print(f"[green]Qualified[/green] browser globals in {path}")
    _run_follow_ups(root, context.tasks)
