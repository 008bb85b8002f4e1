import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from universal_schematic.cli.add import add
from universal_schematic.cli.rewrite import inject, scan

app = typer.Typer(
    name="universal-schematic",
    help="Universal schematic: make Angular sources portable to server-side rendering.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


app.command("add")(add)
app.command("inject")(inject)
app.command("scan")(scan)


def main() -> None:
    app()
