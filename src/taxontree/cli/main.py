"""
Main CLI entry point for taxontree.

Renders a per-taxon probability table as a taxonomy tree image:

    taxontree probabilities.csv output/tree

writes ``output/tree.png`` (cropped) and ``output/tree.svg`` (full canvas).
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape

from taxontree import __version__
from taxontree.cli.utils import QuietConsole, configure_logging, spinner_progress
from taxontree.clients.unipept import UnipeptClient
from taxontree.core.exceptions import ConfigurationError, TaxonTreeError
from taxontree.core.probabilities import load_probabilities
from taxontree.models.config import RenderConfig
from taxontree.pipeline import render_table

app = typer.Typer(
    name="taxontree",
    help="Render per-taxon probabilities as a taxonomy tree image",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"taxontree version {__version__}")
        raise typer.Exit


def _load_config(config: Path | None, scale: int | None) -> RenderConfig:
    try:
        render_config = RenderConfig.from_yaml(config) if config else RenderConfig()
        if scale is not None:
            render_config = RenderConfig(
                **{**render_config.model_dump(), "scaling": scale}
            )
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            message=f"Invalid configuration: {e}",
            suggestion="See RenderConfig.to_yaml_str() for the expected keys and defaults.",
        ) from e
    return render_config


def _fail(error: TaxonTreeError) -> None:
    err_console.print(f"[red]Error: {escape(error.message)}[/red]")
    if error.suggestion:
        err_console.print(f"[dim]{escape(error.suggestion)}[/dim]")
    raise typer.Exit(code=1) from error


@app.command()
def main(
    probabilities: Path = typer.Argument(
        ...,
        help="Text file with one 'taxonId,probability' row per line",
        dir_okay=False,
    ),
    output: Path = typer.Argument(
        ...,
        help="Output image path without extension (.png and .svg are added)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML render configuration",
        exists=True,
        dir_okay=False,
    ),
    scale: int | None = typer.Option(
        None,
        "--scale",
        "-s",
        help="Supersampling factor (overrides the config)",
        min=1,
        max=10,
    ),
    tree_json: Path | None = typer.Option(
        None,
        "--tree-json",
        help="Also write the normalized taxonomy tree as JSON",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Render the taxonomy tree for a probability table.

    Probabilities are converted to integer percentages, sent to the Unipept
    taxa2tree service, normalized so each node carries the largest
    probability in its subtree, and drawn with one color per depth band.

    Examples:

        taxontree probabilities.csv results/tree

        taxontree probabilities.csv results/tree --scale 2 --tree-json results/tree.json
    """
    configure_logging(verbose, err_console)
    out = QuietConsole(console, quiet=quiet)

    try:
        render_config = _load_config(config, scale)
        table = load_probabilities(probabilities)
        out.print("\n[bold blue]taxontree[/bold blue]\n")
        out.print(f"[bold]Taxa:[/bold] {len(table)}")
        out.print(f"[bold]Minimum probability:[/bold] {table.minimum}")
        out.print(f"[bold]Maximum probability:[/bold] {table.maximum}")
        if table.skipped:
            out.print(f"[yellow]Skipped {table.skipped} unparseable row(s)[/yellow]")

        with UnipeptClient(render_config.service) as client:
            result = render_table(
                table,
                output,
                render_config,
                client=client,
                tree_json=tree_json,
                step=partial(spinner_progress, console=console, quiet=quiet),
            )

    except TaxonTreeError as e:
        _fail(e)

    out.print("\n[bold green]Tree rendered successfully![/bold green]")
    png_width, png_height = result.png_size
    out.print(f"[bold]PNG:[/bold] {result.outputs.png} ({png_width}x{png_height})")
    out.print(f"[bold]SVG:[/bold] {result.outputs.svg}")
    if tree_json is not None:
        out.print(f"[bold]Tree JSON:[/bold] {tree_json}")
    out.print()


if __name__ == "__main__":
    app()
