"""Typer-based CLI entry point."""

from __future__ import annotations

import logging
from functools import wraps
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from . import config
from .catalog import default_catalog
from .dispatch import QueueDispatcher
from .errors import OpsMapError, SettingsError, UnknownStyleKey
from .settings import load_settings
from .styles import StyleRegistry
from .surface import MOUSEMOVE_EVENT, HeadlessEngine, HeadlessSurface, PointerEvent
from .utils.console_logger import ensure_console_logger
from .viewmodels import MapBoardViewModel

app = typer.Typer(help="Compose the operations map board and inspect its layers")


def _handle_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (UnknownStyleKey, SettingsError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except OpsMapError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    """Configure logging for every command."""

    ensure_console_logger(
        logging.getLogger("opsmap"),
        "opsmap-cli",
        level=logging.DEBUG if verbose else logging.WARNING,
        rich=True,
    )


@app.command()
def styles(
    base_url: str = typer.Option(config.DEFAULT_CONTENT_BASE_URL, "--base-url", help="Content base url or directory"),
) -> None:
    """List the available basemap styles."""

    table = Table("Key", "Style url")
    for ref in StyleRegistry(base_url=base_url):
        marker = " (default)" if ref.key.value == config.DEFAULT_STYLE else ""
        table.add_row(f"{ref.key.value}{marker}", ref.url)
    print(table)


@app.command()
def layers() -> None:
    """List the layer catalog in paint order."""

    catalog = default_catalog()
    table = Table("Layer", "Surface layers", "Priority", "Hover", "Visible by default")
    for layer in catalog.logical_layers():
        entry = catalog.entry(layer)
        table.add_row(
            layer.value,
            ", ".join(catalog.layer_ids(layer)),
            str(entry.priority),
            "yes" if entry.hoverable else "no",
            "yes" if config.DEFAULT_VISIBILITY[layer.value] else "no",
        )
    print(table)


def _compose(style: Optional[str], settings_path: Optional[Path], base_url: Optional[str]):
    settings = load_settings(settings_path)
    if style is not None:
        settings["initial_style"] = style
    if base_url is not None:
        settings["content_base_url"] = base_url

    dispatcher = QueueDispatcher()
    engine = HeadlessEngine(dispatcher)
    board = MapBoardViewModel(engine, dispatcher, settings=settings)
    board.start()
    timeout = float(settings["fetch_timeout"]) + 5.0
    if not dispatcher.run_until(lambda: board.composer.last_report is not None, timeout=timeout):
        board.dispose()
        typer.echo("Error: composition did not finish in time", err=True)
        raise typer.Exit(1)
    return board, engine.latest


def _print_stack(board: MapBoardViewModel, surface: HeadlessSurface) -> None:
    table = Table("Surface layer", "Layer", "Visibility")
    for layer_id in surface.layer_ids():
        owner = board.catalog.owner_of(layer_id)
        table.add_row(layer_id, owner.value if owner else "", surface.visibility(layer_id))
    print(table)
    for layer, reason in board.failed_layers.items():
        print(f"[yellow]Skipped {layer.value}: {escape(reason)}")


@app.command()
@_handle_errors
def compose(
    style: Optional[str] = typer.Option(None, "--style", help="Basemap style key"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Content base url or directory"),
) -> None:
    """Compose the board on a headless surface and print its layer stack."""

    board, surface = _compose(style, settings_path, base_url)
    try:
        print(f"[green]Composed {board.base.value.value} surface #{board.lifecycle.generation}")
        _print_stack(board, surface)
    finally:
        board.dispose()


@app.command()
@_handle_errors
def probe(
    lng: float = typer.Argument(..., help="Longitude (put `--` before negative values)"),
    lat: float = typer.Argument(..., help="Latitude"),
    style: Optional[str] = typer.Option(None, "--style", help="Basemap style key"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Content base url or directory"),
) -> None:
    """Resolve the hover label at a coordinate."""

    board, surface = _compose(style, settings_path, base_url)
    try:
        surface.fire(MOUSEMOVE_EVENT, PointerEvent(point=(lng, lat), lnglat=(lng, lat)))
        hover = board.current_hover
        if hover is None:
            print("[yellow]No feature under the pointer")
            return
        owner = hover.layer.value if hover.layer else "?"
        print(f"[green]{escape(hover.name)}[/green] ({owner})")
    finally:
        board.dispose()


if __name__ == "__main__":  # pragma: no cover
    app()
