"""
Command-line interface for mapsweep.

Commands:
- capture: Pan across a web map canvas, capture a tile grid and stitch it
- stitch: Re-stitch a capture directory from its manifest
- grid: Show the grid and composite size for given edge-scan step counts
"""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .api import STITCHED_NAME, capture_map, stitch_directory
from .config import BrowserConfig, SweepConfig, load_config
from .errors import MapSweepError
from .scan.grid import build_grid

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # pyppeteer is chatty at DEBUG
    logging.getLogger('pyppeteer').setLevel(logging.WARNING)


@click.group()
def main():
    """mapsweep - Capture and stitch pannable web map canvases."""
    pass


@main.command()
@click.argument('url')
@click.option('-o', '--output', type=click.Path(file_okay=False, path_type=Path),
              default=Path('captures'), show_default=True,
              help='Directory for tiles, scan captures and the stitched PNG')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON file with sweep options (command-line options override it)')
@click.option('--width', type=int, help='Viewport width in pixels [1280]')
@click.option('--height', type=int, help='Viewport height in pixels [800]')
@click.option('--step-fraction', type=float, help='Fraction of the viewport panned per step [0.75]')
@click.option('--settle-delay', type=int, help='Milliseconds to wait after a pan [700]')
@click.option('--identical-run', type=int, help='Identical captures in a row that mark an edge [3]')
@click.option('--retries', type=int, help='Capture attempts before giving up [3]')
@click.option('--iteration-cap', type=int, help='Maximum pans per edge scan [2000]')
@click.option('--alignment-cycles', type=int, help='Overshoot-and-reverse pans before the sweep [3]')
@click.option('--canvas-selector', default='canvas', show_default=True,
              help='CSS selector of the map canvas')
@click.option('--headful', is_flag=True, help='Show the browser window')
@click.option('--chromium', 'executable_path', type=click.Path(exists=True, dir_okay=False),
              help='Path to a Chromium executable')
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
def capture(url: str, output: Path, config_file: Path | None, width: int | None,
            height: int | None, step_fraction: float | None, settle_delay: int | None,
            identical_run: int | None, retries: int | None, iteration_cap: int | None,
            alignment_cycles: int | None, canvas_selector: str, headful: bool,
            executable_path: str | None, verbose: bool):
    """
    Capture a web map canvas and stitch it into one PNG.

    The map is panned until captures stop changing, first horizontally and
    then vertically, to size the grid. The viewport is then walked back to
    its starting corner and swept row by row.
    """
    configure_logging(verbose)

    overrides = {
        'viewport_width': width,
        'viewport_height': height,
        'step_fraction': step_fraction,
        'settle_delay_ms': settle_delay,
        'identical_run_threshold': identical_run,
        'capture_retry_count': retries,
        'edge_scan_iteration_cap': iteration_cap,
        'alignment_cycles': alignment_cycles,
    }

    try:
        base = load_config(config_file).to_dict() if config_file else {}
        base.update({k: v for k, v in overrides.items() if v is not None})
        sweep_config = SweepConfig.from_dict(base)
        browser_config = BrowserConfig(
            url=url,
            headless=not headful,
            canvas_selector=canvas_selector,
            executable_path=executable_path,
        ).validate()
    except MapSweepError as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/]")
        raise click.Abort()

    console.print(f"[bold]Capturing:[/] {url}")
    console.print(f"[bold]Output:[/] {output}")
    console.print(f"[bold]Viewport:[/] {sweep_config.viewport_width}x{sweep_config.viewport_height}, "
                  f"step {sweep_config.step_x}x{sweep_config.step_y}px")
    console.print()

    try:
        result = asyncio.run(capture_map(browser_config, sweep_config, output))
    except MapSweepError as e:
        console.print(f"[red]✗ Capture failed: {e}[/]")
        raise click.Abort()

    width_px, height_px = result.grid.composite_size
    console.print()
    console.print("[green]✓ Capture complete[/]")
    console.print(f"  Grid: [cyan]{result.grid.columns}[/] cols x [cyan]{result.grid.rows}[/] rows "
                  f"({result.tile_count} tiles)")
    console.print(f"  Stitched: [cyan]{width_px} x {height_px}[/] -> {result.output_path}")
    if result.used_fallback:
        console.print("  [yellow]⚠ An edge was only found after reversing the drag direction[/]")


@main.command('stitch')
@click.argument('capture_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('-o', '--output', type=click.Path(dir_okay=False, path_type=Path),
              help=f'Output PNG path (default: CAPTURE_DIR/{STITCHED_NAME})')
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
def stitch_command(capture_dir: Path, output: Path | None, verbose: bool):
    """Re-stitch the tiles of an earlier capture."""
    configure_logging(verbose)

    if output is None:
        output = capture_dir / STITCHED_NAME

    try:
        with console.status("Stitching tiles..."):
            grid, image = stitch_directory(capture_dir)
    except (MapSweepError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]✗ Failed to stitch {capture_dir}: {e}[/]")
        raise click.Abort()

    image.save(output)
    console.print(f"[green]✓[/] Stitched {grid.cell_count} tiles "
                  f"({image.width} x {image.height}) -> {output}")


@main.command()
@click.option('--h-steps', type=int, required=True, help='Horizontal steps to edge')
@click.option('--v-steps', type=int, required=True, help='Vertical steps to edge')
@click.option('--width', type=int, default=1280, show_default=True, help='Tile width')
@click.option('--height', type=int, default=800, show_default=True, help='Tile height')
@click.option('--step-fraction', type=float, default=0.75, show_default=True,
              help='Fraction of the viewport panned per step')
def grid(h_steps: int, v_steps: int, width: int, height: int, step_fraction: float):
    """Show the grid a pair of edge scans would produce."""
    try:
        config = SweepConfig(viewport_width=width, viewport_height=height,
                             step_fraction=step_fraction).validate()
    except MapSweepError as e:
        console.print(f"[red]✗ {e}[/]")
        raise click.Abort()

    spec = build_grid(h_steps, v_steps, width, height, config.overlap_fraction)
    composite_width, composite_height = spec.composite_size

    table = Table(title="Tile grid")
    table.add_column("Property", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Columns", str(spec.columns))
    table.add_row("Rows", str(spec.rows))
    table.add_row("Tiles", str(spec.cell_count))
    table.add_row("Tile size", f"{spec.tile_width} x {spec.tile_height}")
    table.add_row("Step", f"{spec.effective_step_x} x {spec.effective_step_y}")
    table.add_row("Overlap", f"{config.overlap_fraction:.0%}")
    table.add_row("Composite", f"{composite_width} x {composite_height}")
    console.print(table)


if __name__ == '__main__':
    main()
