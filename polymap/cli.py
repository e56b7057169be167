"""Command-line interface for polymap."""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import get_config
from .exceptions import PolymapError
from .models.settings import RenderSettings
from .models.style import MapStyleConfig
from .services.cache_service import CacheService
from .services.job_service import JobInfo, JobService, JobStatus
from .services.kml_service import KmlService
from .services.osm_service import OSMService
from .services.render_service import RenderService
from .utils.geo_utils import bbox_extent_meters

console = Console()

STATUS_COLORS = {
    JobStatus.COMPLETED: "green",
    JobStatus.NO_BOUNDARY: "yellow",
    JobStatus.NO_FEATURES: "yellow",
    JobStatus.FAILED: "red",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_config().log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_style(style: Optional[str]) -> MapStyleConfig:
    path = Path(style) if style else get_config().style_path
    if path is None:
        return MapStyleConfig()
    console.print(f"[bold]Style:[/bold] {path}")
    return MapStyleConfig.from_yaml(path)


def _load_settings(settings: Optional[str]) -> RenderSettings:
    if settings is None:
        return RenderSettings()
    console.print(f"[bold]Settings:[/bold] {settings}")
    return RenderSettings.from_yaml(Path(settings))


def _build_jobs(
    style: Optional[str],
    settings: Optional[str],
    output: Optional[str],
    workers: Optional[int] = None,
    png: bool = True,
    pdf: bool = True,
) -> JobService:
    config = get_config()
    updates = {}
    if output:
        updates["output_dir"] = Path(output)
    if workers:
        updates["max_workers"] = workers
    if updates:
        config = config.model_copy(update=updates)
    config.ensure_directories()

    osm = OSMService(
        cache=CacheService(config.cache_dir),
        overpass_url=config.overpass_url,
        timeout=config.http_timeout,
    )
    return JobService(
        config,
        _load_style(style),
        _load_settings(settings),
        osm,
        write_png=png,
        write_pdf=pdf,
    )


def _job_table(infos: list[JobInfo]) -> Table:
    table = Table(title="Render jobs")
    table.add_column("Boundary", style="cyan")
    table.add_column("Status")
    table.add_column("Rotation", justify="right")
    table.add_column("Labels", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Outputs / error")

    for info in infos:
        color = STATUS_COLORS.get(info.status, "white")
        rotation = f"{info.rotation:.2f}°" if info.rotation is not None else "-"
        duration = f"{info.duration:.1f}s" if info.duration is not None else "-"
        detail = ", ".join(p.name for p in info.outputs) if info.succeeded else (info.error or "")
        table.add_row(
            info.path.name,
            f"[{color}]{info.status.value}[/{color}]",
            rotation,
            str(info.label_count),
            duration,
            detail,
        )
    return table


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Polymap - print-ready maps confined to a KML boundary."""
    _setup_logging(verbose)


@main.command()
@click.argument("kml_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--osm", "osm_path", type=click.Path(exists=True, dir_okay=False), help="Local OSM file (skips download)")
@click.option("--style", "-s", type=click.Path(exists=True, dir_okay=False), help="Style YAML")
@click.option("--settings", type=click.Path(exists=True, dir_okay=False), help="Render settings YAML")
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Output directory")
@click.option("--png/--no-png", default=True, help="Write a PNG")
@click.option("--pdf/--no-pdf", default=True, help="Write an A4 PDF")
def render(
    kml_path: str,
    osm_path: Optional[str],
    style: Optional[str],
    settings: Optional[str],
    output: Optional[str],
    png: bool,
    pdf: bool,
):
    """Render a map for a single KML boundary."""
    try:
        jobs = _build_jobs(style, settings, output, png=png, pdf=pdf)
    except (OSError, ValueError, PolymapError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[bold]Boundary:[/bold] {kml_path}")
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Rendering map...", total=None)
            info = jobs.run_job(kml_path, osm_path)
            progress.update(task, completed=True, description=f"[{STATUS_COLORS.get(info.status, 'white')}]{info.status.value}")
    finally:
        jobs.osm_service.close()

    if not info.succeeded:
        console.print(f"[red]Error:[/red] {info.error}")
        raise SystemExit(1)

    console.print(f"[bold]Rotation:[/bold] {info.rotation:.2f}°")
    console.print(f"[bold]Labels placed:[/bold] {info.label_count}")
    for path in info.outputs:
        console.print(f"[green]Saved:[/green] {path}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--style", "-s", type=click.Path(exists=True, dir_okay=False), help="Style YAML")
@click.option("--settings", type=click.Path(exists=True, dir_okay=False), help="Render settings YAML")
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Output directory")
@click.option("--workers", "-w", type=click.IntRange(min=1), help="Concurrent jobs")
def batch(
    path: str,
    style: Optional[str],
    settings: Optional[str],
    output: Optional[str],
    workers: Optional[int],
):
    """Render every KML file in a directory concurrently."""
    try:
        jobs = _build_jobs(style, settings, output, workers=workers)
        files = jobs.discover(path)
    except (OSError, ValueError, PolymapError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if not files:
        console.print(f"[yellow]Warning:[/yellow] No .kml files in {path}")
        jobs.osm_service.close()
        return

    console.print(f"[bold]Jobs:[/bold] {len(files)} boundary files, {jobs.config.max_workers} workers")
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Rendering {len(files)} maps...", total=None)
            infos = jobs.run(path)
            progress.update(task, completed=True, description="[green]Batch finished")
    finally:
        jobs.osm_service.close()

    console.print(_job_table(infos))
    failed = [info for info in infos if not info.succeeded]
    if failed:
        console.print(f"[red]{len(failed)} of {len(infos)} jobs did not complete[/red]")
        raise SystemExit(1)


@main.command()
@click.argument("kml_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--settings", type=click.Path(exists=True, dir_okay=False), help="Render settings YAML")
def info(kml_path: str, settings: Optional[str]):
    """Show the boundary, working box and chosen orientation."""
    kml = KmlService()
    try:
        polygon = kml.parse_polygon(kml_path)
    except PolymapError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    render_settings = _load_settings(settings)
    projection, orientation = RenderService(settings=render_settings).project(polygon)
    box = polygon.bounding_box()
    working = projection.working_box

    table = Table(title=f"Boundary: {kml.document_name(kml_path)}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Points", str(len(polygon)))
    table.add_row("Degenerate", "yes" if polygon.is_degenerate else "no")
    table.add_row("North", f"{box.north:.6f}")
    table.add_row("South", f"{box.south:.6f}")
    table.add_row("East", f"{box.east:.6f}")
    table.add_row("West", f"{box.west:.6f}")
    width_m, height_m = bbox_extent_meters(box)
    table.add_row("Extent", f"{width_m:,.0f} x {height_m:,.0f} m")
    table.add_row("Working box", working.to_overpass_bbox())
    table.add_row("Rotation", f"{orientation.angle:.2f}°")
    table.add_row("Line-like", "yes" if orientation.line_like else "no")
    table.add_row("Region scale", f"{projection.scale:.2f} px/°")
    table.add_row("Scale to fit", f"{projection.scale_to_fit:.4f}")
    table.add_row("Working size", f"{projection.working_size[0]} x {projection.working_size[1]} px")
    table.add_row("Page size", f"{render_settings.page.width} x {render_settings.page.height} px")

    console.print(table)


@main.command("init-style")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--settings", "with_settings", is_flag=True, help="Also write a render settings file next to it")
def init_style(path: str, with_settings: bool):
    """Write the default style to a YAML file for editing."""
    style_path = Path(path)
    style_path.parent.mkdir(parents=True, exist_ok=True)
    MapStyleConfig().to_yaml(style_path)
    console.print(f"[green]Created style:[/green] {style_path}")

    if with_settings:
        settings_path = style_path.with_name(f"{style_path.stem}_settings.yaml")
        RenderSettings().to_yaml(settings_path)
        console.print(f"[green]Created settings:[/green] {settings_path}")


if __name__ == "__main__":
    main()
