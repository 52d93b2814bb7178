import json
import logging
from pathlib import Path
from typing import Optional
import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler

from .config import DEFAULT_BUFFER, DEFAULT_HEIGHT, DEFAULT_POWER, DEFAULT_RESOLUTION, DEFAULT_WIDTH, IDWConfig
from .grid import write_geotiff
from .io import read_points_csv
from .pipeline import interpolate, summarize
from .render import draw_raster, make_legend_png, rasterize
from .report import make_report_html

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, '--verbose', '-v', help='Debug logging')):
    """Soil moisture maps from point samples via IDW."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config(power: float, resolution: float, buffer: float) -> IDWConfig:
    try:
        return IDWConfig(power=power, resolution=resolution, buffer=buffer)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _load(input: Path, lat: Optional[str], lon: Optional[str], value: Optional[str]):
    try:
        return read_points_csv(str(input), lat=lat, lon=lon, value=value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint='--input')


@app.command()
def build_map(
    input: Path = typer.Option(..., exists=True, help='Input CSV (lat, lon, moisture)'),
    lat: str = typer.Option(None, help='Latitude column'),
    lon: str = typer.Option(None, help='Longitude column'),
    value: str = typer.Option(None, help='Moisture column'),
    power: float = typer.Option(DEFAULT_POWER, help='IDW distance exponent'),
    resolution: float = typer.Option(DEFAULT_RESOLUTION, help='Grid step (degrees)'),
    buffer: float = typer.Option(DEFAULT_BUFFER, help='Margin beyond the samples (degrees)'),
    width: int = typer.Option(DEFAULT_WIDTH, min=1, help='Image width (px)'),
    height: int = typer.Option(DEFAULT_HEIGHT, min=1, help='Image height (px)'),
    out: Path = typer.Option(..., help='Output PNG path'),
    geotiff: Path = typer.Option(None, help='Also write the field as GeoTIFF'),
    report: Path = typer.Option(None, help='Also write an HTML report'),
):
    """Interpolate samples and render the moisture map PNG."""
    config = _config(power, resolution, buffer)
    samples = _load(input, lat, lon, value)
    field = interpolate(samples, config)
    if field is None:
        print('[red]No valid samples[/red]: nothing to render')
        raise typer.Exit(code=1)

    img = draw_raster(rasterize(field, samples, width, height), width, height)
    out.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(out), 'PNG')
    print(f'[green]Wrote map[/green]: {out}')

    if geotiff:
        geotiff.parent.mkdir(parents=True, exist_ok=True)
        write_geotiff(str(geotiff), field, config.resolution)
        print(f'[green]Wrote GeoTIFF[/green]: {geotiff}')
    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        html = make_report_html(field, config, len(samples), image=img, source=str(input))
        report.write_text(html, encoding='utf-8')
        print(f'[green]Wrote report[/green]: {report}')


@app.command()
def legend(
    vmin: float = typer.Option(..., help='Low end of the ramp'),
    vmax: float = typer.Option(..., help='High end of the ramp'),
    out: Path = typer.Option(..., help='Output PNG path'),
    title: str = typer.Option('Soil moisture', help='Legend title'),
):
    """Write a color ramp legend PNG."""
    out.parent.mkdir(parents=True, exist_ok=True)
    make_legend_png(vmin, vmax, str(out), title=title)
    print(f'[green]Wrote legend[/green]: {out}')


@app.command()
def summary(
    input: Path = typer.Option(..., exists=True, help='Input CSV (lat, lon, moisture)'),
    lat: str = typer.Option(None, help='Latitude column'),
    lon: str = typer.Option(None, help='Longitude column'),
    value: str = typer.Option(None, help='Moisture column'),
    power: float = typer.Option(DEFAULT_POWER, help='IDW distance exponent'),
    resolution: float = typer.Option(DEFAULT_RESOLUTION, help='Grid step (degrees)'),
    buffer: float = typer.Option(DEFAULT_BUFFER, help='Margin beyond the samples (degrees)'),
):
    """Print min/max moisture and the IDW power as JSON."""
    config = _config(power, resolution, buffer)
    samples = _load(input, lat, lon, value)
    field = interpolate(samples, config)
    if field is None:
        print('[yellow]No valid samples[/yellow]')
        raise typer.Exit(code=1)
    s = summarize(field, config)
    rows, cols = field.lattice.shape
    res = {'min_value': s.min_value, 'max_value': s.max_value, 'power': s.power,
           'samples': len(samples), 'rows': rows, 'cols': cols}
    print(json.dumps(res, indent=2))


if __name__ == '__main__':
    app()
