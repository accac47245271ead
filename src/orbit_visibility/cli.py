"""
Command-line interface for the orbit visibility engine.

This module provides a CLI for predicting passes, generating ground
tracks and computing footprint and day/night geometry from the command
line.
"""

from pathlib import Path
from typing import List, Optional, Tuple
import csv
import io
import json
import logging
import sys

import click
from tabulate import tabulate

from .aggregator import PassAggregator, SatelliteRecord, summarize_passes
from .config import EngineConfig, load_config
from .elements import find_element_set
from .geometry import footprint_radius_km
from .ground_track import ground_track
from .observers import ObserverCatalog, ObserverLocation
from .passes import TimeWindow, VisibilityPass
from .sunlight import subsolar_point, terminator
from .utils import (
    create_sample_tle_file, current_time_ms, datetime_to_ms, format_duration,
    format_timestamp, parse_datetime, setup_logging,
)

logger = logging.getLogger(__name__)


def _resolve_time_ms(value: Optional[str]) -> int:
    if value:
        return datetime_to_ms(parse_datetime(value))
    return current_time_ms()


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text)
        click.echo(f"Results saved to: {output}")
    else:
        click.echo(text)


def _passes_as_csv(passes: List[VisibilityPass]) -> str:
    buffer = io.StringIO()
    fieldnames = list(passes[0].to_dict().keys()) if passes else ["id"]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for p in passes:
        writer.writerow(p.to_dict())
    return buffer.getvalue()


def _passes_as_table(passes: List[VisibilityPass]) -> str:
    rows = [
        [
            p.satellite_name,
            p.observer_name,
            format_timestamp(p.aos_ms),
            format_timestamp(p.los_ms),
            f"{p.duration_minutes} min",
            f"{p.max_elevation_deg:.1f}°",
        ]
        for p in passes
    ]
    return tabulate(
        rows,
        headers=["Satellite", "Station", "AOS (UTC)", "LOS (UTC)", "Duration", "Max Elevation"],
        tablefmt="simple",
    )


@click.group()
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level (default: from config, INFO)')
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_path', type=click.Path(),
              help='YAML engine configuration file')
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str], log_file: Optional[str],
         config_path: Optional[str]) -> None:
    """Orbit Visibility - satellite pass prediction and ground track tool."""
    config = load_config(config_path)
    setup_logging(log_level or config.log_level, log_file)
    ctx.obj = config


@main.command()
@click.option('--tle', required=True, type=click.Path(exists=True),
              help='Path to TLE file')
@click.option('--satellite', 'satellites', required=True, multiple=True,
              help='Satellite name as in the TLE file (can specify multiple)')
@click.option('--station', 'stations', multiple=True, nargs=4,
              metavar='ID NAME LAT LON',
              help='Ground station: id name latitude longitude (can specify multiple)')
@click.option('--stations', 'stations_file', type=click.Path(exists=True),
              help='JSON or YAML file with ground station definitions')
@click.option('--start-time', type=str,
              help='Start time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--hours', default=24.0, type=float,
              help='Search window length in hours (default: 24)')
@click.option('--min-elevation', type=float,
              help='Minimum elevation angle in degrees (default: from config)')
@click.option('--step-seconds', type=float,
              help='Sampling step in seconds (default: from config)')
@click.option('--format', 'output_format', default='table',
              type=click.Choice(['table', 'json', 'csv']),
              help='Output format')
@click.option('--output', type=click.Path(), help='Write results to file')
@click.pass_obj
def passes(
    config: EngineConfig,
    tle: str,
    satellites: Tuple[str, ...],
    stations: List[tuple],
    stations_file: Optional[str],
    start_time: Optional[str],
    hours: float,
    min_elevation: Optional[float],
    step_seconds: Optional[float],
    output_format: str,
    output: Optional[str],
) -> None:
    """Predict passes of satellites over ground stations.

    Example:
    passes --tle data.tle --satellite "ISS" --station gs1 Darmstadt 49.87 8.65
    """
    try:
        observers = list(ObserverCatalog.load_from_file(stations_file)) if stations_file else []
        for station_id, name, lat_str, lon_str in stations:
            observers.append(
                ObserverLocation(station_id, name, float(lat_str), float(lon_str))
            )

        if not observers:
            click.echo("No ground stations specified. Use --station or --stations", err=True)
            sys.exit(1)

        records = []
        for satellite_name in satellites:
            elements = find_element_set(tle, satellite_name)
            records.append(
                SatelliteRecord(id=elements.norad_id, name=elements.name or satellite_name,
                                elements=elements)
            )

        window = TimeWindow.from_start(_resolve_time_ms(start_time), hours)
        step_ms = int(step_seconds * 1000) if step_seconds is not None else config.pass_step_ms
        aggregator = PassAggregator(
            min_elevation_deg=min_elevation if min_elevation is not None else config.min_elevation_deg,
            step_ms=step_ms,
            max_workers=config.max_workers,
            use_parallel=config.use_parallel,
        )
        result = aggregator.aggregate(
            [(record, observer) for record in records for observer in observers], window
        )

        for failure in result.failures:
            click.echo(
                f"Warning: no passes for {failure.satellite_id} over {failure.observer_id}: "
                f"{failure.reason}",
                err=True,
            )

        if output_format == 'json':
            text = json.dumps([p.to_dict() for p in result.passes], indent=2)
        elif output_format == 'csv':
            text = _passes_as_csv(result.passes)
        else:
            stats = summarize_passes(result.passes)
            text = (
                f"Passes in {window}\n\n{_passes_as_table(result.passes)}\n\n"
                f"Total passes: {stats.count}\n"
                f"Total contact time: {format_duration(stats.total_minutes * 60)}\n"
                f"Highest elevation: {stats.highest_elevation_deg:.1f}°"
            )

        _write_output(text, output)

    except Exception as e:
        logger.error(f"Pass prediction failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option('--tle', required=True, type=click.Path(exists=True),
              help='Path to TLE file')
@click.option('--satellite', required=True,
              help='Satellite name (must match name in TLE file)')
@click.option('--center-time', type=str,
              help='Track centre time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--minutes', type=float,
              help='Minutes before and after the centre time (default: from config)')
@click.option('--step-seconds', type=float,
              help='Sampling step in seconds (default: from config)')
@click.option('--output', type=click.Path(), help='Write JSON to file')
@click.pass_obj
def track(
    config: EngineConfig,
    tle: str,
    satellite: str,
    center_time: Optional[str],
    minutes: Optional[float],
    step_seconds: Optional[float],
    output: Optional[str],
) -> None:
    """Generate a satellite ground track split at the antimeridian."""
    try:
        elements = find_element_set(tle, satellite)
        if minutes is None:
            minutes = config.ground_track_half_window_minutes
        if step_seconds is None:
            step_seconds = config.ground_track_step_seconds
        segments = ground_track(
            elements,
            _resolve_time_ms(center_time),
            half_window_minutes=minutes,
            step_seconds=step_seconds,
        )
        data = {
            "satellite": elements.name or satellite,
            "segments": [segment.to_dict() for segment in segments],
        }
        _write_output(json.dumps(data, indent=2), output)

    except Exception as e:
        logger.error(f"Ground track generation failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('altitude_km', type=float)
@click.option('--min-elevation', type=float,
              help='Minimum elevation angle in degrees (default: from config)')
@click.pass_obj
def footprint(config: EngineConfig, altitude_km: float, min_elevation: Optional[float]) -> None:
    """Visibility footprint radius for a satellite altitude."""
    min_el = min_elevation if min_elevation is not None else config.min_elevation_deg
    radius = footprint_radius_km(altitude_km, min_el, config.max_footprint_radius_km)
    click.echo(f"Footprint radius at {altitude_km:.1f} km (mask {min_el:.1f}°): {radius:.1f} km")


@main.command()
@click.option('--time', 'time_str', type=str,
              help='UTC time (YYYY-MM-DD HH:MM:SS, default: now)')
def subsolar(time_str: Optional[str]) -> None:
    """Point on Earth directly beneath the Sun."""
    try:
        point = subsolar_point(_resolve_time_ms(time_str))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Subsolar point: {point.latitude_deg:.3f}°, {point.longitude_deg:.3f}°")


@main.command(name='terminator')
@click.option('--time', 'time_str', type=str,
              help='UTC time (YYYY-MM-DD HH:MM:SS, default: now)')
@click.option('--points', default=181, type=int, help='Number of samples (default: 181)')
@click.option('--output', type=click.Path(), help='Write JSON to file')
def terminator_cmd(time_str: Optional[str], points: int, output: Optional[str]) -> None:
    """Day/night terminator as a JSON list of [lat, lon]."""
    try:
        line = terminator(_resolve_time_ms(time_str), points)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _write_output(json.dumps([[round(lat, 4), round(lon, 4)] for lat, lon in line]), output)


@main.command()
@click.option('--output', required=True, type=click.Path(),
              help='Output TLE file path')
def create_sample_tle(output: str) -> None:
    """Create a sample TLE file with common satellites."""
    try:
        create_sample_tle_file(output)
        click.echo(f"Sample TLE file created: {output}")
        click.echo("Contains: ISS, NOAA 18, TERRA")

    except Exception as e:
        logger.error(f"Sample TLE creation failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
