"""Shorecast CLI: import, query, and predict over coastal-erosion data."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from pathlib import Path

import click

from shorecast import __version__
from shorecast.config import ShorecastConfig, load_config
from shorecast.errors import ShorecastError
from shorecast.ingest.orchestrator import ImportResult
from shorecast.store.sqlite import RecordStore, StoredRecord

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _get_config(ctx: click.Context) -> ShorecastConfig:
    """Load config, attaching it to the Click context."""
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config()
        except ShorecastError as exc:
            raise click.ClickException(str(exc)) from exc
    return ctx.obj["config"]


def _get_store(ctx: click.Context) -> RecordStore:
    """Open the record store, closing it when the command finishes."""
    if "store" not in ctx.obj:
        config = _get_config(ctx)
        try:
            store = RecordStore(config.store_file)
        except ShorecastError as exc:
            raise click.ClickException(str(exc)) from exc
        ctx.obj["store"] = store
        ctx.call_on_close(store.close)
    return ctx.obj["store"]


def _parse_iso_date(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise click.BadParameter("expected YYYY-MM-DD") from exc


def _echo_result(result: ImportResult | None, skipped_message: str = "") -> None:
    if result is None:
        click.echo(skipped_message)
    elif result.ok:
        click.echo(f"Import completed successfully: {result.records_imported:,} records")
    else:
        click.echo(f"Import failed: {result.error}", err=True)
        raise SystemExit(1)


def _echo_record(stored: StoredRecord) -> None:
    r = stored.record
    click.echo(
        f"  [{stored.id}] {r.transect_id or '-'}  "
        f"({r.latitude}, {r.longitude})  "
        f"{r.region or '-'} / {r.location or '-'}  "
        f"{r.measurement_date or '-'}  rate={r.erosion_rate}"
    )


# ======================================================================
# Root group
# ======================================================================


@click.group()
@click.version_option(__version__, prog_name="shorecast")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def main(ctx: click.Context, log_level: str) -> None:
    """Shorecast: coastal-erosion dataset ingestion and query tooling."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


# ======================================================================
# init
# ======================================================================


@main.command()
@click.option("--name", default="shorecast", help="Project name.")
@click.option(
    "--path",
    type=click.Path(),
    default=".",
    help="Directory to initialize (default: current directory).",
)
@click.option("--source", default=None, help="Dataset URL or path to import from.")
def init(name: str, path: str, source: str | None) -> None:
    """Initialize a new Shorecast project."""
    root = Path(path).resolve()

    config = ShorecastConfig(project_name=name, project_root=root)
    if source:
        config.imports.source_url = source
    config.save()

    with RecordStore(config.store_file):
        pass

    click.echo(f"Initialized shorecast project '{name}' at {root}")
    click.echo(f"  config: {root / 'shorecast.toml'}")
    click.echo(f"  store:  {config.store_file}")
    click.echo(f"  source: {config.imports.source_url}")


# ======================================================================
# import / init-data / refresh / schedule
# ======================================================================


@main.command("import")
@click.option("--source", default=None, help="Override the configured source.")
@click.pass_context
def import_cmd(ctx: click.Context, source: str | None) -> None:
    """Import the dataset now (manual trigger)."""
    from shorecast.triggers import trigger_import

    config = _get_config(ctx)
    store = _get_store(ctx)
    if source:
        config.imports.source_url = source

    _echo_result(trigger_import(config, store))


@main.command("init-data")
@click.pass_context
def init_data(ctx: click.Context) -> None:
    """Import only if enabled and the store is empty (startup trigger)."""
    from shorecast.triggers import initialize_data

    config = _get_config(ctx)
    store = _get_store(ctx)
    _echo_result(
        initialize_data(config, store),
        "Skipped: import disabled or store already populated.",
    )


@main.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Run one periodic refresh."""
    from shorecast.triggers import refresh_data

    config = _get_config(ctx)
    store = _get_store(ctx)
    _echo_result(refresh_data(config, store), "Skipped: import disabled.")


@main.command()
@click.option(
    "--interval-seconds",
    type=float,
    default=None,
    help="Refresh interval (default: import.refresh_interval_days).",
)
@click.pass_context
def schedule(ctx: click.Context, interval_seconds: float | None) -> None:
    """Run the startup import, then refresh periodically until interrupted."""
    from shorecast.triggers import run_refresh_loop

    config = _get_config(ctx)
    store = _get_store(ctx)
    stop = threading.Event()
    interval = interval_seconds or config.imports.refresh_interval_seconds
    click.echo(f"Refreshing every {interval:,.0f}s; press Ctrl-C to stop.")
    try:
        run_refresh_loop(config, store, stop, interval_seconds=interval)
    except KeyboardInterrupt:
        stop.set()
        click.echo("Stopped.")


# ======================================================================
# status
# ======================================================================


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show record count and recent import runs."""
    config = _get_config(ctx)
    store = _get_store(ctx)

    click.echo(f"Project: {config.project_name}")
    click.echo(f"Source:  {config.imports.source_url}")
    click.echo(f"Import:  {'enabled' if config.imports.enabled else 'disabled'}")
    click.echo(f"Records: {store.count():,}")

    runs = store.get_import_runs()
    if runs:
        click.echo(f"\nImport runs: {len(runs)}")
        for run in runs[-5:]:
            line = f"  - {run.run_id} {run.status} {run.record_count:,} records ({run.finished_at})"
            if run.message:
                line += f": {run.message}"
            click.echo(line)


# ======================================================================
# records / regions / locations / high-erosion / nearby
# ======================================================================


@main.command()
@click.option("--region", default=None, help="Exact region (case-insensitive).")
@click.option("--location", default=None, help="Location substring (case-insensitive).")
@click.option("--start", callback=_parse_iso_date, default=None, help="Earliest date (YYYY-MM-DD).")
@click.option("--end", callback=_parse_iso_date, default=None, help="Latest date (YYYY-MM-DD).")
@click.option("--min-rate", type=float, default=None, help="Erosion rate threshold.")
@click.option("--page", type=int, default=None, help="Zero-based page number.")
@click.option("--size", type=int, default=100, show_default=True, help="Page size.")
@click.pass_context
def records(
    ctx: click.Context,
    region: str | None,
    location: str | None,
    start: date | None,
    end: date | None,
    min_rate: float | None,
    page: int | None,
    size: int,
) -> None:
    """List stored records (first 1000 unless paginated or filtered)."""
    store = _get_store(ctx)

    filtered = any(v is not None for v in (region, location, start, end, min_rate))
    if filtered:
        rows = store.find_by_filter(
            region=region,
            location=location,
            start=start,
            end=end,
            min_erosion_rate=min_rate,
        )
    elif page is not None:
        rows = store.find_all(limit=size, offset=page * size)
    else:
        rows = store.find_all(limit=1000)

    click.echo(f"{len(rows):,} record(s)")
    for stored in rows:
        _echo_record(stored)


@main.command()
@click.pass_context
def regions(ctx: click.Context) -> None:
    """List distinct regions."""
    for region in _get_store(ctx).distinct_regions():
        click.echo(region)


@main.command()
@click.pass_context
def locations(ctx: click.Context) -> None:
    """List distinct locations."""
    for location in _get_store(ctx).distinct_locations():
        click.echo(location)


@main.command("high-erosion")
@click.option("--threshold", type=float, default=1.0, show_default=True)
@click.pass_context
def high_erosion(ctx: click.Context, threshold: float) -> None:
    """List records whose erosion rate exceeds THRESHOLD, highest first."""
    rows = _get_store(ctx).find_high_erosion(threshold)
    click.echo(f"{len(rows):,} record(s)")
    for stored in rows:
        _echo_record(stored)


@main.command()
@click.argument("longitude", type=float)
@click.argument("latitude", type=float)
@click.option("--radius-km", type=float, default=10.0, show_default=True)
@click.pass_context
def nearby(ctx: click.Context, longitude: float, latitude: float, radius_km: float) -> None:
    """List records within --radius-km of LONGITUDE LATITUDE, nearest first.

    Use ``--`` before a negative longitude, e.g. ``shorecast nearby -- -70.9 42.3``.
    """
    rows = _get_store(ctx).find_nearby(longitude, latitude, radius_km)
    click.echo(f"{len(rows):,} record(s)")
    for stored in rows:
        _echo_record(stored)


# ======================================================================
# predict
# ======================================================================


@main.command()
@click.argument("sea_level", type=float)
@click.argument("erosion_rate", type=float)
@click.argument("precipitation", type=float)
@click.option("--region", default=None)
@click.option("--date", "date_", default=None)
def predict(
    sea_level: float,
    erosion_rate: float,
    precipitation: float,
    region: str | None,
    date_: str | None,
) -> None:
    """Predict the likelihood of coastal change (0 to 1)."""
    from shorecast.prediction import predict as run_prediction

    result = run_prediction(
        sea_level, erosion_rate, precipitation, region=region, date=date_
    )
    click.echo(f"Likelihood: {result.likelihood:.4f}")


if __name__ == "__main__":
    main()
