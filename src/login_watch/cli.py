"""Command-line interface for Login Watch.

This module provides Typer CLI commands for replaying recorded login
attempts through the anomaly engine and writing reports.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from login_watch import __version__
from login_watch.config import EngineConfig
from login_watch.engine import AnomalyEngine
from login_watch.exceptions import LoginWatchError
from login_watch.ingest import parse_jsonl
from login_watch.report import generate_alerts_json, generate_alerts_md, generate_stats_json

# Create Typer app
app = typer.Typer(
    name="login-watch",
    help="Login Watch: authentication anomaly detection engine",
    add_completion=False,
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging.

    Args:
        debug: Enable debug level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.command()
def analyze(
    input: Path = typer.Option(
        ...,
        "--input", "-i",
        help="Path to JSONL file of login attempts",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    outdir: Path = typer.Option(
        Path("out"),
        "--outdir", "-o",
        help="Output directory for reports",
    ),
    speed_threshold: Optional[float] = typer.Option(
        None,
        "--speed-threshold",
        help="Impossible travel speed ceiling (km/h) [default: 1000]",
    ),
    max_attempts_per_hour: Optional[int] = typer.Option(
        None,
        "--max-attempts-per-hour",
        help="Attempts per hour above which activity is automated [default: 20]",
    ),
    retention_days: Optional[int] = typer.Option(
        None,
        "--retention-days",
        help="Retention horizon (days) [default: 30]",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
) -> None:
    """Replay login attempts through the engine and write reports.

    Attempts are analyzed in timestamp order; thresholds not given on the
    command line come from LOGIN_WATCH_* environment variables.
    """
    setup_logging(debug)
    logger = logging.getLogger(__name__)

    logger.info(f"Login Watch v{__version__}")
    logger.info(f"Analyzing: {input}")

    try:
        config = EngineConfig.from_env().with_overrides(
            travel_speed_ceiling_kmh=speed_threshold,
            attack_volume_threshold=max_attempts_per_hour,
            retention_days=retention_days,
        )
    except LoginWatchError as e:
        typer.echo(f"Error: {e.message}")
        raise typer.Exit(1)

    outdir.mkdir(parents=True, exist_ok=True)

    # Step 1: Ingest
    logger.info("Step 1/3: Ingesting attempts...")
    attempts = parse_jsonl(input)
    attempts.sort(key=lambda a: a.timestamp)

    # Step 2: Detect
    logger.info("Step 2/3: Running detectors...")
    # Retention is measured from the last replayed attempt, not wall-clock time
    replay_end = attempts[-1].timestamp if attempts else datetime.now(timezone.utc)
    engine = AnomalyEngine(config=config, clock=lambda: replay_end)
    for attempt in attempts:
        engine.analyze_login_attempt(attempt)
    summary = engine.cleanup()
    alerts = engine.alerts.all()
    stats = engine.anomaly_stats()
    logger.info(f"  Generated {len(alerts)} alerts ({summary.alerts_removed} past retention)")

    # Step 3: Generate reports
    logger.info("Step 3/3: Generating reports...")

    alerts_path = outdir / "alerts.json"
    stats_path = outdir / "stats.json"
    report_path = outdir / "alerts.md"

    generate_alerts_json(alerts, alerts_path)
    generate_stats_json(stats, stats_path)
    generate_alerts_md(alerts, stats, report_path)

    # Summary
    typer.echo("")
    typer.echo("=" * 60)
    typer.echo("  ANALYSIS COMPLETE")
    typer.echo("=" * 60)
    typer.echo(f"  Attempts parsed:  {len(attempts)}")
    typer.echo(f"  Alerts reported:  {len(alerts)}")
    typer.echo(f"  Alerts purged:    {summary.alerts_removed} (older than {config.retention_days} days)")
    typer.echo("")
    typer.echo("  Output files:")
    typer.echo(f"    - {alerts_path}")
    typer.echo(f"    - {stats_path}")
    typer.echo(f"    - {report_path}")
    typer.echo("=" * 60)

    if stats.alerts_by_type:
        typer.echo("")
        typer.echo("  Alerts by Type:")
        for alert_type, count in sorted(stats.alerts_by_type.items(), key=lambda x: -x[1]):
            typer.echo(f"    {alert_type}: {count}")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"Login Watch v{__version__}")


if __name__ == "__main__":
    app()
