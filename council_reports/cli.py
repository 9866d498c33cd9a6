"""CLI interface for council reports.

Usage:
    python -m council_reports.cli migrate                 # Create tables
    python -m council_reports.cli seed                    # Load data/seed/council.yaml
    python -m council_reports.cli minutes MEETING_ID      # Meeting minutes
    python -m council_reports.cli performance USER_ID     # Member performance report
    python -m council_reports.cli monthly 2026 3          # Monthly activity report

Report commands take --format (text, json, pdf) and --out (directory).
"""

import logging
import sys
from pathlib import Path

import click

from council_reports.database import DEFAULT_DB_PATH, Database
from council_reports.errors import NotFound, ReportError
from council_reports.models import Caller
from council_reports.render import render_pdf, render_text
from council_reports.reports import (
    build_meeting_minutes,
    build_member_performance,
    build_monthly_activity,
    meeting_filename,
    monthly_filename,
    performance_filename,
)
from council_reports.seed import DEFAULT_SEED_PATH, load_seed

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

FORMAT_SUFFIXES = {"text": ".txt", "json": ".json", "pdf": ".pdf"}


def report_options(f):
    """Options shared by every report command."""
    f = click.option("--format", "fmt", type=click.Choice(sorted(FORMAT_SUFFIXES)),
                     default="text", help="Output format")(f)
    f = click.option("--out", "out_dir", type=click.Path(file_okay=False, path_type=Path),
                     default=None, help="Write the report into this directory instead of stdout")(f)
    return f


def _write(doc, fmt: str, out_dir, filename: str):
    """Print or save a built document in the requested format."""
    if fmt == "pdf" and out_dir is None:
        out_dir = Path(".")
    if out_dir is None:
        click.echo(doc.to_json() if fmt == "json" else render_text(doc))
        return
    path = Path(out_dir) / f"{filename}{FORMAT_SUFFIXES[fmt]}"
    if fmt == "pdf":
        render_pdf(doc, path)
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = doc.to_json() if fmt == "json" else render_text(doc)
        path.write_text(content, encoding="utf-8")
    click.echo(f"Saved {path}")


def _run_report(ctx, build, filename_for):
    db = Database(ctx.obj["db_path"])
    try:
        db.migrate()
        try:
            doc, filename = build(db), filename_for(db)
        except NotFound as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except ReportError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(2)
        _write(doc, ctx.obj["fmt"], ctx.obj["out_dir"], filename)
    finally:
        db.close()


@click.group()
@click.option("--db", default=str(DEFAULT_DB_PATH), envvar="COUNCIL_REPORTS_DB",
              help="Database path")
@click.option("--caller-name", default="Council Secretary", envvar="COUNCIL_REPORTS_CALLER",
              help="Name shown as the report requester")
@click.option("--caller-role", default="Secretary", help="Role shown as the report requester")
@click.pass_context
def cli(ctx, db, caller_name, caller_role):
    """Council meeting and member performance reports"""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["caller"] = Caller(name=caller_name, role=caller_role)


@cli.command()
@click.pass_context
def migrate(ctx):
    """Create database tables."""
    db = Database(ctx.obj["db_path"])
    try:
        db.migrate()
        click.echo(f"Database ready at {db.db_path}")
    finally:
        db.close()


@cli.command()
@click.argument("seed_path", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def seed(ctx, seed_path):
    """Load members and meetings from a YAML seed file."""
    db = Database(ctx.obj["db_path"])
    try:
        db.migrate()
        try:
            counts = load_seed(db, seed_path or DEFAULT_SEED_PATH)
        except FileNotFoundError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"Loaded {counts['users_loaded']} members, "
                   f"{counts['meetings_loaded']} meetings")
    finally:
        db.close()


@cli.command()
@click.argument("meeting_id")
@report_options
@click.pass_context
def minutes(ctx, meeting_id, fmt, out_dir):
    """Build the official minutes for a meeting."""
    ctx.obj.update(fmt=fmt, out_dir=out_dir)
    _run_report(
        ctx,
        lambda db: build_meeting_minutes(db, meeting_id, ctx.obj["caller"]),
        lambda db: meeting_filename(meeting_id),
    )


@cli.command()
@click.argument("user_id")
@report_options
@click.pass_context
def performance(ctx, user_id, fmt, out_dir):
    """Build the performance report for a member."""
    ctx.obj.update(fmt=fmt, out_dir=out_dir)
    _run_report(
        ctx,
        lambda db: build_member_performance(db, user_id, ctx.obj["caller"]),
        lambda db: performance_filename(db.get_user(user_id)),
    )


@cli.command()
@click.argument("year", type=click.IntRange(1900, 9999))
@click.argument("month", type=click.IntRange(1, 12))
@report_options
@click.pass_context
def monthly(ctx, year, month, fmt, out_dir):
    """Build the monthly activity report for YEAR MONTH."""
    ctx.obj.update(fmt=fmt, out_dir=out_dir)
    _run_report(
        ctx,
        lambda db: build_monthly_activity(db, year, month, ctx.obj["caller"]),
        lambda db: monthly_filename(year, month),
    )


if __name__ == "__main__":
    cli()
