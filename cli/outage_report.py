"""Outage impact report CLI.

Loads a station CSV, applies feeder/substation toggles, and prints the
consumer totals, the feeder table or a page of substations. Can also
export the normalized stations and publish/fetch the status snapshot.

Usage:
  python -m cli.outage_report --csv data/feeders_substations.csv
  python -m cli.outage_report --csv stations.csv --feeder-off "Feeder 2" feeders
  python -m cli.outage_report --csv stations.csv stations --search bal --affected-only
  python -m cli.outage_report --csv stations.csv stations --feeder "Feeder 1" --page 2
  python -m cli.outage_report --csv stations.csv export out.csv
  python -m cli.outage_report --csv stations.csv publish --url http://localhost:8000
  python -m cli.outage_report status --url http://localhost:8000
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-7s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def load_state(args):
    """Build a DashboardState from --csv plus the toggle flags."""
    from adapters.station_csv import import_station_csv, load_import_config
    from app.config import settings
    from core.dashboard_state import DashboardState

    state = DashboardState(config=load_import_config())
    csv_path = Path(args.csv) if args.csv else settings.DEFAULT_CSV_PATH
    if not csv_path.exists():
        logger.warning(f"Station CSV not found at {csv_path}: starting empty")
        return state

    try:
        result = import_station_csv(state, csv_path.read_text(encoding="utf-8"))
    except ValueError as e:
        logger.error(f"Could not parse {csv_path}: {e}")
        return state
    logger.info(
        f"Loaded {result.stations_loaded} stations from {csv_path} "
        f"({result.rows_dropped} dropped, {len(result.warnings)} warnings)"
    )

    for feeder in args.feeder_off or []:
        if not state.feeder_out.get(feeder, False):
            state.toggle_feeder(feeder)
    for station_id in args.toggle_station or []:
        try:
            state.toggle_station(station_id)
        except KeyError:
            logger.warning(f"No station with id {station_id}")
    return state


def cmd_summary(args):
    """Print global consumer and substation totals."""
    state = load_state(args)
    summary = state.summary()
    totals, counts = summary.totals, summary.counts

    print("\n=== Outage Summary ===\n")
    print(f"{'Affected consumers':<22} {totals.affected:>10,}")
    print(f"{'Healthy consumers':<22} {totals.healthy:>10,}")
    print(f"{'Total consumers':<22} {totals.total:>10,}")
    print(f"{'Affected percentage':<22} {totals.pct:>9}%")
    print()
    print(f"Substations OFF: {counts.subs_off:,} / {counts.subs_total:,} ({counts.off_pct}%)")
    print(f"Substations ON:  {counts.subs_on:,}")


def cmd_feeders(args):
    """Print the per-feeder rollup table."""
    state = load_state(args)
    feeders = state.summary().feeders

    print(f"\n{'Feeder':<30} {'State':>5} {'Total':>10} {'Affected':>10} {'%':>6} {'Subs OFF':>9}")
    print("-" * 75)
    for g in feeders:
        flag = "OFF" if g.feeder_out else "ON"
        print(
            f"{g.name[:30]:<30} {flag:>5} {g.total:>10,} {g.affected:>10,} "
            f"{g.pct:>6} {g.counts.subs_off:>4}/{g.counts.subs_total:<4}"
        )
    if not feeders:
        print("No stations loaded.")


def cmd_stations(args):
    """Print one page of the filtered substation list."""
    state = load_state(args)
    view = state.view
    view.set_search(args.search or "")
    view.set_affected_only(args.affected_only)
    view.set_feeder(args.feeder)
    view.set_page_size(args.page_size)
    view.go_to(args.page)
    result = state.query()

    print(f"\n{'Feeder':<24} {'Substation':<28} {'Consumers':>10} {'Own':>4} {'Eff':>4}")
    print("-" * 74)
    for r in result.rows:
        own = "OFF" if r.station.is_out else "ON"
        eff = "OFF" if r.eff_out else "ON"
        print(f"{r.feeder[:24]:<24} {r.name[:28]:<28} {r.consumers:>10,} {own:>4} {eff:>4}")
    if not result.rows:
        print("No rows match this search.")
    print(
        f"\nShowing {result.start}-{result.end} of {result.total_rows} "
        f"(page {result.page}/{result.total_pages})"
    )


def cmd_export(args):
    """Write the normalized stations to a CSV file."""
    from adapters.station_csv import export_station_csv

    state = load_state(args)
    out = Path(args.output)
    out.write_text(export_station_csv(state.stations), encoding="utf-8")
    print(f"Wrote {len(state.stations)} stations to {out}")


def cmd_publish(args):
    """Publish the current snapshot to a status store."""
    from adapters.snapshot_client import SnapshotClient
    from app.config import settings

    state = load_state(args)
    client = SnapshotClient(args.url or settings.STATUS_URL, timeout=settings.SNAPSHOT_TIMEOUT)
    if not client.publish_snapshot(state.snapshot()):
        print(f"Publish to {client.status_url} failed")
        sys.exit(1)
    print(f"Published snapshot to {client.status_url}")


def cmd_status(args):
    """Fetch and print the last published snapshot."""
    from adapters.snapshot_client import SnapshotClient
    from app.config import settings

    client = SnapshotClient(args.url or settings.STATUS_URL, timeout=settings.SNAPSHOT_TIMEOUT)
    snap = client.fetch_snapshot()
    if snap is None:
        print(f"Could not read {client.status_url}")
        sys.exit(1)

    print("\n=== Published Status ===\n")
    print(f"Affected: {snap['affected']:,} of {snap['total']:,} ({snap['pct']}%)")
    print(f"Healthy:  {snap['healthy']:,}")
    print(f"Substations OFF: {snap['subsOff']:,} / {snap['subsTotal']:,} ({snap['offPct']}%)")
    print(f"Updated:  {snap['updatedAt'] or 'never'}")


def main():
    parser = argparse.ArgumentParser(description="Outage impact report")
    parser.add_argument("--csv", help="Station CSV (default: DEFAULT_CSV_PATH)")
    parser.add_argument(
        "--feeder-off", action="append", metavar="FEEDER",
        help="Force a feeder OFF (repeatable)",
    )
    parser.add_argument(
        "--toggle-station", action="append", metavar="ID",
        help="Flip a substation's own outage flag (repeatable)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("summary", help="Consumer and substation totals")
    sub.add_parser("feeders", help="Per-feeder rollup table")

    p_stations = sub.add_parser("stations", help="Filtered, paged substation list")
    p_stations.add_argument("--search", default="", help="Substring of station or feeder name")
    p_stations.add_argument("--affected-only", action="store_true")
    p_stations.add_argument("--feeder", default="ALL", help="Feeder name or ALL")
    p_stations.add_argument("--page", type=int, default=1)
    p_stations.add_argument("--page-size", default="50", help="25, 50, 100, 200 or all")

    p_export = sub.add_parser("export", help="Write normalized stations CSV")
    p_export.add_argument("output", help="Output CSV path")

    p_publish = sub.add_parser("publish", help="Publish snapshot to a status store")
    p_publish.add_argument("--url", help="Status store base URL (default: STATUS_URL)")

    p_status = sub.add_parser("status", help="Show the published snapshot")
    p_status.add_argument("--url", help="Status store base URL (default: STATUS_URL)")

    args = parser.parse_args()

    if args.command == "feeders":
        cmd_feeders(args)
    elif args.command == "stations":
        cmd_stations(args)
    elif args.command == "export":
        cmd_export(args)
    elif args.command == "publish":
        cmd_publish(args)
    elif args.command == "status":
        cmd_status(args)
    else:
        cmd_summary(args)


if __name__ == "__main__":
    main()
