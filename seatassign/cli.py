"""Command-line interface for seatassign."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from seatassign.batch import run_day
from seatassign.output import format_day_result, format_day_result_csv, format_proposal
from seatassign.parser import (
    SnapshotError,
    YamlUpdateSink,
    bookings_for_day,
    create_snapshot_template,
    load_snapshot,
)
from seatassign.seating import propose_seating


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seatassign",
        description="Assign zones and tables to reservations.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  seatassign template venue.yaml
  seatassign run-day venue.yaml --date 2026-10-16
  seatassign run-day venue.yaml --date 2026-10-16 --apply --write updates.yaml
  seatassign suggest venue.yaml --booking b-001
""",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log engine decisions to stderr",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run-day", help="Allocate every booking of a day")
    run.add_argument("snapshot", type=Path, help="Path to the snapshot YAML file")
    run.add_argument(
        "--date",
        required=True,
        type=date.fromisoformat,
        help="Day to allocate (YYYY-MM-DD)",
    )
    run.add_argument(
        "--apply",
        action="store_true",
        help="Commit the results (default: dry run)",
    )
    run.add_argument(
        "--write",
        type=Path,
        help="In apply mode, write the allocation updates to this YAML file",
    )
    run.add_argument(
        "--csv",
        action="store_true",
        help="Print items as CSV instead of a report",
    )

    suggest = commands.add_parser("suggest", help="Propose seating for one booking")
    suggest.add_argument("snapshot", type=Path, help="Path to the snapshot YAML file")
    suggest.add_argument("--booking", required=True, help="Booking id")

    template = commands.add_parser("template", help="Write an example snapshot file")
    template.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=Path("seating_template.yaml"),
        help="Path for the template (default: seating_template.yaml)",
    )
    return parser


def _load(path: Path):
    if not path.exists():
        print(f"Error: Snapshot file not found: {path}", file=sys.stderr)
        return None
    try:
        return load_snapshot(path)
    except SnapshotError as e:
        print(f"Error parsing snapshot: {e}", file=sys.stderr)
        return None


def _run_day(args) -> int:
    snapshot = _load(args.snapshot)
    if snapshot is None:
        return 1
    if args.write and not args.apply:
        print("Error: --write requires --apply", file=sys.stderr)
        return 1

    date_key = args.date.isoformat()
    bookings = bookings_for_day(snapshot.bookings, args.date)
    sink = YamlUpdateSink(args.write) if args.write else None
    result = run_day(
        date_key,
        "apply" if args.apply else "dryRun",
        bookings,
        snapshot.catalog,
        snapshot.settings,
        sink=sink,
    )
    if sink is not None:
        sink.flush(date_key)

    if args.csv:
        print(format_day_result_csv(result))
    else:
        print(format_day_result(result, snapshot.catalog))
        if sink is not None:
            print(f"\nWrote {len(sink.updates)} updates to {args.write}")
    return 0


def _suggest(args) -> int:
    snapshot = _load(args.snapshot)
    if snapshot is None:
        return 1
    booking = snapshot.booking(args.booking)
    if booking is None:
        print(f"Error: Unknown booking: {args.booking}", file=sys.stderr)
        return 1

    same_day = snapshot.bookings
    if booking.start_time is not None:
        same_day = bookings_for_day(snapshot.bookings, booking.start_time.date())
    proposal = propose_seating(booking, snapshot.catalog, snapshot.settings, same_day)
    print(format_proposal(proposal, snapshot.catalog))
    return 0


def _template(args) -> int:
    create_snapshot_template(args.output)
    print(f"Created template at: {args.output}")
    print("Edit this file to describe your venue and bookings, then run again.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for seatassign CLI."""
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run-day":
        return _run_day(args)
    if args.command == "suggest":
        return _suggest(args)
    return _template(args)


if __name__ == "__main__":
    sys.exit(main())
