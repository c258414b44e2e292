"""Output formatting for seatassign."""

from collections import defaultdict

from seatassign.catalog import ResourceCatalog
from seatassign.models import DayResult
from seatassign.seating import SeatingProposal, describe_suggestion

STATUS_ORDER = [
    "updated",
    "conflict",
    "no_fit",
    "skipped_locked",
    "skipped_invalid",
    "error",
]


def _tables_label(table_ids: tuple[str, ...], catalog: ResourceCatalog) -> str:
    return ", ".join(catalog.table_name(tid) for tid in table_ids) or "-"


def format_day_result(result: DayResult, catalog: ResourceCatalog) -> str:
    """Format a day run for display."""
    lines: list[str] = []
    totals = result.totals
    mode_label = "dry run" if result.mode == "dryRun" else "applied"

    lines.append(f"=== Seating for {result.date_key} ({mode_label}) ===")
    lines.append(
        f"Scanned: {totals.scanned}  Processed: {totals.processed}  "
        f"Updated: {totals.updated}  Conflict: {totals.conflict}  "
        f"No fit: {totals.no_fit}"
    )
    lines.append(
        f"Skipped (invalid): {totals.skipped_invalid}  "
        f"Skipped (locked): {totals.skipped_locked}  Errors: {totals.error}  "
        f"Distinct conflicts: {totals.distinct_conflicts}"
    )
    lines.append("")

    if not result.items:
        lines.append("No bookings for this day.")
        return "\n".join(lines)

    by_status = defaultdict(list)
    for item in result.items:
        by_status[item.status].append(item)

    for status in STATUS_ORDER:
        items = by_status.get(status)
        if not items:
            continue
        lines.append(f"--- {status} ({len(items)}) ---")
        for item in items:
            if item.table_ids or item.zone_id:
                zone = catalog.zone_name(item.zone_id) or "-"
                where = f"{zone}: {_tables_label(item.table_ids, catalog)}"
            else:
                where = "no tables"
            reason = f" [{item.reason}]" if item.reason else ""
            lines.append(f"  {item.booking_id}: {where}{reason}")
            for conflict in item.conflicts:
                lines.append(
                    f"    ! {conflict.booking_name} ({conflict.overlap_label}) on "
                    f"{_tables_label(conflict.shared_table_ids, catalog)}"
                )
            if item.diagnostics and item.diagnostics.warnings:
                lines.append(f"    warnings: {', '.join(item.diagnostics.warnings)}")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_day_result_csv(result: DayResult) -> str:
    """Format day items as CSV for export."""
    lines: list[str] = ["booking_id,status,reason,zone_id,table_ids,conflicts"]

    for item in result.items:
        conflicts = ";".join(c.booking_id for c in item.conflicts)
        lines.append(
            f"{item.booking_id},{item.status},{item.reason or ''},{item.zone_id or ''},"
            f"{';'.join(item.table_ids)},{conflicts}"
        )

    return "\n".join(lines)


def format_proposal(proposal: SeatingProposal, catalog: ResourceCatalog) -> str:
    """Format an interactive proposal for one booking."""
    lines = [f"=== Booking {proposal.booking_id} ===", describe_suggestion(proposal, catalog)]

    resolution = proposal.resolution
    suggestion = proposal.suggestion
    if suggestion is not None and suggestion.has_fit:
        lines.append(f"Reason: {suggestion.reason}  Confidence: {suggestion.confidence:.2f}")
    if resolution.final is not None:
        lines.append(f"Source: {resolution.final.source}")
    for conflict in resolution.conflicts:
        lines.append(
            f"  ! {conflict.booking_name} ({conflict.overlap_label}) on "
            f"{_tables_label(conflict.shared_table_ids, catalog)}"
        )
    if resolution.diagnostics.warnings:
        lines.append(f"Warnings: {', '.join(resolution.diagnostics.warnings)}")
    if proposal.occupied_table_ids:
        lines.append(f"Held by other bookings: {', '.join(sorted(proposal.occupied_table_ids))}")

    return "\n".join(lines)
