from __future__ import annotations

import sys
import textwrap
from typing import Iterable, List, Optional, TextIO

from .results import IntegrityReport

MIN_WIDTH = 32
DEFAULT_WIDTH = 64


class _Panel:
    """Fixed-width box; every line is wrapped to fit, never truncated."""

    def __init__(self, width: int) -> None:
        self.width = max(int(width), MIN_WIDTH)
        self.inner = self.width - 4
        self.lines: List[str] = ["╔" + "═" * (self.width - 2) + "╗"]

    def rule(self) -> None:
        self.lines.append("╠" + "═" * (self.width - 2) + "╣")

    def row(self, text: str, *, indent: str = "") -> None:
        wrapped = textwrap.wrap(
            text,
            width=self.inner,
            initial_indent=indent,
            subsequent_indent=" " * len(indent),
            break_long_words=True,
            break_on_hyphens=False,
        ) or [""]
        for chunk in wrapped:
            self.lines.append("║ " + chunk.ljust(self.inner) + " ║")

    def rows(self, items: Iterable[str], *, bullet: str = "  • ") -> None:
        for item in items:
            self.row(item, indent=bullet)

    def close(self) -> str:
        self.lines.append("╚" + "═" * (self.width - 2) + "╝")
        return "\n".join(self.lines)


def _counter(label: str, value: int, unit: str) -> str:
    return f"{label:<26}{value:>6} {unit}"


def render_report(report: IntegrityReport, *, width: int = DEFAULT_WIDTH) -> str:
    panel = _Panel(width)
    panel.row("DATA INTEGRITY REPORT")
    panel.rule()
    panel.row(f"Subject: {report.subject_name}")
    panel.row(f"Generated: {report.generated_at}")
    panel.rule()
    panel.row(_counter("Records loaded:", report.records_loaded, "records"))
    panel.row(_counter("Records after dedup:", report.records_after_dedup, "records"))
    panel.row(_counter("Records in working state:", report.records_in_working_state, "records"))
    panel.row(_counter("Records in routes:", report.records_in_routes, "stops"))
    panel.row(_counter("Records in quotation:", report.records_in_quotation, "stops"))
    panel.row(_counter("Unique ids in routes:", len(report.unique_record_ids), "ids"))
    panel.row(_counter("Routes:", len(report.route_details), "routes"))
    panel.rule()
    if report.is_consistent:
        panel.row("STATUS: DATA CONSISTENT")
    else:
        panel.row("STATUS: INCONSISTENCIES DETECTED")
        panel.rule()
        panel.rows(
            (f"[{finding.severity}] {finding.message}" for finding in report.findings),
            bullet="",
        )
    if report.duplicated_ids:
        panel.rule()
        panel.row("DUPLICATES FOUND:")
        panel.rows(f"{dup.record_id} ({dup.occurrences} times)" for dup in report.duplicated_ids)
    if report.unresolved_stops:
        panel.rule()
        panel.row("UNRESOLVED STOPS:")
        panel.rows(f"route {stop.route_id!r} position {stop.position}" for stop in report.unresolved_stops)
    if report.missing_record_ids:
        panel.rule()
        panel.row("NOT ROUTED:")
        panel.row(", ".join(report.missing_record_ids), indent="  ")
    if report.unknown_record_ids:
        panel.rule()
        panel.row("ROUTED BUT NOT IN WORKING STATE:")
        panel.row(", ".join(report.unknown_record_ids), indent="  ")
    return panel.close()


def print_report(
    report: IntegrityReport,
    *,
    stream: Optional[TextIO] = None,
    width: int = DEFAULT_WIDTH,
) -> None:
    out = stream if stream is not None else sys.stdout
    out.write("\n" + render_report(report, width=width) + "\n\n")


def user_facing_message(report: IntegrityReport) -> Optional[str]:
    """Short alert text for end users, or ``None`` when there is nothing to show."""

    if report.is_consistent:
        return None
    parts = ["DATA INTEGRITY ALERT"]
    if report.records_in_working_state != report.records_in_routes:
        difference = abs(report.records_in_working_state - report.records_in_routes)
        parts.append(
            "An inconsistency was detected:\n"
            f"- Records loaded: {report.records_in_working_state}\n"
            f"- Records in routes: {report.records_in_routes}\n"
            f"- Difference: {difference} records"
        )
    if report.duplicated_ids:
        parts.append(f"{len(report.duplicated_ids)} duplicated records were found in the routes.")
    if report.unresolved_stops:
        parts.append(f"{len(report.unresolved_stops)} stops do not reference any record.")
    parts.append("See the detailed integrity report for technical details.")
    return "\n\n".join(parts)


__all__ = ["DEFAULT_WIDTH", "MIN_WIDTH", "print_report", "render_report", "user_facing_message"]
