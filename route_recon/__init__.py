"""
Cross-stage integrity auditing for route-planning pipelines.

Records ("sites") are loaded, deduplicated, held in working state and then
distributed into routes that feed billing. This package checks that the
record count and the record identity set survive that journey, and reports
every discrepancy it finds without trying to repair it.
"""

from .auditor import audit
from .models import Record, RecordValidationError, RouteAssignment, Stop, resolve_stop_id
from .render import print_report, render_report, user_facing_message
from .results import DuplicateId, Finding, FindingKind, IntegrityReport, RouteDetail, Severity

__all__ = [
    "DuplicateId",
    "Finding",
    "FindingKind",
    "IntegrityReport",
    "Record",
    "RecordValidationError",
    "RouteAssignment",
    "RouteDetail",
    "Severity",
    "Stop",
    "audit",
    "print_report",
    "render_report",
    "resolve_stop_id",
    "user_facing_message",
]
