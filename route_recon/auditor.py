from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .checks import registry
from .common import PrintLogger
from .context import AuditContext
from .events import emit_log
from .models import (
    Record,
    RouteAssignment,
    UnresolvedReference,
    coerce_records,
    coerce_routes,
    resolve_stop_id,
)
from .results import Finding, IntegrityReport, RouteDetail, UnresolvedStop, summarize_findings

RecordInput = Union[Record, Mapping[str, Any]]
RouteInput = Union[RouteAssignment, Mapping[str, Any]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def tally_routes(
    subject_name: str,
    records_in_working_state: int,
    routes: Sequence[RouteAssignment],
) -> AuditContext:
    """Walk every stop once and build the per-route details and id occurrence counts."""

    occurrences: Dict[str, int] = {}
    details: List[RouteDetail] = []
    unresolved: List[UnresolvedStop] = []
    for route in routes:
        stop_ids: List[str] = []
        for position, stop in enumerate(route.stops):
            resolution = resolve_stop_id(stop)
            if isinstance(resolution, UnresolvedReference):
                unresolved.append(UnresolvedStop(route.route_id, position, resolution.reason))
                stop_ids.append("")
                continue
            stop_ids.append(resolution.record_id)
            occurrences[resolution.record_id] = occurrences.get(resolution.record_id, 0) + 1
        details.append(RouteDetail(route.route_id, len(route.stops), tuple(stop_ids)))
    return AuditContext(
        subject_name=subject_name,
        records_in_working_state=records_in_working_state,
        records_in_routes=sum(detail.stop_count for detail in details),
        route_details=tuple(details),
        occurrences=tuple(occurrences.items()),
        unresolved_stops=tuple(unresolved),
    )


def _set_differences(records: Sequence[Record], context: AuditContext) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    routed = context.unique_record_ids
    working = {record.id for record in records}
    missing = tuple(dict.fromkeys(record.id for record in records if record.id not in routed))
    unknown = tuple(record_id for record_id, _ in context.occurrences if record_id not in working)
    return missing, unknown


def audit(
    subject_name: str,
    records: Iterable[RecordInput],
    routes: Iterable[RouteInput],
    *,
    loaded_records: Optional[Iterable[RecordInput]] = None,
    logger: Optional[PrintLogger] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> IntegrityReport:
    """Audit one snapshot of records and their route assignments.

    ``records`` is the working state (post-dedup). ``loaded_records``, when
    given, is the pre-dedup snapshot and only feeds the ``records_loaded``
    counter. Neither input is mutated or retained.

    Raises :class:`~route_recon.models.RecordValidationError` when a record
    has no usable id; everything wrong with the routes is reported as a
    finding instead.
    """

    record_snapshot = coerce_records(records)
    route_snapshot = coerce_routes(routes)
    loaded_count = len(record_snapshot)
    if loaded_records is not None:
        loaded_count = len(tuple(loaded_records))
    generated_at = (clock or _utc_now)().isoformat()

    emit_log(
        None,
        level="INFO",
        msg="audit_start",
        subject=subject_name,
        records=len(record_snapshot),
        routes=len(route_snapshot),
        logger=logger,
    )
    context = tally_routes(subject_name, len(record_snapshot), route_snapshot)
    findings: List[Finding] = []
    for check in registry.instances():
        finding = check.run(context)
        if finding is None:
            continue
        findings.append(finding)
        emit_log(
            None,
            level="WARN",
            msg="audit_finding",
            subject=subject_name,
            kind=finding.kind,
            severity=finding.severity,
            finding=finding.message,
            logger=logger,
        )
    missing, unknown = _set_differences(record_snapshot, context)

    report = IntegrityReport(
        generated_at=generated_at,
        subject_name=subject_name,
        records_loaded=loaded_count,
        records_after_dedup=len(record_snapshot),
        records_in_working_state=context.records_in_working_state,
        records_in_routes=context.records_in_routes,
        records_in_quotation=context.records_in_routes,
        findings=tuple(findings),
        route_details=context.route_details,
        unique_record_ids=context.unique_record_ids,
        duplicated_ids=context.duplicated_ids,
        unresolved_stops=context.unresolved_stops,
        missing_record_ids=missing,
        unknown_record_ids=unknown,
    )
    emit_log(
        None,
        level="INFO",
        msg="audit_end",
        subject=subject_name,
        consistent=report.is_consistent,
        **context.counters(),
        **summarize_findings(findings),
        logger=logger,
    )
    return report


__all__ = ["audit", "tally_routes"]
