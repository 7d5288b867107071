from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple


class FindingKind:
    COUNT_MISMATCH = "count_mismatch"
    DUPLICATE_ASSIGNMENT = "duplicate_assignment"
    UNIQUE_ID_MISMATCH = "unique_id_mismatch"
    UNRESOLVED_REFERENCE = "unresolved_reference"


class Severity:
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass(frozen=True)
class Finding:
    kind: str
    severity: str
    message: str
    detail: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "severity": self.severity,
            "message": self.message,
            "detail": dict(self.detail),
        }


@dataclass(frozen=True)
class RouteDetail:
    route_id: str
    stop_count: int
    stop_record_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route_id": self.route_id,
            "stop_count": self.stop_count,
            "stop_record_ids": list(self.stop_record_ids),
        }


@dataclass(frozen=True)
class DuplicateId:
    record_id: str
    occurrences: int

    def to_dict(self) -> Dict[str, Any]:
        return {"record_id": self.record_id, "occurrences": self.occurrences}


@dataclass(frozen=True)
class UnresolvedStop:
    route_id: str
    position: int
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"route_id": self.route_id, "position": self.position, "reason": self.reason}


@dataclass(frozen=True)
class IntegrityReport:
    """Immutable outcome of one audit over a records/routes snapshot."""

    generated_at: str
    subject_name: str
    records_loaded: int
    records_after_dedup: int
    records_in_working_state: int
    records_in_routes: int
    records_in_quotation: int
    findings: Tuple[Finding, ...] = ()
    route_details: Tuple[RouteDetail, ...] = ()
    unique_record_ids: FrozenSet[str] = frozenset()
    duplicated_ids: Tuple[DuplicateId, ...] = ()
    unresolved_stops: Tuple[UnresolvedStop, ...] = ()
    missing_record_ids: Tuple[str, ...] = ()
    unknown_record_ids: Tuple[str, ...] = ()

    @property
    def discrepancies(self) -> Tuple[str, ...]:
        return tuple(finding.message for finding in self.findings)

    @property
    def is_consistent(self) -> bool:
        return not self.findings

    def findings_of(self, kind: str) -> Tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if finding.kind == kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "subject_name": self.subject_name,
            "counters": {
                "records_loaded": self.records_loaded,
                "records_after_dedup": self.records_after_dedup,
                "records_in_working_state": self.records_in_working_state,
                "records_in_routes": self.records_in_routes,
                "records_in_quotation": self.records_in_quotation,
                "unique_record_ids": len(self.unique_record_ids),
            },
            "is_consistent": self.is_consistent,
            "discrepancies": list(self.discrepancies),
            "findings": [finding.to_dict() for finding in self.findings],
            "route_details": [detail.to_dict() for detail in self.route_details],
            "unique_record_ids": sorted(self.unique_record_ids),
            "duplicated_ids": [dup.to_dict() for dup in self.duplicated_ids],
            "unresolved_stops": [stop.to_dict() for stop in self.unresolved_stops],
            "missing_record_ids": list(self.missing_record_ids),
            "unknown_record_ids": list(self.unknown_record_ids),
        }


def summarize_findings(findings: Iterable[Finding]) -> Dict[str, int]:
    counts = {Severity.CRITICAL: 0, Severity.WARNING: 0}
    for finding in findings:
        counts[finding.severity] = counts.get(finding.severity, 0) + 1
    return counts


__all__ = [
    "DuplicateId",
    "Finding",
    "FindingKind",
    "IntegrityReport",
    "RouteDetail",
    "Severity",
    "UnresolvedStop",
    "summarize_findings",
]
