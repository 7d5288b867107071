from __future__ import annotations

from typing import Optional

from ..context import AuditContext
from ..results import Finding, FindingKind, Severity
from .base import IntegrityCheck


class CountMatchCheck(IntegrityCheck):
    _TYPE = FindingKind.COUNT_MISMATCH
    _SEVERITY = Severity.CRITICAL

    def _execute(self, context: AuditContext) -> Optional[Finding]:
        expected = context.records_in_working_state
        observed = context.records_in_routes
        if expected == observed:
            return None
        return self._finding(
            f"CRITICAL DISCREPANCY: {expected} records loaded vs {observed} in routes",
            records_in_working_state=expected,
            records_in_routes=observed,
            difference=abs(expected - observed),
        )


class DuplicateAssignmentCheck(IntegrityCheck):
    _TYPE = FindingKind.DUPLICATE_ASSIGNMENT
    _SEVERITY = Severity.CRITICAL

    def _execute(self, context: AuditContext) -> Optional[Finding]:
        duplicates = context.duplicated_ids
        if not duplicates:
            return None
        return self._finding(
            f"DUPLICATES DETECTED: {len(duplicates)} records appear more than once in routes",
            duplicated_ids=len(duplicates),
            extra_stops=sum(dup.occurrences - 1 for dup in duplicates),
        )


class UniqueIdCheck(IntegrityCheck):
    _TYPE = FindingKind.UNIQUE_ID_MISMATCH
    _SEVERITY = Severity.WARNING

    def _execute(self, context: AuditContext) -> Optional[Finding]:
        expected = context.records_in_working_state
        unique = len(context.occurrences)
        if unique == expected:
            return None
        return self._finding(
            f"WARNING: {expected} unique records expected vs {unique} unique ids in routes",
            records_in_working_state=expected,
            unique_record_ids=unique,
        )


class UnresolvedReferenceCheck(IntegrityCheck):
    _TYPE = FindingKind.UNRESOLVED_REFERENCE
    _SEVERITY = Severity.CRITICAL

    def _execute(self, context: AuditContext) -> Optional[Finding]:
        unresolved = context.unresolved_stops
        if not unresolved:
            return None
        routes = sorted({stop.route_id for stop in unresolved})
        return self._finding(
            f"UNRESOLVABLE REFERENCES: {len(unresolved)} stops carry no record id",
            unresolved_stops=len(unresolved),
            routes=routes,
        )
