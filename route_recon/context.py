from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Tuple

from .results import DuplicateId, RouteDetail, UnresolvedStop


@dataclass(frozen=True)
class AuditContext:
    """Tally of one records/routes snapshot handed to every integrity check."""

    subject_name: str
    records_in_working_state: int
    records_in_routes: int
    route_details: Tuple[RouteDetail, ...]
    occurrences: Tuple[Tuple[str, int], ...]
    unresolved_stops: Tuple[UnresolvedStop, ...]

    @property
    def unique_record_ids(self) -> FrozenSet[str]:
        return frozenset(record_id for record_id, _ in self.occurrences)

    @property
    def duplicated_ids(self) -> Tuple[DuplicateId, ...]:
        return tuple(DuplicateId(record_id, count) for record_id, count in self.occurrences if count > 1)

    def counters(self) -> Dict[str, Any]:
        return {
            "records_in_working_state": self.records_in_working_state,
            "records_in_routes": self.records_in_routes,
            "unique_record_ids": len(self.occurrences),
        }
