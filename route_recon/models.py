from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

PRIMARY_STOP_ID_FIELD = "site_id"
SECONDARY_STOP_ID_FIELD = "id"


class RecordValidationError(ValueError):
    """Raised when a record cannot be accepted into the working state."""

    def __init__(self, message: str, *, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


def _clean_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Record:
    """A uniquely identified unit flowing through the pipeline (e.g. a delivery site)."""

    id: str
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, id_field: str = "id", index: Optional[int] = None) -> "Record":
        if not isinstance(data, Mapping):
            where = f" at position {index}" if index is not None else ""
            raise RecordValidationError(f"record{where} is not a mapping", index=index)
        record_id = _clean_id(data.get(id_field))
        if record_id is None:
            where = f" at position {index}" if index is not None else ""
            raise RecordValidationError(f"record{where} has no usable '{id_field}'", index=index)
        payload = {key: value for key, value in data.items() if key != id_field}
        return cls(id=record_id, payload=payload)


@dataclass(frozen=True)
class Stop:
    site_id: Optional[str] = None
    id: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Stop":
        if not isinstance(data, Mapping):
            return cls(payload={"raw": data})
        payload = {
            key: value
            for key, value in data.items()
            if key not in {PRIMARY_STOP_ID_FIELD, SECONDARY_STOP_ID_FIELD}
        }
        return cls(
            site_id=_clean_id(data.get(PRIMARY_STOP_ID_FIELD)),
            id=_clean_id(data.get(SECONDARY_STOP_ID_FIELD)),
            payload=payload,
        )


@dataclass(frozen=True)
class RouteAssignment:
    route_id: str
    stops: Tuple[Stop, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "RouteAssignment":
        if not isinstance(data, Mapping):
            return cls(route_id="", stops=(Stop.from_dict(data),))
        route_id = data.get("id")
        if route_id is None:
            route_id = data.get("route_id")
        stops = data.get("stops")
        if stops is None:
            stops = ()
        elif not isinstance(stops, (list, tuple)):
            # a lone value where a list belongs still counts as one stop
            stops = (stops,)
        return cls(
            route_id="" if route_id is None else str(route_id),
            stops=tuple(stop if isinstance(stop, Stop) else Stop.from_dict(stop) for stop in stops),
        )


@dataclass(frozen=True)
class ResolvedId:
    record_id: str


@dataclass(frozen=True)
class UnresolvedReference:
    reason: str


Resolution = Union[ResolvedId, UnresolvedReference]


def resolve_stop_id(stop: Stop) -> Resolution:
    """Resolve the record a stop points at; the primary id field wins over the secondary."""

    primary = _clean_id(stop.site_id)
    if primary is not None:
        return ResolvedId(primary)
    secondary = _clean_id(stop.id)
    if secondary is not None:
        return ResolvedId(secondary)
    return UnresolvedReference(f"stop has neither '{PRIMARY_STOP_ID_FIELD}' nor '{SECONDARY_STOP_ID_FIELD}'")


def coerce_records(
    records: Iterable[Union[Record, Mapping[str, Any]]],
    *,
    id_field: str = "id",
) -> Tuple[Record, ...]:
    coerced = []
    for idx, entry in enumerate(records):
        if isinstance(entry, Record):
            record_id = _clean_id(entry.id)
            if record_id is None:
                raise RecordValidationError(f"record at position {idx} has an empty id", index=idx)
            coerced.append(entry if record_id == entry.id else Record(record_id, entry.payload))
        else:
            coerced.append(Record.from_dict(entry, id_field=id_field, index=idx))
    return tuple(coerced)


def _coerce_route(route: Any) -> RouteAssignment:
    if not isinstance(route, RouteAssignment):
        return RouteAssignment.from_dict(route)
    if all(isinstance(stop, Stop) for stop in route.stops):
        return route
    stops = tuple(stop if isinstance(stop, Stop) else Stop.from_dict(stop) for stop in route.stops)
    return RouteAssignment(route_id=route.route_id, stops=stops)


def coerce_routes(routes: Iterable[Union[RouteAssignment, Mapping[str, Any]]]) -> Tuple[RouteAssignment, ...]:
    return tuple(_coerce_route(route) for route in routes)


def group_stop_rows(rows: Iterable[Dict[str, Any]]) -> Tuple[RouteAssignment, ...]:
    """Fold flat (route_id, site_id, id, position) rows into routes, keeping first-seen route order."""

    grouped: Dict[str, list] = {}
    for seq, row in enumerate(rows):
        lowered = {str(key).lower(): value for key, value in row.items()}
        route_id = lowered.get("route_id")
        key = "" if route_id is None else str(route_id)
        position = lowered.get("position")
        order = (0, int(position), seq) if position is not None else (1, seq, seq)
        grouped.setdefault(key, []).append((order, Stop.from_dict(lowered)))
    routes = []
    for route_id, entries in grouped.items():
        entries.sort(key=lambda item: item[0])
        routes.append(RouteAssignment(route_id=route_id, stops=tuple(stop for _, stop in entries)))
    return tuple(routes)


__all__ = [
    "PRIMARY_STOP_ID_FIELD",
    "SECONDARY_STOP_ID_FIELD",
    "Record",
    "RecordValidationError",
    "Resolution",
    "ResolvedId",
    "RouteAssignment",
    "Stop",
    "UnresolvedReference",
    "coerce_records",
    "coerce_routes",
    "group_stop_rows",
    "resolve_stop_id",
]
