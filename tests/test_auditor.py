import copy
import io
import json
from datetime import datetime, timezone

import pytest

from route_recon import audit
from route_recon.common import PrintLogger
from route_recon.models import Record, RecordValidationError, RouteAssignment, Stop
from route_recon.results import DuplicateId, FindingKind, Severity


def _records(*ids):
    return [{"id": record_id, "name": f"site {record_id}"} for record_id in ids]


def _route(route_id, *stop_ids):
    return {"id": route_id, "stops": [{"site_id": stop_id} for stop_id in stop_ids]}


def _fixed_clock():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _kinds(report):
    return [finding.kind for finding in report.findings]


def test_consistent_snapshot_has_no_findings():
    report = audit("scenario_a", _records("a", "b", "c"), [_route("r1", "a", "b", "c")])

    assert report.records_in_working_state == 3
    assert report.records_in_routes == 3
    assert report.duplicated_ids == ()
    assert report.is_consistent
    assert report.discrepancies == ()


def test_missing_stop_reports_single_count_mismatch():
    report = audit("scenario_b", _records("a", "b", "c"), [_route("r1", "a", "b")])

    assert report.records_in_working_state == 3
    assert report.records_in_routes == 2
    mismatches = report.findings_of(FindingKind.COUNT_MISMATCH)
    assert len(mismatches) == 1
    assert "3" in mismatches[0].message and "2" in mismatches[0].message
    assert mismatches[0].detail["difference"] == 1
    assert not report.is_consistent
    assert report.missing_record_ids == ("c",)


def test_duplicate_stop_reports_mismatch_and_duplicate():
    report = audit("scenario_c", _records("a", "b"), [_route("r1", "a", "a", "b")])

    assert report.records_in_routes == 3
    assert report.duplicated_ids == (DuplicateId("a", 2),)
    assert _kinds(report) == [FindingKind.COUNT_MISMATCH, FindingKind.DUPLICATE_ASSIGNMENT]
    assert "3" in report.discrepancies[0] and "2" in report.discrepancies[0]


def test_offsetting_duplicate_still_fails_unique_id_check():
    report = audit("scenario_d", _records("a", "b"), [_route("r1", "a"), _route("r2", "a")])

    assert report.records_in_working_state == report.records_in_routes == 2
    assert FindingKind.COUNT_MISMATCH not in _kinds(report)
    assert len(report.unique_record_ids) == 1
    unique = report.findings_of(FindingKind.UNIQUE_ID_MISMATCH)
    assert len(unique) == 1
    assert unique[0].severity == Severity.WARNING
    assert not report.is_consistent


def test_empty_inputs_are_consistent():
    report = audit("empty", [], [])

    assert report.is_consistent
    assert report.records_in_routes == 0
    assert report.route_details == ()


def test_route_details_preserve_route_and_stop_order():
    routes = [_route("north", "c", "a"), {"id": "empty"}, _route("south", "b")]
    report = audit("order", _records("a", "b", "c"), routes)

    assert [(d.route_id, d.stop_count, d.stop_record_ids) for d in report.route_details] == [
        ("north", 2, ("c", "a")),
        ("empty", 0, ()),
        ("south", 1, ("b",)),
    ]


def test_duplicates_listed_in_first_seen_order():
    routes = [_route("r1", "b", "a"), _route("r2", "a", "b", "b")]
    report = audit("dups", _records("a", "b"), routes)

    assert report.duplicated_ids == (DuplicateId("b", 3), DuplicateId("a", 2))
    assert report.findings_of(FindingKind.DUPLICATE_ASSIGNMENT)[0].detail["duplicated_ids"] == 2


def test_secondary_id_used_when_primary_absent():
    routes = [{"id": "r1", "stops": [{"id": "a"}, {"site_id": "b", "id": "ignored"}, {"site_id": " ", "id": "c"}]}]
    report = audit("fallback", _records("a", "b", "c"), routes)

    assert report.route_details[0].stop_record_ids == ("a", "b", "c")
    assert report.is_consistent


def test_unresolvable_stop_is_reported_distinctly():
    routes = [{"id": "r1", "stops": [{"site_id": "a"}, {"name": "no id"}]}]
    report = audit("unresolved", _records("a", "b"), routes)

    assert report.records_in_routes == 2
    assert "" not in report.unique_record_ids
    assert report.route_details[0].stop_record_ids == ("a", "")
    assert [(stop.route_id, stop.position) for stop in report.unresolved_stops] == [("r1", 1)]
    assert FindingKind.UNRESOLVED_REFERENCE in _kinds(report)
    assert FindingKind.COUNT_MISMATCH not in _kinds(report)


def test_malformed_stops_become_unresolved_references():
    routes = [
        {"id": "r1", "stops": [{"site_id": "a"}, None, "b"]},
        {"id": "r2", "stops": "c"},
        "not a route",
    ]
    report = audit("malformed", _records("a", "b"), routes)

    assert report.records_in_routes == 5
    assert [(stop.route_id, stop.position) for stop in report.unresolved_stops] == [
        ("r1", 1),
        ("r1", 2),
        ("r2", 0),
        ("", 0),
    ]
    assert FindingKind.UNRESOLVED_REFERENCE in _kinds(report)
    assert report.unique_record_ids == frozenset({"a"})


def test_single_stop_mapping_in_place_of_list_is_read():
    report = audit("lone_stop", _records("a"), [{"id": "r1", "stops": {"site_id": "a"}}])

    assert report.route_details[0].stop_record_ids == ("a",)
    assert report.is_consistent


def test_record_and_stop_ids_normalised_alike():
    records = [Record(" a"), Record(1)]
    routes = [RouteAssignment("r1", (Stop(site_id=" a"), Stop(site_id="1")))]

    report = audit("normalised", records, routes)

    assert report.is_consistent
    assert report.missing_record_ids == ()
    assert report.unknown_record_ids == ()


def test_findings_never_raise_when_every_check_fails():
    routes = [{"id": "r1", "stops": [{"site_id": "a"}, {"site_id": "a"}, {}]}]
    report = audit("all_bad", _records("a", "b", "c", "d"), routes)

    assert _kinds(report) == [
        FindingKind.COUNT_MISMATCH,
        FindingKind.DUPLICATE_ASSIGNMENT,
        FindingKind.UNIQUE_ID_MISMATCH,
        FindingKind.UNRESOLVED_REFERENCE,
    ]


@pytest.mark.parametrize(
    "record_ids,routes",
    [
        (("a", "b", "c"), [_route("r1", "a", "b", "c")]),
        (("a", "b", "c"), [_route("r1", "a", "b")]),
        (("a", "b"), [_route("r1", "a", "a", "b")]),
        (("a", "b"), [_route("r1", "a"), _route("r2", "a")]),
        ((), [_route("r1", "x", "y", "x")]),
        (("a", "b"), [{"id": "r1", "stops": [{"site_id": "a"}, {}]}]),
    ],
)
def test_report_properties_hold(record_ids, routes):
    report = audit("props", _records(*record_ids), routes)

    assert report.is_consistent == (len(report.discrepancies) == 0)
    assert report.records_in_routes == sum(detail.stop_count for detail in report.route_details)
    assert len(report.unique_record_ids) <= report.records_in_routes
    assert (len(report.unique_record_ids) == report.records_in_routes) == (
        not report.duplicated_ids and not report.unresolved_stops
    )
    assert all(dup.occurrences >= 2 for dup in report.duplicated_ids)


def test_audit_is_idempotent_except_timestamp():
    records = _records("a", "b")
    routes = [_route("r1", "a", "a", "c")]

    first = audit("idem", records, routes)
    second = audit("idem", records, routes)

    assert first.to_dict() | {"generated_at": None} == second.to_dict() | {"generated_at": None}


def test_clock_pins_timestamp():
    records = _records("a")
    routes = [_route("r1", "a")]

    first = audit("clock", records, routes, clock=_fixed_clock)
    second = audit("clock", records, routes, clock=_fixed_clock)

    assert first == second
    assert first.generated_at == "2024-05-01T12:00:00+00:00"


def test_inputs_are_not_mutated():
    records = _records("a", "b", "c")
    routes = [_route("r1", "c", "a"), _route("r2", "a")]
    records_before = copy.deepcopy(records)
    routes_before = copy.deepcopy(routes)

    audit("mutation", records, routes)

    assert records == records_before
    assert routes == routes_before


def test_report_does_not_track_caller_changes():
    records = _records("a", "b")
    routes = [_route("r1", "a", "b")]
    report = audit("snapshot", records, routes)

    records.append({"id": "c"})
    routes[0]["stops"].append({"site_id": "c"})

    assert report.records_in_working_state == 2
    assert report.route_details[0].stop_record_ids == ("a", "b")


def test_stage_counters_from_snapshots():
    loaded = _records("a", "a", "b", "c")
    report = audit("stages", _records("a", "b", "c"), [_route("r1", "a", "b", "c")], loaded_records=loaded)

    assert report.records_loaded == 4
    assert report.records_after_dedup == 3
    assert report.records_in_working_state == 3
    assert report.records_in_quotation == report.records_in_routes == 3
    assert report.is_consistent


def test_model_instances_accepted():
    records = [Record("a"), Record("b")]
    routes = [RouteAssignment("r1", (Stop(site_id="a"), Stop(id="b")))]

    report = audit("models", records, routes)

    assert report.is_consistent


def test_record_without_id_rejected_at_boundary():
    with pytest.raises(RecordValidationError) as exc:
        audit("bad", [{"id": "a"}, {"name": "nameless"}], [])

    assert exc.value.index == 1


def test_unknown_routed_ids_listed():
    report = audit("unknown", _records("a"), [_route("r1", "a", "z")])

    assert report.unknown_record_ids == ("z",)
    assert report.missing_record_ids == ()


def test_audit_logs_start_findings_and_end():
    stream = io.StringIO()
    logger = PrintLogger(job_name="test", stream=stream)

    audit("logged", _records("a", "b"), [_route("r1", "a")], logger=logger)

    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [event["msg"] for event in events][0] == "audit_start"
    assert events[-1]["msg"] == "audit_end"
    assert events[-1]["consistent"] is False
    warns = [event for event in events if event["level"] == "WARN"]
    assert {event["kind"] for event in warns} == {FindingKind.COUNT_MISMATCH, FindingKind.UNIQUE_ID_MISMATCH}
