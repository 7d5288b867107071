from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .common import PrintLogger
from .config import source_kind
from .events import emit_log
from .models import Record, RouteAssignment, coerce_records, coerce_routes, group_stop_rows
from .tools.base import ExecutionTool, QueryRequest


def _build_sql_tool(cfg: Dict[str, Any]) -> ExecutionTool:
    from .tools.sqlalchemy import SQLAlchemyTool

    return SQLAlchemyTool.from_config(cfg)


def _build_spark_tool(cfg: Dict[str, Any]) -> ExecutionTool:
    from .tools.spark import SparkTool

    return SparkTool.from_config(cfg)


class ToolSet:
    """Builds execution tools lazily, one per source kind, and stops whatever was built."""

    def __init__(
        self,
        cfg: Dict[str, Any],
        factories: Optional[Dict[str, Callable[[Dict[str, Any]], ExecutionTool]]] = None,
    ) -> None:
        self.cfg = cfg
        self._factories = factories if factories is not None else {"sql": _build_sql_tool, "spark": _build_spark_tool}
        self._tools: Dict[str, ExecutionTool] = {}

    def get(self, kind: str) -> ExecutionTool:
        if kind not in self._tools:
            factory = self._factories.get(kind)
            if factory is None:
                raise ValueError(f"No execution tool for source kind: {kind}")
            self._tools[kind] = factory(self.cfg)
        return self._tools[kind]

    def stop(self) -> None:
        for tool in self._tools.values():
            tool.stop()
        self._tools.clear()


@dataclass(frozen=True)
class AuditInputs:
    subject_name: str
    records: Tuple[Record, ...]
    routes: Tuple[RouteAssignment, ...]
    loaded_records: Optional[Tuple[Record, ...]] = None


def _read_json(path: str, base_dir: Optional[str]) -> Any:
    if base_dir and not os.path.isabs(path):
        path = os.path.join(base_dir, path)
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _unwrap(payload: Any, key: str) -> List[Any]:
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise ValueError(f"expected a list of {key}")
    return payload


def _fetch(source_cfg: Dict[str, Any], tools: ToolSet, key: str, base_dir: Optional[str]) -> List[Any]:
    kind = source_kind(source_cfg)
    if kind == "json":
        return _unwrap(_read_json(source_cfg["path"], base_dir), key)
    return tools.get(kind).fetch_rows(QueryRequest(options=dict(source_cfg)))


def load_records(
    source_cfg: Dict[str, Any],
    tools: ToolSet,
    *,
    base_dir: Optional[str] = None,
) -> Tuple[Record, ...]:
    rows = _fetch(source_cfg, tools, "records", base_dir)
    return coerce_records(rows, id_field=source_cfg.get("id_field") or "id")


def load_routes(
    source_cfg: Dict[str, Any],
    tools: ToolSet,
    *,
    base_dir: Optional[str] = None,
) -> Tuple[RouteAssignment, ...]:
    rows = _fetch(source_cfg, tools, "routes", base_dir)
    if source_kind(source_cfg) == "json":
        return coerce_routes(rows)
    return group_stop_rows(rows)


def load_inputs(
    cfg: Dict[str, Any],
    tools: ToolSet,
    *,
    base_dir: Optional[str] = None,
    logger: Optional[PrintLogger] = None,
) -> AuditInputs:
    audit_cfg = cfg["audit"]
    subject = audit_cfg.get("subject") or cfg.get("runtime", {}).get("job_name", "route_recon")
    records = load_records(audit_cfg["records"], tools, base_dir=base_dir)
    routes = load_routes(audit_cfg["routes"], tools, base_dir=base_dir)
    loaded = None
    if audit_cfg.get("loaded_records"):
        loaded = load_records(audit_cfg["loaded_records"], tools, base_dir=base_dir)
    emit_log(
        None,
        level="INFO",
        msg="inputs_loaded",
        subject=subject,
        records=len(records),
        loaded_records=len(loaded) if loaded is not None else None,
        routes=len(routes),
        logger=logger,
    )
    return AuditInputs(subject_name=subject, records=records, routes=routes, loaded_records=loaded)


__all__ = ["AuditInputs", "ToolSet", "load_inputs", "load_records", "load_routes"]
