from __future__ import annotations

import json
from typing import Any, Dict

SOURCE_SECTIONS = ("records", "loaded_records", "routes")
REQUIRED_SOURCES = ("records", "routes")


def source_kind(source_cfg: Dict[str, Any]) -> str:
    """Return which reader handles a source section: ``sql``, ``spark`` or ``json``."""

    if source_cfg.get("sql"):
        return "sql"
    if source_cfg.get("table") or source_cfg.get("format"):
        return "spark"
    return "json"


def validate_config(cfg: Dict[str, Any]) -> None:
    def _validate_source(section: str, source_cfg: Any) -> None:
        context = f"audit.{section}"
        if not isinstance(source_cfg, dict):
            raise ValueError(f"{context} must be an object")
        keys = [key for key in ("path", "sql", "table") if source_cfg.get(key)]
        if not keys:
            raise ValueError(f"{context} requires one of 'path', 'sql' or 'table'")
        if "sql" in keys and "table" in keys:
            raise ValueError(f"{context} cannot combine 'sql' and 'table'")
        for key in keys:
            if not isinstance(source_cfg[key], str):
                raise ValueError(f"{context}.{key} must be a string")
        id_field = source_cfg.get("id_field")
        if id_field is not None and (not isinstance(id_field, str) or not id_field.strip()):
            raise ValueError(f"{context}.id_field must be a non-empty string")
        if source_kind(source_cfg) == "spark" and source_cfg.get("format") and not source_cfg.get("path"):
            raise ValueError(f"{context}.format requires 'path'")

    if not isinstance(cfg, dict):
        raise ValueError("config must be an object")
    runtime = cfg.get("runtime", {})
    if not isinstance(runtime, dict):
        raise ValueError("runtime must be an object when provided")
    audit_cfg = cfg.get("audit")
    if not isinstance(audit_cfg, dict):
        raise ValueError("Missing config key: audit")
    subject = audit_cfg.get("subject")
    if subject is not None and not isinstance(subject, str):
        raise ValueError("audit.subject must be a string")
    for section in REQUIRED_SOURCES:
        if section not in audit_cfg:
            raise ValueError(f"Missing audit.{section}")
    for section in SOURCE_SECTIONS:
        if section in audit_cfg and audit_cfg[section] is not None:
            _validate_source(section, audit_cfg[section])
    kinds = {source_kind(audit_cfg[section]) for section in SOURCE_SECTIONS if audit_cfg.get(section)}
    if "sql" in kinds:
        sa_cfg = runtime.get("sqlalchemy") or {}
        if not sa_cfg.get("url"):
            raise ValueError("Missing runtime.sqlalchemy.url for sql sources")
    width = runtime.get("report_width")
    if width is not None and (not isinstance(width, int) or width <= 0):
        raise ValueError("runtime.report_width must be a positive integer")


def load_config(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        cfg: Dict[str, Any] = json.load(handle)
    validate_config(cfg)
    return cfg


__all__ = ["REQUIRED_SOURCES", "SOURCE_SECTIONS", "load_config", "source_kind", "validate_config"]
