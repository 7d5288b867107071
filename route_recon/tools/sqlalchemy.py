from __future__ import annotations

from typing import Any, Dict, List, Optional

try:
    from sqlalchemy import create_engine, text
    from sqlalchemy.engine import Engine
except ImportError as exc:  # pragma: no cover - dependency guard
    raise RuntimeError("SQL sources require the 'sqlalchemy' package") from exc

from .base import ExecutionTool, QueryRequest


class SQLAlchemyTool(ExecutionTool):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def fetch_rows(self, request: QueryRequest) -> List[Dict[str, Any]]:
        sql = request.options.get("sql")
        if not sql:
            raise ValueError("SQLAlchemyTool requires 'sql' in options")
        return self.execute_sql(sql, request.options.get("params"))

    def execute_sql(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            result = conn.execute(text(sql), params or {})
            return [dict(row._mapping) for row in result]

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "SQLAlchemyTool":
        runtime = cfg.get("runtime", {})
        sa_cfg = runtime.get("sqlalchemy") or {}
        url = sa_cfg.get("url")
        if not url:
            raise ValueError("runtime.sqlalchemy.url must be provided for SQLAlchemy tool")
        engine = create_engine(url, **{k: v for k, v in sa_cfg.items() if k != "url"})
        return cls(engine)

    def stop(self) -> None:
        if self._engine:
            self._engine.dispose()
