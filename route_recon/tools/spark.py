from __future__ import annotations

from typing import Any, Dict, List

from .base import ExecutionTool, QueryRequest


class SparkTool(ExecutionTool):
    """Reads record and stop rows from Spark tables or files and collects them to the driver."""

    def __init__(self, spark: Any) -> None:
        self.spark = spark

    def fetch_rows(self, request: QueryRequest) -> List[Dict[str, Any]]:
        options = request.options
        table = options.get("table")
        if table:
            df = self.spark.table(table)
        else:
            fmt = str(options.get("format") or "").lower()
            path = options.get("path")
            if not fmt or not path:
                raise ValueError("SparkTool requires 'table' or both 'format' and 'path' in options")
            df = self.spark.read.format(fmt).load(path)
        filter_expr = options.get("filter")
        if filter_expr:
            df = df.filter(filter_expr)
        return [row.asDict(recursive=True) for row in df.collect()]

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "SparkTool":
        try:
            from pyspark.sql import SparkSession
        except ImportError as exc:  # pragma: no cover - optional extra
            raise RuntimeError("Spark sources require the 'pyspark' package (pip install route-recon[spark])") from exc
        spark_cfg = cfg.get("runtime", {}).get("spark") or {}
        builder = SparkSession.builder.appName(spark_cfg.get("app_name", "route_recon"))
        if spark_cfg.get("master"):
            builder = builder.master(spark_cfg["master"])
        for key, value in (spark_cfg.get("conf") or {}).items():
            builder = builder.config(key, value)
        return cls(builder.getOrCreate())

    def stop(self) -> None:
        if self.spark is not None:
            self.spark.stop()
