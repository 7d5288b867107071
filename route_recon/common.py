from __future__ import annotations

import json
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

RUN_ID = uuid.uuid4().hex

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


class PrintLogger:
    """Line-oriented JSON logger shared by the auditor, loaders and CLI."""

    def __init__(
        self,
        job_name: str = "route_recon",
        file_path: Optional[str] = None,
        stream: Optional[TextIO] = None,
        level: str = "INFO",
    ) -> None:
        self.job_name = job_name
        self.file_path = file_path
        self.stream = stream
        self.min_level = _LEVELS.get(level.upper(), 20)

    def log(self, level: str, msg: str, **fields: Any) -> Dict[str, Any]:
        level = level.upper()
        if level == "WARNING":
            level = "WARN"
        record: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "job": self.job_name,
            "run_id": RUN_ID,
            "msg": msg,
        }
        record.update(fields)
        if _LEVELS.get(level, 20) < self.min_level:
            return record
        line = json.dumps(record, default=str, sort_keys=False)
        stream = self.stream if self.stream is not None else sys.stdout
        print(line, file=stream)
        if self.file_path:
            with open(self.file_path, "a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        return record

    def debug(self, msg: str, **fields: Any) -> Dict[str, Any]:
        return self.log("DEBUG", msg, **fields)

    def info(self, msg: str, **fields: Any) -> Dict[str, Any]:
        return self.log("INFO", msg, **fields)

    def warn(self, msg: str, **fields: Any) -> Dict[str, Any]:
        return self.log("WARN", msg, **fields)

    warning = warn

    def error(self, msg: str, **fields: Any) -> Dict[str, Any]:
        return self.log("ERROR", msg, **fields)


__all__ = ["PrintLogger", "RUN_ID"]
