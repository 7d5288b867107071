from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class QueryRequest:
    """Where to read rows from; the keys understood in ``options`` depend on the tool."""

    options: Dict[str, Any] = field(default_factory=dict)


class ExecutionTool(abc.ABC):
    @abc.abstractmethod
    def fetch_rows(self, request: QueryRequest) -> List[Dict[str, Any]]:
        ...

    def stop(self) -> None:
        return None
