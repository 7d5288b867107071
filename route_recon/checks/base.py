from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional, Type

from ..context import AuditContext
from ..results import Finding


class CheckRegistry:
    """Registry of integrity checks, kept in registration order."""

    def __init__(self) -> None:
        self._by_type: Dict[str, Type["IntegrityCheck"]] = {}

    def register(self, check_cls: Type["IntegrityCheck"]) -> None:
        check_type = check_cls.type_name()
        self._by_type[check_type] = check_cls

    def instances(self) -> List["IntegrityCheck"]:
        return [check_cls() for check_cls in self._by_type.values()]


registry = CheckRegistry()


class IntegrityCheck(abc.ABC):
    """Base class for cross-stage integrity checks.

    A check inspects an :class:`AuditContext` and returns a :class:`Finding`
    when its invariant is violated, ``None`` otherwise. Checks never raise
    for bad data; whatever they detect is reported, not thrown.
    """

    _TYPE: str
    _SEVERITY: str

    @classmethod
    def type_name(cls) -> str:
        return getattr(cls, "_TYPE", cls.__name__.lower())

    @property
    def severity(self) -> str:
        return self._SEVERITY

    def run(self, context: AuditContext) -> Optional[Finding]:
        return self._execute(context)

    def _finding(self, message: str, **detail: Any) -> Finding:
        return Finding(kind=self.type_name(), severity=self.severity, message=message, detail=detail)

    @abc.abstractmethod
    def _execute(self, context: AuditContext) -> Optional[Finding]:
        ...
