from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .common import PrintLogger

Emitter = Callable[[Dict[str, Any]], None]


def emit_log(
    emitter: Optional[Emitter],
    *,
    level: str,
    msg: str,
    logger: Optional[PrintLogger] = None,
    **fields: Any,
) -> None:
    """Write a structured event to the logger and forward it to the emitter, if any."""

    event = {"level": level.upper(), "msg": msg, **fields}
    if logger is not None:
        getattr(logger, level.lower(), logger.info)(msg, **fields)
    if emitter is not None:
        emitter(event)


__all__ = ["Emitter", "emit_log"]
