from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict, Optional


Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _json_default(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    return str(v)


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit a single JSONL log event."""
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        msg = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        msg = " ".join(parts)
    logger.log(level, msg)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging for JSONL output (stdout).

    - Level from `level`, else TOKENLEDGER_LOG_LEVEL (default INFO).
    - Safe to call multiple times.
    """
    level_name = (level or os.environ.get("TOKENLEDGER_LOG_LEVEL") or "INFO").strip().upper()
    lvl = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if getattr(root, "_tokenledger_configured", False):  # type: ignore[attr-defined]
        root.setLevel(lvl)
        return

    handler = logging.StreamHandler()
    handler.setLevel(lvl)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(lvl)
    setattr(root, "_tokenledger_configured", True)  # type: ignore[attr-defined]


__all__ = ["configure_logging", "log_event"]
