from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from tokenledger.api.errors import ApiError
from tokenledger.ledger.state import TokenLedgerView

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _view(request: Request) -> TokenLedgerView:
    return _executor(request).view()


def _int_param(v: Any, default: int) -> int:
    """Parse an int-ish query param safely."""
    if v is None:
        return int(default)
    try:
        return int(str(v).strip())
    except ValueError:
        return int(default)
