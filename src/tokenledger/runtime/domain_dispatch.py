# src/tokenledger/runtime/domain_dispatch.py

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from tokenledger.runtime.apply.token import apply_token
from tokenledger.runtime.errors import ApplyError
from tokenledger.runtime.runtime_logging import log_event
from tokenledger.runtime.state_invariants import ensure_state
from tokenledger.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]
ApplyFn = Callable[[Json, Any], Optional[Json]]

_log = logging.getLogger("tokenledger.dispatch")


def _get(env: Any, key: str, default: Any = None) -> Any:
    """Read a field from either a TxEnvelope-like object or a dict.

    Tests and tools pass raw dict envelopes directly into apply_tx(), while
    the executor passes a TxEnvelope object.
    """

    if isinstance(env, dict):
        return env.get(key, default)
    return getattr(env, key, default)


def _tx_type(env: Any) -> str:
    return str(_get(env, "tx_type", "") or "").strip().upper()


# Domain appliers (each returns Optional[Json]; returning None means "not claimed")
_APPLIERS: tuple[ApplyFn, ...] = (apply_token,)


def apply_tx(state: Json, env: Any) -> Json:
    """Dispatch a TxEnvelope to the first domain applier that claims it."""

    ensure_state(state)

    env_norm: Any = env
    if isinstance(env, dict):
        env_norm = TxEnvelope.from_json(env)

    t = _tx_type(env_norm)
    if not t:
        raise ApplyError("invalid_tx", "missing_tx_type", {"tx_type": t})

    for fn in _APPLIERS:
        try:
            out = fn(state, env_norm)
        except ApplyError:
            raise
        except Exception as e:
            log_event(
                _log,
                "domain_error",
                level=logging.WARNING,
                tx_type=t,
                domain=fn.__name__,
                error=type(e).__name__,
                message=str(e),
            )
            raise ApplyError(
                "domain_error",
                type(e).__name__,
                {"tx_type": t, "domain": fn.__name__, "error": str(e)},
            ) from e

        if out is not None:
            return out

    raise ApplyError("tx_unimplemented", "tx_type_not_implemented", {"tx_type": t})


__all__ = ["apply_tx"]
