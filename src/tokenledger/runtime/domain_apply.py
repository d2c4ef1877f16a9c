# src/tokenledger/runtime/domain_apply.py
# ---------------------------------------------------------------------------
# Public, stable import path for applying tx envelopes.
# ---------------------------------------------------------------------------

from __future__ import annotations

import copy
from typing import Any, Dict

from tokenledger.runtime.domain_dispatch import apply_tx
from tokenledger.runtime.errors import ApplyError
from tokenledger.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def apply_tx_atomic(state: Json, env: Any) -> Json:
    """Apply a tx with fail-atomic semantics.

    On success:
      - state is updated as if apply_tx() ran directly.

    On ApplyError:
      - state remains unchanged.

    The operations already check every precondition before writing; applying
    on a deep copy keeps that guarantee even for a domain_error raised mid-way.
    """

    env_norm: Any = env
    if isinstance(env, dict):
        env_norm = TxEnvelope.from_json(env)

    snapshot = copy.deepcopy(state)
    meta = apply_tx(snapshot, env_norm)

    # Commit by replacing contents in-place so callers holding references
    # to `state` see the updated view.
    state.clear()
    state.update(snapshot)
    return meta


__all__ = ["ApplyError", "apply_tx", "apply_tx_atomic", "Json"]
