# src/tokenledger/runtime/state_invariants.py
"""State invariants / normalization helpers.

Ledger state is a nested JSON-like dict mutated deterministically by the apply
modules. This module is the single place that:

  - validates the state is dict-like
  - ensures the persisted token layout exists (metadata + two maps), so the
    operations can rely on it

Layout:
  state["token"]      -> {"name", "ticker", "decimals", "max_supply", "minted"}
  state["balances"]   -> {account_id: int}
  state["allowances"] -> {owner_id: {spender_id: int}}
  state["params"]     -> host params
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Dict

from tokenledger.ledger.types import TokenMetadata

Json = Dict[str, Any]


def _ensure_dict(st: MutableMapping, key: str) -> None:
    v = st.get(key)
    if v is None:
        st[key] = {}
    elif not isinstance(v, dict):
        # Fail closed: do not attempt to coerce arbitrary types.
        raise TypeError(f"state[{key!r}] must be dict, got {type(v)}")


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains the token layout.

    Returns the (possibly mutated) dict.

    Raises:
        TypeError: if st or one of its containers has the wrong type
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    _ensure_dict(st, "params")
    _ensure_dict(st, "balances")
    _ensure_dict(st, "allowances")

    token = st.get("token")
    if token is None:
        st["token"] = TokenMetadata().to_json()
    elif not isinstance(token, dict):
        raise TypeError(f"state['token'] must be dict, got {type(token)}")
    else:
        for k, v in TokenMetadata().to_json().items():
            token.setdefault(k, v)

    for owner, spenders in st["allowances"].items():
        if not isinstance(spenders, dict):
            raise TypeError(f"state['allowances'][{owner!r}] must be dict, got {type(spenders)}")

    return st  # type: ignore[return-value]


__all__ = ["ensure_state"]
