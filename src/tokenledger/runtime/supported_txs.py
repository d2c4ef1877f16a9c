# src/tokenledger/runtime/supported_txs.py
"""Build-time supported tx types.

Admission accepts tx types listed in the packaged canon; the apply router
fails closed for anything no domain applier claims. SUPPORTED_TX_TYPES is the
intersection of both views so callers (API, health) can report what this build
will actually execute.
"""

from __future__ import annotations

from typing import AbstractSet

from tokenledger.runtime.apply.token import TOKEN_TX_TYPES
from tokenledger.tx.canon import load_default_tx_index


def _load_supported() -> AbstractSet[str]:
    canon = {n.upper() for n in load_default_tx_index().names()}
    return frozenset(canon & set(TOKEN_TX_TYPES))


SUPPORTED_TX_TYPES: AbstractSet[str] = _load_supported()


__all__ = ["SUPPORTED_TX_TYPES"]
