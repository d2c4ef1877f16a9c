from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tokenledger.runtime.supported_txs import SUPPORTED_TX_TYPES

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    """Liveness plus a small amount of ledger identity; never raises."""
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        return {"ok": True, "ready": False}

    v = ex.view()
    return {
        "ok": True,
        "ready": True,
        "chain_id": ex.chain_id,
        "seq": v.seq,
        "minted": v.meta.minted,
        "canon_sha256": ex.tx_index.source_sha256,
        "supported_tx_types": sorted(SUPPORTED_TX_TYPES),
    }
