from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from tokenledger.api.errors import ApiError
from tokenledger.api.routes_public_parts.common import _executor, _int_param
from tokenledger.api.schemas import TxSubmitRequest, TxSubmitResponse

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx/submit", response_model=TxSubmitResponse)
def tx_submit(request: Request, body: TxSubmitRequest) -> TxSubmitResponse:
    """Execute one signed ledger call.

    Rejections (admission, ledger errors, replays) come back as
    {"ok": false, "error": {code, message, details}} with a non-2xx status.
    """
    meta = _executor(request).submit_tx(body.model_dump())
    if not isinstance(meta, dict) or not meta.get("ok"):
        raise ApiError.from_rejection(meta if isinstance(meta, dict) else {"error": "submit_failed"})

    return TxSubmitResponse(
        tx_id=str(meta["tx_id"]),
        seq=int(meta["seq"]),
        result=meta.get("result"),
        events=list(meta.get("events") or []),
    )


@router.get("/tx/receipt/{tx_id}")
def tx_receipt(request: Request, tx_id: str) -> Json:
    rec = _executor(request).get_receipt(tx_id)
    if rec is None:
        raise ApiError.not_found("not_found", "receipt not found", {"tx_id": tx_id})
    return {"ok": True, "receipt": rec}


@router.get("/tx/receipts")
def tx_receipts(request: Request, signer: Optional[str] = None, limit: Optional[str] = None) -> Json:
    items = _executor(request).list_receipts(signer=signer, limit=_int_param(limit, 50))
    return {"ok": True, "items": items, "count": len(items)}
