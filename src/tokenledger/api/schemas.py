
"""Pydantic request/response schemas for the public API.

These exist only for HTTP input validation and UX stability; the tx canon and
admission remain authoritative for payload contents.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr


class TxSubmitRequest(BaseModel):
    tx_type: StrictStr = Field(..., description="Wire name, e.g. TOKEN_TRANSFER")
    signer: StrictStr = Field(..., description="Caller account id (hex Ed25519 pubkey)")
    nonce: StrictInt = Field(default=0, ge=0, description="Client-chosen; distinguishes identical calls")
    payload: Dict[str, Any] = Field(default_factory=dict)
    sig: StrictStr = Field(default="", description="Hex Ed25519 signature over the canonical tx message")

    model_config = {"extra": "forbid"}


class TxSubmitResponse(BaseModel):
    ok: bool = True
    tx_id: str
    seq: int
    result: Any = None
    events: List[Dict[str, Any]] = Field(default_factory=list)


class TokenInfoResponse(BaseModel):
    ok: bool = True
    name: str = Field(..., description="Hex of the raw name bytes")
    name_utf8: str
    ticker: str = Field(..., description="Hex of the raw ticker bytes")
    ticker_utf8: str
    decimals: int
    total_supply: int
    minted: bool
    holders: int
    seq: int


class BalanceResponse(BaseModel):
    ok: bool = True
    account: str
    balance: Optional[int] = None
    exists: bool


class AllowanceResponse(BaseModel):
    ok: bool = True
    owner: str
    spender: str
    allowance: Optional[int] = None
    exists: bool
