# src/tokenledger/runtime/tx_admission_types.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TxVerdict:
    """Outcome of admission. `code`/`reason` mirror ApplyError's pair."""

    ok: bool
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def admit(cls) -> "TxVerdict":
        return cls(True, "ok", "admitted")

    @classmethod
    def reject(cls, code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> "TxVerdict":
        return cls(False, code, reason, details)


@dataclass(frozen=True)
class TxEnvelope:
    """One ledger call: the operation, the authenticated caller and its arguments.

    `nonce` is client-chosen and only makes otherwise identical calls distinct
    for tx id / replay purposes.
    """

    tx_type: str
    signer: str
    nonce: int
    payload: Dict[str, Any]
    sig: str = ""

    @classmethod
    def from_json(cls, j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        j = dict(j)
        return cls(
            tx_type=str(j.get("tx_type") or ""),
            signer=str(j.get("signer") or ""),
            nonce=int(j.get("nonce") or 0),
            payload=dict(j.get("payload") or {}),
            sig=str(j.get("sig") or ""),
        )

    def unsigned(self) -> Dict[str, Any]:
        """Fields covered by the signature and the tx id."""
        return {"tx_type": self.tx_type, "signer": self.signer, "nonce": self.nonce, "payload": self.payload}

    def to_json(self) -> Dict[str, Any]:
        out = self.unsigned()
        out["sig"] = self.sig
        return out


__all__ = ["TxEnvelope", "TxVerdict"]
