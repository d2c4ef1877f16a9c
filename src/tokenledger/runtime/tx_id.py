# src/tokenledger/runtime/tx_id.py
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

from tokenledger.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def _json_default(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    raise TypeError(f"not JSON serializable: {type(v).__name__}")


def _json_canonical(obj: Any) -> bytes:
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_json_default
    ).encode("utf-8")


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def compute_tx_id(
    *,
    chain_id: str,
    tx_type: str,
    signer: str,
    nonce: int,
    payload: Json,
) -> str:
    """
    Canonical tx_id function (single source of truth).

    Contract:
      - Includes chain_id (so identical tx across chains cannot collide)
      - Excludes sig (signature encoding MUST NOT affect tx_id)
    """
    obj: Json = {
        "chain_id": str(chain_id),
        "tx_type": str(tx_type).strip().upper(),
        "signer": str(signer),
        "nonce": int(nonce),
        "payload": payload if isinstance(payload, dict) else {},
    }
    return _sha256_hex(_json_canonical(obj))


def compute_tx_id_from_envelope(chain_id: str, env: TxEnvelope) -> str:
    return compute_tx_id(
        chain_id=str(chain_id),
        tx_type=env.tx_type,
        signer=env.signer,
        nonce=int(env.nonce),
        payload=env.payload,
    )


__all__ = ["compute_tx_id", "compute_tx_id_from_envelope"]
