# src/tokenledger/runtime/sigverify.py

from __future__ import annotations

from typing import Any, Dict

from tokenledger.crypto.sig import canonical_tx_message, verify_ed25519_signature

Json = Dict[str, Any]


def signatures_required(state: Json) -> bool:
    params = state.get("params") if isinstance(state, dict) else None
    if not isinstance(params, dict):
        return True
    # Protocol flag: default is True (require signatures)
    return bool(params.get("require_signatures", True))


def verify_tx_signature(state: Json, tx: Json) -> bool:
    """Verify a tx signature against its signer.

    Account ids are hex Ed25519 public keys, so the signer field is itself the
    key the signature must verify against; there is no key registry.

    Policy:
      - If params disable signatures (require_signatures=False), return True.
      - Otherwise a missing or non-verifying sig is invalid.

    NOTE: This function is pure (no I/O).
    """
    if not isinstance(tx, dict):
        return False

    signer = tx.get("signer")
    if not isinstance(signer, str) or not signer.strip():
        return False

    if not signatures_required(state):
        return True

    sig = tx.get("sig")
    if not isinstance(sig, str) or not sig.strip():
        return False

    try:
        msg = canonical_tx_message(
            chain_id=str(state.get("chain_id") or ""),
            tx_type=str(tx.get("tx_type") or ""),
            signer=signer,
            nonce=int(tx.get("nonce") or 0),
            payload=tx.get("payload") if isinstance(tx.get("payload"), dict) else {},
        )
    except (TypeError, ValueError):
        return False

    return verify_ed25519_signature(message=msg, sig=sig, pubkey=signer)


__all__ = ["signatures_required", "verify_tx_signature"]
