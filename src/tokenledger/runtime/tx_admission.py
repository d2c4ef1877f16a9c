from __future__ import annotations

import json
import os
import re
from typing import Any, Dict, Optional, Tuple

from tokenledger.runtime.sigverify import signatures_required, verify_tx_signature
from tokenledger.runtime.tx_admission_types import TxEnvelope, TxVerdict
from tokenledger.tx.canon import TxIndex

Json = Dict[str, Any]

_CANONICAL_SIGNER = re.compile(r"[0-9a-f]{64}")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return int(default)
    try:
        return int(str(v).strip())
    except ValueError:
        return int(default)


def _json_default(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    raise TypeError(f"not JSON serializable: {type(v).__name__}")


def _utf8_encodable(obj: Any) -> bool:
    try:
        json.dumps(obj, ensure_ascii=False, default=_json_default).encode("utf-8")
    except UnicodeEncodeError:
        return False
    except (TypeError, ValueError):
        # non-JSON values are reported by the payload checks
        return True
    return True


def _json_size_bytes(obj: Any) -> int:
    """Compute JSON byte size. If not serializable, return -1 (unknown)."""
    if isinstance(obj, TxEnvelope):
        obj = obj.to_json()
    try:
        return len(
            json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True, default=_json_default).encode(
                "utf-8"
            )
        )
    except (TypeError, ValueError):
        return -1


def _validate_payload_limits(payload: Any) -> Optional[TxVerdict]:
    """Generic payload validation (shape + size caps)."""
    if payload is None:
        return TxVerdict.reject("invalid_payload", "payload_required", {"expected": "object"})
    if not isinstance(payload, dict):
        return TxVerdict.reject("invalid_payload", "payload_must_be_object", {"type": type(payload).__name__})

    max_payload_bytes = _env_int("TOKENLEDGER_MAX_TX_PAYLOAD_BYTES", 4 * 1024)
    max_payload_keys = _env_int("TOKENLEDGER_MAX_TX_PAYLOAD_KEYS", 16)
    max_string_bytes = _env_int("TOKENLEDGER_MAX_TX_STRING_BYTES", 1024)

    if len(payload) > int(max_payload_keys):
        return TxVerdict.reject(
            "invalid_payload",
            "payload_too_many_keys",
            {"keys": len(payload), "max_keys": int(max_payload_keys)},
        )

    payload_bytes = _json_size_bytes(payload)
    if payload_bytes >= 0 and payload_bytes > int(max_payload_bytes):
        return TxVerdict.reject(
            "payload_too_large",
            "payload_exceeds_size_limit",
            {"bytes": int(payload_bytes), "max_bytes": int(max_payload_bytes)},
        )

    # Token payloads are flat: scalars, text or raw bytes only.
    for k, v in payload.items():
        if not isinstance(k, str):
            return TxVerdict.reject("invalid_payload", "invalid_key_type", {"key_type": type(k).__name__})
        if v is None or isinstance(v, (bool, int)):
            continue
        if isinstance(v, str):
            b = len(v.encode("utf-8", errors="ignore"))
        elif isinstance(v, (bytes, bytearray)):
            b = len(v)
        else:
            return TxVerdict.reject("invalid_payload", "invalid_value_type", {"key": k, "type": type(v).__name__})
        if b > int(max_string_bytes):
            return TxVerdict.reject(
                "invalid_payload", "string_too_large", {"key": k, "bytes": int(b), "max_bytes": int(max_string_bytes)}
            )

    return None


def _validate_required(txdef: Dict[str, Any], payload: Json) -> Optional[TxVerdict]:
    for key in txdef.get("required") or []:
        if key not in payload:
            return TxVerdict.reject("invalid_payload", f"missing_{key}", {"missing": key})

    allowed = set(txdef.get("required") or []) | set(txdef.get("optional") or [])
    unknown = sorted(k for k in payload if k not in allowed)
    if unknown:
        return TxVerdict.reject("invalid_payload", "unknown_payload_keys", {"keys": unknown})
    return None


def _check_shape(tx: Any) -> Tuple[Optional[TxEnvelope], Optional[TxVerdict]]:
    if isinstance(tx, TxEnvelope):
        return tx, None
    if not isinstance(tx, dict):
        return None, TxVerdict.reject("bad_shape", "tx_must_be_object", {"type": type(tx).__name__})

    nonce = tx.get("nonce", 0)
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        return None, TxVerdict.reject("bad_shape", "nonce_must_be_int", {"type": type(nonce).__name__})
    for key in ("tx_type", "signer", "sig"):
        v = tx.get(key)
        if v is not None and not isinstance(v, str):
            return None, TxVerdict.reject("bad_shape", f"{key}_must_be_string", {"type": type(v).__name__})
    payload = tx.get("payload")
    if payload is not None and not isinstance(payload, dict):
        return None, TxVerdict.reject("invalid_payload", "payload_must_be_object", {"type": type(payload).__name__})

    return TxEnvelope.from_json(tx), None


def admit_tx(tx: Any, ledger: Optional[Json], canon: Optional[TxIndex]) -> TxVerdict:
    """Decide whether `tx` may be executed against `ledger`.

    Checks, in order: envelope size, shape, UTF-8 encodability, canon
    membership, payload limits, canon-required payload keys, then (when the
    ledger params require signatures) the canonical signer form and the
    signature itself. Ledger preconditions (funds, allowances, ...) are the
    operations' job, not admission's.
    """
    if canon is None:
        return TxVerdict.reject("invalid_args", "missing_canon", None)

    max_tx_bytes = _env_int("TOKENLEDGER_MAX_TX_ENVELOPE_BYTES", 8 * 1024)
    env_size = _json_size_bytes(tx)
    if env_size >= 0 and env_size > int(max_tx_bytes):
        return TxVerdict.reject(
            "tx_too_large",
            "tx_envelope_exceeds_size_limit",
            {"bytes": int(env_size), "max_bytes": int(max_tx_bytes)},
        )

    env, bad = _check_shape(tx)
    if bad is not None:
        return bad
    assert env is not None

    # lone surrogates cannot be hashed into a tx id or signed over
    if not _utf8_encodable(env.unsigned()):
        return TxVerdict.reject("invalid_payload", "not_utf8_encodable", None)

    if not env.tx_type.strip():
        return TxVerdict.reject("bad_shape", "missing_tx_type", None)
    if not env.signer.strip():
        return TxVerdict.reject("bad_shape", "missing_signer", None)
    if int(env.nonce) < 0:
        return TxVerdict.reject("bad_shape", "nonce_must_be_nonnegative", {"nonce": int(env.nonce)})

    txdef = canon.get(env.tx_type)
    if txdef is None:
        return TxVerdict.reject("unknown_tx", "tx_type_not_in_canon", {"tx_type": env.tx_type})

    payload_verdict = _validate_payload_limits(env.payload)
    if payload_verdict is not None:
        return payload_verdict

    payload_verdict = _validate_required(dict(txdef), env.payload)
    if payload_verdict is not None:
        return payload_verdict

    state = ledger if isinstance(ledger, dict) else {}
    if signatures_required(state) and not _CANONICAL_SIGNER.fullmatch(env.signer):
        return TxVerdict.reject("bad_shape", "signer_not_canonical", {"expected": "lowercase hex ed25519 pubkey"})
    if not verify_tx_signature(state, env.to_json()):
        return TxVerdict.reject(
            "bad_sig",
            "signature_verification_failed",
            {"signer": env.signer, "tx_type": env.tx_type},
        )

    return TxVerdict.admit()


__all__ = ["TxEnvelope", "TxVerdict", "admit_tx"]
