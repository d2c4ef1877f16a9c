from __future__ import annotations

import pytest

from tokenledger.crypto.sig import (
    canonical_tx_message,
    public_key_hex,
    sign_ed25519,
    sign_tx_envelope_dict,
    verify_ed25519_signature,
)
from tokenledger.runtime.state_invariants import ensure_state
from tokenledger.runtime.tx_admission import admit_tx
from tokenledger.runtime.tx_id import compute_tx_id, compute_tx_id_from_envelope
from tokenledger.runtime.tx_admission_types import TxEnvelope
from tokenledger.tx.canon import load_default_tx_index

SEED_HEX = "11" * 32
CHAIN = "tokenledger-test"


def test_operator_signed_envelope_is_admitted() -> None:
    signer = public_key_hex(SEED_HEX)
    tx = {"tx_type": "TOKEN_TRANSFER", "signer": signer, "nonce": 3, "payload": {"to": "bob", "value": 1}}

    signed = sign_tx_envelope_dict(tx=tx, privkey=SEED_HEX, chain_id=CHAIN)
    assert "sig" not in tx

    ledger = ensure_state({"chain_id": CHAIN})
    assert admit_tx(signed, ledger, load_default_tx_index()).ok


def test_base64_signatures_verify() -> None:
    signer = public_key_hex(SEED_HEX)
    msg = canonical_tx_message(chain_id=CHAIN, tx_type="TOKEN_NAME", signer=signer, nonce=0, payload={})
    sig = sign_ed25519(message=msg, privkey=SEED_HEX, encoding="b64")
    assert verify_ed25519_signature(message=msg, sig=sig, pubkey=signer)
    assert not verify_ed25519_signature(message=msg + b"x", sig=sig, pubkey=signer)


def test_garbage_inputs_do_not_verify() -> None:
    assert not verify_ed25519_signature(message=b"m", sig="zz!!", pubkey="00" * 32)
    assert not verify_ed25519_signature(message=b"m", sig="00" * 64, pubkey="abcd")


def test_bad_private_key_and_encoding() -> None:
    with pytest.raises(ValueError):
        public_key_hex("00" * 16)
    with pytest.raises(ValueError):
        sign_ed25519(message=b"m", privkey=SEED_HEX, encoding="pem")


def test_tx_id_ignores_signature_and_binds_chain() -> None:
    signer = public_key_hex(SEED_HEX)
    tx = {"tx_type": "token_name", "signer": signer, "nonce": 0, "payload": {}}
    signed = sign_tx_envelope_dict(tx=tx, privkey=SEED_HEX, chain_id=CHAIN)

    a = compute_tx_id_from_envelope(CHAIN, TxEnvelope.from_json(tx))
    b = compute_tx_id_from_envelope(CHAIN, TxEnvelope.from_json(signed))
    assert a == b
    assert a == compute_tx_id(chain_id=CHAIN, tx_type="TOKEN_NAME", signer=signer, nonce=0, payload={})
    assert a != compute_tx_id(chain_id="other", tx_type="TOKEN_NAME", signer=signer, nonce=0, payload={})
    assert len(a) == 64
