from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "tokenledger" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture
def state():
    from tokenledger.runtime.state_invariants import ensure_state

    return ensure_state({})


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep operator env from leaking into tests.
    for key in [
        "TOKENLEDGER_CONFIG_PATH",
        "TOKENLEDGER_CHAIN_ID",
        "TOKENLEDGER_MODE",
        "TOKENLEDGER_DB_PATH",
        "TOKENLEDGER_REQUIRE_SIGNATURES",
        "TOKENLEDGER_API_HOST",
        "TOKENLEDGER_API_PORT",
        "TOKENLEDGER_LOG_LEVEL",
        "TOKENLEDGER_MAX_REQUEST_BYTES",
        "TOKENLEDGER_MAX_TX_PAYLOAD_BYTES",
        "TOKENLEDGER_METRICS_ENABLED",
    ]:
        monkeypatch.delenv(key, raising=False)
