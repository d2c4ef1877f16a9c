from __future__ import annotations

import json
from pathlib import Path

import pytest

from tokenledger.runtime.chain_config import (
    default_ledger_config,
    load_ledger_config,
    read_ledger_config_file,
    with_overrides,
)
from tokenledger.runtime.executor_boot import build_executor


def test_defaults_are_prod_with_signatures() -> None:
    cfg = load_ledger_config()
    assert cfg == default_ledger_config()
    assert cfg.mode == "prod"
    assert cfg.require_signatures is True


def test_file_then_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "ledger.json"
    p.write_text(json.dumps({"chain_id": "from-file", "mode": "testnet", "api_port": 9001}), encoding="utf-8")

    monkeypatch.setenv("TOKENLEDGER_CONFIG_PATH", str(p))
    monkeypatch.setenv("TOKENLEDGER_API_PORT", "9002")
    monkeypatch.setenv("TOKENLEDGER_LOG_LEVEL", "debug")

    cfg = load_ledger_config()
    assert cfg.chain_id == "from-file"
    assert cfg.mode == "testnet"
    assert cfg.api_port == 9002
    assert cfg.log_level == "DEBUG"


def test_prod_refuses_unsigned_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENLEDGER_REQUIRE_SIGNATURES", "0")
    with pytest.raises(ValueError, match="require_signatures"):
        load_ledger_config()

    monkeypatch.setenv("TOKENLEDGER_MODE", "dev")
    assert load_ledger_config().require_signatures is False


@pytest.mark.parametrize(
    "changes",
    [
        {"chain_id": " "},
        {"mode": "staging"},
        {"db_path": ""},
        {"api_port": 0},
        {"log_level": "LOUD"},
    ],
)
def test_invalid_values_fail_fast(changes: dict) -> None:
    with pytest.raises(ValueError):
        with_overrides(default_ledger_config(), **changes)


def test_garbage_port_is_an_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENLEDGER_API_PORT", "eighty")
    with pytest.raises(ValueError, match="integer"):
        load_ledger_config()


def test_config_file_must_be_object(tmp_path: Path) -> None:
    p = tmp_path / "ledger.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        read_ledger_config_file(str(p))


def test_build_executor_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENLEDGER_DB_PATH", str(tmp_path / "data" / "l.db"))
    monkeypatch.setenv("TOKENLEDGER_CHAIN_ID", "env-chain")
    monkeypatch.setenv("TOKENLEDGER_MODE", "dev")
    monkeypatch.setenv("TOKENLEDGER_REQUIRE_SIGNATURES", "false")

    ex = build_executor()
    assert ex.chain_id == "env-chain"
    assert ex.read_state()["params"]["require_signatures"] is False
    assert (tmp_path / "data" / "l.db").exists()
