# src/tokenledger/runtime/chain_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None or (isinstance(v, str) and not v.strip()):
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"expected integer, got {v!r}") from e


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class LedgerConfig:
    chain_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Single SQLite DB file path for snapshot + receipts.
    db_path: str

    # Ed25519 signatures over every submitted tx. Only dev/testnet may turn this off.
    require_signatures: bool

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.chain_id, str) or not cfg.chain_id.strip():
        raise ValueError("chain_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")

    if mode == "prod" and not cfg.require_signatures:
        raise ValueError("require_signatures cannot be disabled in prod mode")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level).strip().upper() not in _ALLOWED_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(_ALLOWED_LEVELS)}; got: {cfg.log_level!r}")


def default_ledger_config() -> LedgerConfig:
    # Production-safe defaults: no config means prod posture with signatures on.
    return LedgerConfig(
        chain_id="tokenledger-dev",
        mode="prod",
        db_path="./data/tokenledger.db",
        require_signatures=True,
        api_host="127.0.0.1",
        api_port=8000,
        log_level="INFO",
    )


def _from_mapping(raw: Json, base: LedgerConfig) -> LedgerConfig:
    return LedgerConfig(
        chain_id=_as_str(raw.get("chain_id"), base.chain_id),
        mode=_as_str(raw.get("mode"), base.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), base.db_path),
        require_signatures=_as_bool(raw.get("require_signatures"), base.require_signatures),
        api_host=_as_str(raw.get("api_host"), base.api_host),
        api_port=_as_int(raw.get("api_port"), base.api_port),
        log_level=_as_str(raw.get("log_level"), base.log_level).strip().upper(),
    )


def read_ledger_config_file(path: str) -> LedgerConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a JSON object")

    cfg = _from_mapping(raw, default_ledger_config())
    validate_ledger_config(cfg)
    return cfg


_ENV_KEYS = {
    "chain_id": "TOKENLEDGER_CHAIN_ID",
    "mode": "TOKENLEDGER_MODE",
    "db_path": "TOKENLEDGER_DB_PATH",
    "require_signatures": "TOKENLEDGER_REQUIRE_SIGNATURES",
    "api_host": "TOKENLEDGER_API_HOST",
    "api_port": "TOKENLEDGER_API_PORT",
    "log_level": "TOKENLEDGER_LOG_LEVEL",
}


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    """Resolve config: defaults, then the JSON file (if any), then env overrides."""
    p = config_path or os.environ.get("TOKENLEDGER_CONFIG_PATH")
    base = read_ledger_config_file(p) if p else default_ledger_config()

    overrides = {field: os.environ.get(key) for field, key in _ENV_KEYS.items() if os.environ.get(key) is not None}
    cfg = _from_mapping(overrides, base) if overrides else base
    validate_ledger_config(cfg)
    return cfg


def with_overrides(cfg: LedgerConfig, **changes: Any) -> LedgerConfig:
    out = replace(cfg, **changes)
    validate_ledger_config(out)
    return out


__all__ = [
    "LedgerConfig",
    "default_ledger_config",
    "load_ledger_config",
    "read_ledger_config_file",
    "validate_ledger_config",
    "with_overrides",
]
