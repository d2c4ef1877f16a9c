# src/tokenledger/runtime/executor_boot.py

from __future__ import annotations

from typing import Optional

from tokenledger.runtime.chain_config import LedgerConfig, load_ledger_config
from tokenledger.runtime.executor import TokenExecutor


def build_executor(cfg: Optional[LedgerConfig] = None) -> TokenExecutor:
    """
    Build a TokenExecutor from an explicit config or, if omitted, from
    TOKENLEDGER_CONFIG_PATH / TOKENLEDGER_* environment variables.
    """
    c = cfg or load_ledger_config()
    return TokenExecutor(
        db_path=c.db_path,
        chain_id=c.chain_id,
        require_signatures=c.require_signatures,
    )
