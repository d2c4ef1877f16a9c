# src/tokenledger/api/__main__.py
from __future__ import annotations

import uvicorn

from tokenledger.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so TOKENLEDGER_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from tokenledger.api.app import create_app
    from tokenledger.runtime.chain_config import load_ledger_config
    from tokenledger.runtime.runtime_logging import configure_logging

    cfg = load_ledger_config()
    configure_logging(cfg.log_level)

    uvicorn.run(create_app(), host=cfg.api_host, port=cfg.api_port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
