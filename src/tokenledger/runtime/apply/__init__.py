# src/tokenledger/runtime/apply/__init__.py
"""Domain-specific apply modules.

These modules implement deterministic ledger state transitions for subsets
of tx types. The dispatcher (domain_dispatch.py) routes each envelope to the
first applier that claims it.
"""

from __future__ import annotations

__all__ = [
    "token",
]
