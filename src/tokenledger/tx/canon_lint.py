"""
Token ledger tx canon linter.

Checks the packaged canon (tokenledger/tx/token_canon.yaml) against the code:
- every canon tx type is claimed by the token applier, and vice versa
- every `errors` entry names a TokenError subclass
- every `emits` entry names a TokenEvent subclass
- queries declare exactly one emitted event

Run:
    python -m tokenledger.tx.canon_lint [path/to/canon.yaml]
"""

from __future__ import annotations

import sys
from typing import List, Optional, Sequence

from tokenledger.runtime import errors as token_errors
from tokenledger.runtime import events as token_events
from tokenledger.runtime.apply.token import TOKEN_TX_TYPES
from tokenledger.tx.canon import CanonError, TxIndex, load_default_tx_index, load_tx_index_yaml


def _error_kinds() -> set[str]:
    return {
        name
        for name, obj in vars(token_errors).items()
        if isinstance(obj, type) and issubclass(obj, token_errors.TokenError) and obj is not token_errors.TokenError
    }


def _event_kinds() -> set[str]:
    return {
        name
        for name, obj in vars(token_events).items()
        if isinstance(obj, type) and issubclass(obj, token_events.TokenEvent) and obj is not token_events.TokenEvent
    }


def lint_canon(idx: TxIndex) -> List[str]:
    """Return human-readable violations; empty means the canon is consistent."""
    problems: List[str] = []
    names = set(idx.by_name)

    for missing in sorted(names - set(TOKEN_TX_TYPES)):
        problems.append(f"tx '{missing}' is in canon but no applier claims it")
    for extra in sorted(set(TOKEN_TX_TYPES) - names):
        problems.append(f"tx '{extra}' is applied but missing from canon")

    errors = _error_kinds()
    events = _event_kinds()

    for tx in idx.tx_types:
        name = tx["name"]
        for e in tx.get("errors") or []:
            if e not in errors:
                problems.append(f"tx '{name}' lists unknown error '{e}'")
        for ev in tx.get("emits") or []:
            if ev not in events:
                problems.append(f"tx '{name}' lists unknown event '{ev}'")
        if tx.get("kind") == "query" and len(tx.get("emits") or []) != 1:
            problems.append(f"query '{name}' must emit exactly one event")

    return problems


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        idx = load_tx_index_yaml(args[0]) if args else load_default_tx_index()
    except CanonError as e:
        print(f"CANON VIOLATION: {e}", file=sys.stderr)
        return 1

    problems = lint_canon(idx)
    for p in problems:
        print(f"CANON VIOLATION: {p}", file=sys.stderr)
    if problems:
        return 1

    print(f"canon ok: {len(idx.tx_types)} tx types, sha256={idx.source_sha256}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
