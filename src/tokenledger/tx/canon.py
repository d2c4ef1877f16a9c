# src/tokenledger/tx/canon.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, TypedDict

import yaml


class CanonError(RuntimeError):
    pass


class CanonTxType(TypedDict, total=False):
    """
    Canonical TxType entry.

    total=False so we can carry extra forward-compatible fields
    while validating required fields at load-time.
    """
    id: int
    name: str
    kind: str
    required: List[str]
    optional: List[str]
    emits: List[str]
    errors: List[str]


_KINDS = {"mutation", "query"}

DEFAULT_CANON_PATH = Path(__file__).resolve().with_name("token_canon.yaml")


@dataclass(frozen=True)
class TxIndex:
    """
    Normalized TxType index.

    - by_name is keyed by the upper-case wire name (TOKEN_TRANSFER, ...)
    - by_id uses int keys
    """
    tx_types: List[CanonTxType]
    by_name: Dict[str, CanonTxType]
    by_id: Dict[int, CanonTxType]
    meta: Dict[str, Any]
    source_sha256: str

    def get(self, name: str) -> Optional[CanonTxType]:
        return self.by_name.get(str(name or "").strip().upper())

    def get_by_id(self, tx_id: int) -> Optional[CanonTxType]:
        return self.by_id.get(int(tx_id))

    def names(self) -> List[str]:
        return [tx["name"] for tx in self.tx_types]

    def is_query(self, name: str) -> bool:
        tx = self.get(name)
        return bool(tx) and tx.get("kind") == "query"

    @classmethod
    def load_from_file(cls, path: str | Path) -> "TxIndex":
        return load_tx_index_yaml(path)


def _sha256_bytes(data: bytes) -> str:
    h = hashlib.sha256()
    h.update(data)
    return h.hexdigest()


def _str_list(tx_name: str, v: Any, field: str) -> List[str]:
    if v is None:
        return []
    if not isinstance(v, list) or not all(isinstance(x, str) and x for x in v):
        raise CanonError(f"tx '{tx_name}' field '{field}' must be a list of non-empty strings")
    return list(v)


def _validate_entry(tx: Any) -> CanonTxType:
    if not isinstance(tx, dict):
        raise CanonError("tx entry must be an object")

    if "name" not in tx:
        raise CanonError("tx entry missing required field: name")
    if "id" not in tx:
        raise CanonError(f"tx '{tx.get('name', '?')}' missing required field: id")

    name = tx.get("name")
    if not isinstance(name, str) or not name.strip():
        raise CanonError("tx entry 'name' must be non-empty string")
    name = name.strip().upper()

    tx_id = tx.get("id")
    if isinstance(tx_id, bool) or not isinstance(tx_id, int):
        raise CanonError(f"tx '{name}' id must be int")

    kind = str(tx.get("kind") or "mutation").strip().lower()
    if kind not in _KINDS:
        raise CanonError(f"tx '{name}' kind must be one of {sorted(_KINDS)}")

    out: CanonTxType = dict(tx)  # type: ignore[assignment]
    out["name"] = name
    out["id"] = tx_id
    out["kind"] = kind
    out["required"] = _str_list(name, tx.get("required"), "required")
    out["optional"] = _str_list(name, tx.get("optional"), "optional")
    out["emits"] = _str_list(name, tx.get("emits"), "emits")
    out["errors"] = _str_list(name, tx.get("errors"), "errors")
    return out


def load_tx_index_yaml(path: str | Path) -> TxIndex:
    """Load a tx canon YAML file and return a normalized index."""
    p = Path(path)
    if not p.exists():
        raise CanonError(f"canon artifact not found: {p}")

    raw = p.read_bytes()
    try:
        obj = yaml.safe_load(raw.decode("utf-8"))
    except yaml.YAMLError as e:
        raise CanonError(f"failed to parse {p.name}: {e}") from e

    if not isinstance(obj, dict):
        raise CanonError("canon root must be a mapping")

    txs = obj.get("tx_types")
    if not isinstance(txs, list) or not txs:
        raise CanonError("canon must contain a non-empty 'tx_types' list")

    tx_list: List[CanonTxType] = []
    by_name: Dict[str, CanonTxType] = {}
    by_id: Dict[int, CanonTxType] = {}

    for entry in txs:
        tx = _validate_entry(entry)
        name = tx["name"]
        tx_id = int(tx["id"])

        if name in by_name:
            raise CanonError(f"duplicate tx name in canon: {name}")
        if tx_id in by_id:
            raise CanonError(f"duplicate tx id in canon: {tx_id}")

        tx_list.append(tx)
        by_name[name] = tx
        by_id[tx_id] = tx

    tx_list.sort(key=lambda x: int(x["id"]))
    meta = {k: v for k, v in obj.items() if k != "tx_types"}
    meta.setdefault("_source", str(p))

    return TxIndex(
        tx_types=tx_list,
        by_name=by_name,
        by_id=by_id,
        meta=meta,
        source_sha256=_sha256_bytes(raw),
    )


@lru_cache(maxsize=1)
def load_default_tx_index() -> TxIndex:
    """The canon shipped inside the package (cached)."""
    return load_tx_index_yaml(DEFAULT_CANON_PATH)


__all__ = [
    "CanonError",
    "CanonTxType",
    "DEFAULT_CANON_PATH",
    "TxIndex",
    "load_default_tx_index",
    "load_tx_index_yaml",
]
