"""tokenledger.ledger.types

Value types for the token ledger plus strict argument coercion.

The persisted state is plain JSON, so this module is the single place that
converts between JSON-friendly shapes and the typed values the operations
work with:

  - TokenMetadata: immutable-once-set record (name, ticker, decimals,
    max_supply, minted). Name/ticker are raw bytes, persisted as hex.
  - coerce_u64 / coerce_u8: reject bools, negatives and out-of-range ints.
  - coerce_bytes: accept UTF-8 text or raw bytes.
  - coerce_account: non-empty opaque account id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from tokenledger.ledger.constants import DEFAULT_DECIMALS, U8_MAX, U64_MAX
from tokenledger.runtime.errors import InvalidArgument

Json = Dict[str, Any]
AccountId = str


def coerce_uint(v: Any, *, field: str, max_value: int) -> int:
    # bool is an int subclass; disallow it explicitly
    if isinstance(v, bool) or not isinstance(v, int):
        raise InvalidArgument({"field": field, "expected": "int", "got": type(v).__name__})
    if v < 0 or v > max_value:
        raise InvalidArgument({"field": field, "value": v, "min": 0, "max": max_value})
    return int(v)


def coerce_u64(v: Any, *, field: str) -> int:
    return coerce_uint(v, field=field, max_value=U64_MAX)


def coerce_u8(v: Any, *, field: str) -> int:
    return coerce_uint(v, field=field, max_value=U8_MAX)


def coerce_bytes(v: Any, *, field: str) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if isinstance(v, str):
        try:
            return v.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidArgument({"field": field, "expected": "utf-8"}) from e
    raise InvalidArgument({"field": field, "expected": "str|bytes", "got": type(v).__name__})


def coerce_account(v: Any, *, field: str) -> AccountId:
    if not isinstance(v, str) or not v.strip():
        raise InvalidArgument({"field": field, "expected": "account_id"})
    return v


def _hex_to_bytes(v: Any, *, field: str) -> bytes:
    if v is None or v == "":
        return b""
    try:
        return bytes.fromhex(str(v))
    except ValueError as e:
        raise ValueError(f"token state schema error: field '{field}' must be hex") from e


@dataclass(frozen=True)
class TokenMetadata:
    """Token metadata as stored under state["token"]."""

    name: bytes = b""
    ticker: bytes = b""
    decimals: int = DEFAULT_DECIMALS
    max_supply: int = 0
    minted: bool = False

    @classmethod
    def from_json(cls, j: Any) -> "TokenMetadata":
        if not isinstance(j, dict):
            return cls()
        return cls(
            name=_hex_to_bytes(j.get("name"), field="name"),
            ticker=_hex_to_bytes(j.get("ticker"), field="ticker"),
            decimals=int(j.get("decimals", DEFAULT_DECIMALS)),
            max_supply=int(j.get("max_supply", 0)),
            minted=bool(j.get("minted", False)),
        )

    def to_json(self) -> Json:
        return {
            "name": self.name.hex(),
            "ticker": self.ticker.hex(),
            "decimals": int(self.decimals),
            "max_supply": int(self.max_supply),
            "minted": bool(self.minted),
        }


__all__ = [
    "AccountId",
    "Json",
    "TokenMetadata",
    "coerce_account",
    "coerce_bytes",
    "coerce_u64",
    "coerce_u8",
    "coerce_uint",
]
