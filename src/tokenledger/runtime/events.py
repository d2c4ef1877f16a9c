"""
tokenledger.runtime.events - typed notification records emitted by ledger calls.

Queries report their result both as a return value and as a named record
(`NameReturned`, `BalanceReturned`, ...) so observers that only see the event
stream still get the answer. Mutations emit `Transfer` / `Approval`.

`EventSink` collects records for one call; the dispatcher hands them back to
the host, which stores them in the call receipt.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Iterator, List

Json = Dict[str, Any]


def _jsonable(v: Any) -> Any:
    if isinstance(v, bytes):
        return v.hex()
    return v


@dataclass(frozen=True)
class TokenEvent:
    @property
    def event(self) -> str:
        return type(self).__name__

    def to_json(self) -> Json:
        out: Json = {"event": self.event}
        for f in fields(self):
            out[f.name] = _jsonable(getattr(self, f.name))
        return out


@dataclass(frozen=True)
class NameReturned(TokenEvent):
    name: bytes


@dataclass(frozen=True)
class TickerReturned(TokenEvent):
    ticker: bytes


@dataclass(frozen=True)
class DecimalsReturned(TokenEvent):
    decimals: int


@dataclass(frozen=True)
class TotalSupplyReturned(TokenEvent):
    total_supply: int


@dataclass(frozen=True)
class BalanceReturned(TokenEvent):
    value: int


@dataclass(frozen=True)
class AllowanceReturned(TokenEvent):
    value: int


@dataclass(frozen=True)
class Transfer(TokenEvent):
    sender: str
    to: str
    value: int

    def to_json(self) -> Json:
        # "from" is a keyword in Python but the conventional wire name.
        return {"event": self.event, "from": self.sender, "to": self.to, "value": self.value}


@dataclass(frozen=True)
class Approval(TokenEvent):
    owner: str
    spender: str
    value: int


class EventSink:
    """Ordered collector for events emitted during a single call."""

    __slots__ = ["_events"]

    def __init__(self) -> None:
        self._events: List[TokenEvent] = []

    def emit(self, event: TokenEvent) -> None:
        self._events.append(event)

    def clear(self) -> None:
        self._events.clear()

    @property
    def events(self) -> List[TokenEvent]:
        return list(self._events)

    def to_json(self) -> List[Json]:
        return [e.to_json() for e in self._events]

    def __iter__(self) -> Iterator[TokenEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._events)


__all__ = [
    "TokenEvent",
    "NameReturned",
    "TickerReturned",
    "DecimalsReturned",
    "TotalSupplyReturned",
    "BalanceReturned",
    "AllowanceReturned",
    "Transfer",
    "Approval",
    "EventSink",
]
