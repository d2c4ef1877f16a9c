from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ApplyError(Exception):
    """Canonical error type for domain apply and dispatch failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    def to_json(self) -> dict:
        return {"code": self.code, "reason": self.reason, "details": self.details}


class TokenError(ApplyError):
    """Token ledger rejection.

    `reason` is always the error kind name (e.g. "NotEnoughFunds") so hosts can
    surface it verbatim. `code` groups kinds into the receipt classes used by
    the dispatcher: invalid_payload, invalid_state, not_found, forbidden.
    """

    CODE = "token_error"

    def __init__(self, details: Any | None = None) -> None:
        super().__init__(self.CODE, type(self).__name__, details)


# Input validation (caller-correctable)


class NameTooBig(TokenError):
    CODE = "invalid_payload"


class TickerTooBig(TokenError):
    CODE = "invalid_payload"


class InvalidArgument(TokenError):
    """Argument could not be decoded into its wire type (u64, u8, bytes, account id)."""

    CODE = "invalid_payload"


# State preconditions


class AlreadyMinted(TokenError):
    CODE = "invalid_state"


class NoValueStored(TokenError):
    CODE = "not_found"


class NotEnoughFunds(TokenError):
    CODE = "forbidden"


class NotEnoughAllowance(TokenError):
    CODE = "forbidden"


class Overflow(TokenError):
    """A credit would push a balance past the u64 range."""

    CODE = "invalid_state"


class Unauthenticated(TokenError):
    CODE = "forbidden"


__all__ = [
    "ApplyError",
    "TokenError",
    "NameTooBig",
    "TickerTooBig",
    "InvalidArgument",
    "AlreadyMinted",
    "NoValueStored",
    "NotEnoughFunds",
    "NotEnoughAllowance",
    "Overflow",
    "Unauthenticated",
]
