# src/tokenledger/runtime/apply/token.py
"""Token ledger operations.

Each operation is a state transition over the explicit state dict, taking the
already-authenticated caller as its first argument. Every operation validates
all of its preconditions before the first write, so a rejected call leaves the
state untouched even without the host's snapshot/commit wrapper. The state
may be bare: the balances and allowances maps are created on first write,
not on read.

Queries return their value directly and also emit their typed notification
into the optional EventSink.

`apply_token` is the domain applier used by the dispatcher: it decodes a
TxEnvelope payload into operation arguments and reports the result and events.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Set

from tokenledger.ledger.constants import DEFAULT_DECIMALS, NAME_MAX_BYTES, TICKER_MAX_BYTES, U64_MAX
from tokenledger.ledger.types import (
    TokenMetadata,
    coerce_account,
    coerce_bytes,
    coerce_u8,
    coerce_u64,
)
from tokenledger.runtime.errors import (
    AlreadyMinted,
    InvalidArgument,
    NameTooBig,
    NoValueStored,
    NotEnoughAllowance,
    NotEnoughFunds,
    Overflow,
    TickerTooBig,
    Unauthenticated,
)
from tokenledger.runtime.events import (
    AllowanceReturned,
    Approval,
    BalanceReturned,
    DecimalsReturned,
    EventSink,
    NameReturned,
    TickerReturned,
    TokenEvent,
    TotalSupplyReturned,
    Transfer,
)
from tokenledger.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _emit(sink: Optional[EventSink], event: TokenEvent) -> None:
    if sink is not None:
        sink.emit(event)


def _require_caller(caller: Any) -> str:
    if not isinstance(caller, str) or not caller.strip():
        raise Unauthenticated({"caller": caller if isinstance(caller, str) else None})
    return caller


def _meta(state: Json) -> TokenMetadata:
    return TokenMetadata.from_json(state.get("token"))


def _read(state: Json, key: str) -> Dict[str, Any]:
    v = state.get(key)
    return v if isinstance(v, dict) else {}


def _write(state: Json, key: str) -> Dict[str, Any]:
    return state.setdefault(key, {})


def _credit(current: int, value: int, *, account: str) -> int:
    new = current + value
    if new > U64_MAX:
        raise Overflow({"account": account, "balance": current, "value": value})
    return new


def _move(balances: Dict[str, int], sender: str, to: str, value: int) -> tuple[int, int]:
    """Compute (new_sender, new_to) without touching `balances`.

    Caller has already checked the sender entry exists and covers `value`.
    A self-move is a net no-op and is never computed as debit-then-credit.
    """
    sender_balance = int(balances[sender])
    if sender == to:
        return sender_balance, sender_balance
    return sender_balance - value, _credit(int(balances.get(to, 0)), value, account=to)


# ---------------------------------------------------------------------------
# Mint
# ---------------------------------------------------------------------------


def mint(
    state: Json,
    caller: str,
    *,
    name: Any,
    ticker: Any,
    supply: Any,
    decimals: Any = DEFAULT_DECIMALS,
) -> None:
    """One-time mint: set metadata and credit the whole supply to `caller`.

    Checks, first failure wins: NameTooBig, TickerTooBig, AlreadyMinted.
    The caller's balance is overwritten, not added to.
    """
    caller = _require_caller(caller)
    name_b = coerce_bytes(name, field="name")
    ticker_b = coerce_bytes(ticker, field="ticker")
    supply_i = coerce_u64(supply, field="supply")
    decimals_i = coerce_u8(decimals, field="decimals")

    if len(name_b) > NAME_MAX_BYTES:
        raise NameTooBig({"len": len(name_b), "max": NAME_MAX_BYTES})
    if len(ticker_b) > TICKER_MAX_BYTES:
        raise TickerTooBig({"len": len(ticker_b), "max": TICKER_MAX_BYTES})
    if _meta(state).minted:
        raise AlreadyMinted()

    state["token"] = TokenMetadata(
        name=name_b,
        ticker=ticker_b,
        decimals=decimals_i,
        max_supply=supply_i,
        minted=True,
    ).to_json()
    _write(state, "balances")[caller] = supply_i


# ---------------------------------------------------------------------------
# Metadata & supply queries
# ---------------------------------------------------------------------------


def name(state: Json, caller: str, sink: Optional[EventSink] = None) -> bytes:
    _require_caller(caller)
    value = _meta(state).name
    _emit(sink, NameReturned(value))
    return value


def symbol(state: Json, caller: str, sink: Optional[EventSink] = None) -> bytes:
    _require_caller(caller)
    value = _meta(state).ticker
    _emit(sink, TickerReturned(value))
    return value


def decimals(state: Json, caller: str, sink: Optional[EventSink] = None) -> int:
    """Decimals of the token; 18 until a mint says otherwise."""
    _require_caller(caller)
    value = _meta(state).decimals
    _emit(sink, DecimalsReturned(value))
    return value


def total_supply(state: Json, caller: str, sink: Optional[EventSink] = None) -> int:
    _require_caller(caller)
    value = _meta(state).max_supply
    _emit(sink, TotalSupplyReturned(value))
    return value


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


def balance_of(state: Json, caller: str, sink: Optional[EventSink] = None) -> int:
    """Balance of the calling account. NoValueStored if it never had an entry."""
    caller = _require_caller(caller)
    balances = _read(state, "balances")
    if caller not in balances:
        raise NoValueStored({"account": caller})
    value = int(balances[caller])
    _emit(sink, BalanceReturned(value))
    return value


def transfer(state: Json, caller: str, to: Any, value: Any, sink: Optional[EventSink] = None) -> None:
    caller = _require_caller(caller)
    to = coerce_account(to, field="to")
    value = coerce_u64(value, field="value")

    balances = _read(state, "balances")
    if caller not in balances:
        raise NoValueStored({"account": caller})
    owner_balance = int(balances[caller])
    if owner_balance < value:
        raise NotEnoughFunds({"account": caller, "balance": owner_balance, "value": value})

    new_owner, new_to = _move(balances, caller, to, value)

    balances = _write(state, "balances")
    balances[caller] = new_owner
    balances[to] = new_to
    _emit(sink, Transfer(caller, to, value))


# ---------------------------------------------------------------------------
# Allowances
# ---------------------------------------------------------------------------


def approve(state: Json, caller: str, spender: Any, value: Any, sink: Optional[EventSink] = None) -> None:
    """Overwrite allowance[(caller, spender)] with `value`. Never additive."""
    caller = _require_caller(caller)
    spender = coerce_account(spender, field="to")
    value = coerce_u64(value, field="value")

    _write(state, "allowances").setdefault(caller, {})[spender] = value
    _emit(sink, Approval(caller, spender, value))


def allowance(state: Json, caller: str, spender: Any, sink: Optional[EventSink] = None) -> int:
    caller = _require_caller(caller)
    spender = coerce_account(spender, field="to")

    spenders = _read(state, "allowances").get(caller)
    if not isinstance(spenders, dict) or spender not in spenders:
        raise NoValueStored({"owner": caller, "spender": spender})
    value = int(spenders[spender])
    _emit(sink, AllowanceReturned(value))
    return value


def transfer_from(
    state: Json,
    caller: str,
    from_: Any,
    to: Any,
    value: Any,
    sink: Optional[EventSink] = None,
) -> None:
    """Move `value` from `from_` to `to`, spending allowance[(from_, to)].

    The allowance checked is the one `from_` granted to the recipient `to`;
    the invoking `caller` only needs to be authenticated. A missing allowance
    counts as zero, so a zero-value call writes a zero allowance entry.

    Checks, first failure wins: NotEnoughAllowance, NoValueStored, NotEnoughFunds.
    """
    _require_caller(caller)
    from_ = coerce_account(from_, field="from")
    to = coerce_account(to, field="to")
    value = coerce_u64(value, field="value")

    allowances = _read(state, "allowances")
    balances = _read(state, "balances")

    current_allowance = int(allowances.get(from_, {}).get(to, 0))
    if current_allowance < value:
        raise NotEnoughAllowance({"owner": from_, "spender": to, "allowance": current_allowance, "value": value})
    if from_ not in balances:
        raise NoValueStored({"account": from_})
    from_balance = int(balances[from_])
    if from_balance < value:
        raise NotEnoughFunds({"account": from_, "balance": from_balance, "value": value})

    new_from, new_to = _move(balances, from_, to, value)

    _write(state, "allowances").setdefault(from_, {})[to] = current_allowance - value
    balances = _write(state, "balances")
    balances[from_] = new_from
    balances[to] = new_to
    _emit(sink, Transfer(from_, to, value))


# ---------------------------------------------------------------------------
# Domain applier
# ---------------------------------------------------------------------------


TOKEN_TX_TYPES: Set[str] = {
    "TOKEN_MINT",
    "TOKEN_NAME",
    "TOKEN_SYMBOL",
    "TOKEN_DECIMALS",
    "TOKEN_TOTAL_SUPPLY",
    "TOKEN_BALANCE_OF",
    "TOKEN_TRANSFER",
    "TOKEN_TRANSFER_FROM",
    "TOKEN_APPROVE",
    "TOKEN_ALLOWANCE",
}


def _arg(payload: Json, key: str) -> Any:
    if key not in payload:
        raise InvalidArgument({"field": key, "missing": True})
    return payload[key]


def _jsonable(v: Any) -> Any:
    return v.hex() if isinstance(v, bytes) else v


def apply_token(state: Json, env: TxEnvelope) -> Optional[Json]:
    """
    Returns:
      - dict: {"applied": tx_type, "result": ..., "events": [...]}
      - None: tx_type not in the token domain
    """
    t = str(env.tx_type or "").strip().upper()
    if t not in TOKEN_TX_TYPES:
        return None

    payload = env.payload if isinstance(env.payload, dict) else {}
    caller = env.signer
    sink = EventSink()
    result: Any = None

    if t == "TOKEN_MINT":
        mint(
            state,
            caller,
            name=_arg(payload, "name"),
            ticker=_arg(payload, "ticker"),
            supply=_arg(payload, "supply"),
            decimals=payload.get("decimals", DEFAULT_DECIMALS),
        )
    elif t == "TOKEN_NAME":
        result = name(state, caller, sink)
    elif t == "TOKEN_SYMBOL":
        result = symbol(state, caller, sink)
    elif t == "TOKEN_DECIMALS":
        result = decimals(state, caller, sink)
    elif t == "TOKEN_TOTAL_SUPPLY":
        result = total_supply(state, caller, sink)
    elif t == "TOKEN_BALANCE_OF":
        result = balance_of(state, caller, sink)
    elif t == "TOKEN_TRANSFER":
        transfer(state, caller, _arg(payload, "to"), _arg(payload, "value"), sink)
    elif t == "TOKEN_TRANSFER_FROM":
        transfer_from(state, caller, _arg(payload, "from"), _arg(payload, "to"), _arg(payload, "value"), sink)
    elif t == "TOKEN_APPROVE":
        approve(state, caller, _arg(payload, "to"), _arg(payload, "value"), sink)
    elif t == "TOKEN_ALLOWANCE":
        result = allowance(state, caller, _arg(payload, "to"), sink)

    return {"applied": t, "result": _jsonable(result), "events": sink.to_json()}


__all__ = [
    "TOKEN_TX_TYPES",
    "allowance",
    "apply_token",
    "approve",
    "balance_of",
    "decimals",
    "mint",
    "name",
    "symbol",
    "total_supply",
    "transfer",
    "transfer_from",
]
