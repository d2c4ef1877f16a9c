from __future__ import annotations

import copy

import pytest

from tokenledger.runtime.apply import token
from tokenledger.runtime.errors import NoValueStored, Unauthenticated
from tokenledger.runtime.events import (
    BalanceReturned,
    DecimalsReturned,
    EventSink,
    NameReturned,
    TickerReturned,
    TotalSupplyReturned,
)


def test_queries_return_and_emit_after_mint(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000, decimals=8)
    sink = EventSink()

    assert token.name(state, "bob", sink) == b"Tok"
    assert token.symbol(state, "bob", sink) == b"TOK"
    assert token.decimals(state, "bob", sink) == 8
    assert token.total_supply(state, "bob", sink) == 1000
    assert token.balance_of(state, "alice", sink) == 1000

    assert sink.events == [
        NameReturned(b"Tok"),
        TickerReturned(b"TOK"),
        DecimalsReturned(8),
        TotalSupplyReturned(1000),
        BalanceReturned(1000),
    ]
    assert sink.to_json()[0] == {"event": "NameReturned", "name": "546f6b"}


def test_metadata_queries_before_mint_report_defaults(state) -> None:
    assert token.name(state, "bob") == b""
    assert token.symbol(state, "bob") == b""
    assert token.decimals(state, "bob") == 18
    assert token.total_supply(state, "bob") == 0


def test_queries_do_not_mutate_state(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000)
    token.approve(state, "alice", "bob", 3)
    before = copy.deepcopy(state)

    token.name(state, "x")
    token.symbol(state, "x")
    token.decimals(state, "x")
    token.total_supply(state, "x")
    token.balance_of(state, "alice")
    token.allowance(state, "alice", "bob")

    assert state == before


def test_balance_of_unknown_account_fails_no_value_stored(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000)
    sink = EventSink()
    with pytest.raises(NoValueStored) as e:
        token.balance_of(state, "nobody", sink)
    assert e.value.code == "not_found"
    assert len(sink) == 0


@pytest.mark.parametrize("caller", ["", "   ", None, 7])
def test_queries_require_authenticated_caller(state, caller) -> None:
    with pytest.raises(Unauthenticated):
        token.name(state, caller)


def test_total_supply_is_fixed_by_mint_not_by_transfers(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000)
    token.transfer(state, "alice", "bob", 400)
    assert token.total_supply(state, "bob") == 1000
    assert sum(state["balances"].values()) == 1000
