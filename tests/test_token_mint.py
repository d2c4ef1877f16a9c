from __future__ import annotations

import copy

import pytest

from tokenledger.ledger.constants import DEFAULT_DECIMALS, NAME_MAX_BYTES, TICKER_MAX_BYTES, U64_MAX
from tokenledger.ledger.state import TokenLedgerView
from tokenledger.runtime.apply import token
from tokenledger.runtime.errors import AlreadyMinted, InvalidArgument, NameTooBig, TickerTooBig, Unauthenticated


def test_mint_sets_metadata_and_credits_whole_supply(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000, decimals=8)

    v = TokenLedgerView.from_ledger(state)
    assert v.meta.minted is True
    assert v.meta.name == b"Tok"
    assert v.meta.ticker == b"TOK"
    assert v.meta.decimals == 8
    assert v.meta.max_supply == 1000
    assert v.balance_of("alice") == 1000
    assert v.sum_balances() == 1000 == v.meta.max_supply


def test_mint_defaults_decimals_to_18(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=5)
    assert token.decimals(state, "alice") == DEFAULT_DECIMALS == 18


def test_mint_accepts_raw_bytes(state) -> None:
    token.mint(state, "alice", name=b"\xff\x00raw", ticker=b"R", supply=1)
    assert token.name(state, "alice") == b"\xff\x00raw"
    # persisted as hex so the state stays JSON
    assert state["token"]["name"] == "ff00726177"


def test_second_mint_fails_and_changes_nothing(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1000, decimals=8)
    before = copy.deepcopy(state)

    with pytest.raises(AlreadyMinted) as e:
        token.mint(state, "bob", name="Other", ticker="OTH", supply=7, decimals=2)

    assert e.value.reason == "AlreadyMinted"
    assert e.value.code == "invalid_state"
    assert state == before


def test_name_and_ticker_limits_are_inclusive(state) -> None:
    token.mint(state, "alice", name="n" * NAME_MAX_BYTES, ticker="t" * TICKER_MAX_BYTES, supply=1)
    assert len(token.name(state, "alice")) == NAME_MAX_BYTES
    assert len(token.symbol(state, "alice")) == TICKER_MAX_BYTES


def test_name_too_big_checked_before_ticker(state) -> None:
    before = copy.deepcopy(state)
    with pytest.raises(NameTooBig):
        token.mint(state, "alice", name="n" * (NAME_MAX_BYTES + 1), ticker="t" * (TICKER_MAX_BYTES + 1), supply=1)
    assert state == before


def test_ticker_too_big(state) -> None:
    before = copy.deepcopy(state)
    with pytest.raises(TickerTooBig) as e:
        token.mint(state, "alice", name="ok", ticker="t" * (TICKER_MAX_BYTES + 1), supply=1)
    assert e.value.details == {"len": TICKER_MAX_BYTES + 1, "max": TICKER_MAX_BYTES}
    assert state == before


def test_size_checks_win_over_already_minted(state) -> None:
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=1)
    with pytest.raises(NameTooBig):
        token.mint(state, "alice", name="n" * (NAME_MAX_BYTES + 1), ticker="T", supply=1)


def test_name_limit_counts_bytes_not_characters(state) -> None:
    # 33 two-byte characters = 66 bytes
    with pytest.raises(NameTooBig):
        token.mint(state, "alice", name="é" * 33, ticker="T", supply=1)


def test_mint_overwrites_existing_balance_entry(state) -> None:
    state["balances"]["alice"] = 42
    token.mint(state, "alice", name="Tok", ticker="TOK", supply=10)
    assert state["balances"]["alice"] == 10


@pytest.mark.parametrize(
    "kwargs",
    [
        {"supply": -1},
        {"supply": U64_MAX + 1},
        {"supply": True},
        {"supply": "10"},
        {"decimals": 256},
        {"decimals": -1},
    ],
)
def test_mint_rejects_out_of_range_arguments(state, kwargs) -> None:
    args = {"name": "Tok", "ticker": "TOK", "supply": 10, "decimals": 8}
    args.update(kwargs)
    before = copy.deepcopy(state)
    with pytest.raises(InvalidArgument):
        token.mint(state, "alice", **args)
    assert state == before


def test_mint_requires_authenticated_caller(state) -> None:
    with pytest.raises(Unauthenticated):
        token.mint(state, "", name="Tok", ticker="TOK", supply=10)
    assert TokenLedgerView.from_ledger(state).meta.minted is False


def test_mint_max_supply_u64(state) -> None:
    token.mint(state, "alice", name="Big", ticker="BIG", supply=U64_MAX)
    assert token.total_supply(state, "alice") == U64_MAX


@pytest.mark.parametrize("field", ["name", "ticker"])
def test_mint_rejects_text_that_is_not_utf8_encodable(state, field) -> None:
    kwargs = {"name": "Tok", "ticker": "TOK", "supply": 1}
    kwargs[field] = "bad\ud800"
    before = copy.deepcopy(state)

    with pytest.raises(InvalidArgument) as e:
        token.mint(state, "alice", **kwargs)

    assert e.value.details == {"field": field, "expected": "utf-8"}
    assert state == before
