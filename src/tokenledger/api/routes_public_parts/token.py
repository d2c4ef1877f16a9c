from __future__ import annotations

from fastapi import APIRouter, Request

from tokenledger.api.routes_public_parts.common import _view
from tokenledger.api.schemas import AllowanceResponse, BalanceResponse, TokenInfoResponse

router = APIRouter()


def _utf8(b: bytes) -> str:
    return b.decode("utf-8", errors="replace")


@router.get("/token", response_model=TokenInfoResponse)
def token_info(request: Request) -> TokenInfoResponse:
    """Token metadata as currently stored. Unauthenticated read; emits no events."""
    v = _view(request)
    return TokenInfoResponse(
        name=v.meta.name.hex(),
        name_utf8=_utf8(v.meta.name),
        ticker=v.meta.ticker.hex(),
        ticker_utf8=_utf8(v.meta.ticker),
        decimals=v.meta.decimals,
        total_supply=v.meta.max_supply,
        minted=v.meta.minted,
        holders=v.holders(),
        seq=v.seq,
    )


@router.get("/token/balances/{account}", response_model=BalanceResponse)
def token_balance(request: Request, account: str) -> BalanceResponse:
    bal = _view(request).balance_of(account)
    return BalanceResponse(account=account, balance=bal, exists=bal is not None)


@router.get("/token/allowances/{owner}/{spender}", response_model=AllowanceResponse)
def token_allowance(request: Request, owner: str, spender: str) -> AllowanceResponse:
    amt = _view(request).allowance(owner, spender)
    return AllowanceResponse(owner=owner, spender=spender, allowance=amt, exists=amt is not None)
