from __future__ import annotations

from dataclasses import dataclass, field
import copy
from typing import Any, Dict, Iterator, Optional, Tuple

from tokenledger.ledger.types import TokenMetadata


Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class TokenLedgerView:
    """
    Immutable read-only ledger view used by the API and tests.

    Unlike the query operations this performs no authentication and emits no
    events; absence is reported as None rather than NoValueStored.
    """

    meta: TokenMetadata = field(default_factory=TokenMetadata)
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    seq: int = 0

    @classmethod
    def from_ledger(cls, state: Dict[str, Any]) -> "TokenLedgerView":
        balances = state.get("balances")
        allowances = state.get("allowances")
        return cls(
            meta=TokenMetadata.from_json(state.get("token")),
            balances=copy.deepcopy(balances) if isinstance(balances, dict) else {},
            allowances=copy.deepcopy(allowances) if isinstance(allowances, dict) else {},
            seq=int(state.get("seq", 0) or 0),
        )

    def to_ledger(self) -> Json:
        return {
            "token": self.meta.to_json(),
            "balances": copy.deepcopy(self.balances),
            "allowances": copy.deepcopy(self.allowances),
            "seq": int(self.seq),
        }

    def balance_of(self, account_id: str) -> Optional[int]:
        v = self.balances.get(account_id)
        return None if v is None else int(v)

    def allowance(self, owner: str, spender: str) -> Optional[int]:
        spenders = self.allowances.get(owner)
        if not isinstance(spenders, dict) or spender not in spenders:
            return None
        return int(spenders[spender])

    def iter_allowances(self) -> Iterator[Tuple[str, str, int]]:
        for owner in sorted(self.allowances):
            spenders = self.allowances[owner]
            for spender in sorted(spenders):
                yield owner, spender, int(spenders[spender])

    def sum_balances(self) -> int:
        return sum(int(v) for v in self.balances.values())

    def holders(self) -> int:
        return len(self.balances)
