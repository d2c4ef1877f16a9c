from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from tokenledger.ledger.state import TokenLedgerView
from tokenledger.runtime.domain_apply import ApplyError, apply_tx_atomic
from tokenledger.runtime.metrics import inc_counter, set_gauge
from tokenledger.runtime.runtime_logging import log_event
from tokenledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from tokenledger.runtime.state_invariants import ensure_state
from tokenledger.runtime.tx_admission import admit_tx
from tokenledger.runtime.tx_admission_types import TxEnvelope
from tokenledger.runtime.tx_id import compute_tx_id_from_envelope
from tokenledger.tx.canon import TxIndex, load_default_tx_index

Json = Dict[str, Any]

_log = logging.getLogger("tokenledger.executor")


class ExecutorError(RuntimeError):
    pass


class TokenExecutor:
    """Token ledger host using SQLite for persistence (snapshot + receipts).

    Calls are serialized by a process-local lock. Each accepted call is applied
    to a working copy; the copy and its receipt are committed in one SQLite
    write transaction before the in-memory state is replaced.
    """

    def __init__(
        self,
        *,
        db_path: str,
        chain_id: str,
        require_signatures: bool = True,
        tx_index_path: Optional[str] = None,
    ) -> None:
        self.chain_id = str(chain_id)
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._db = SqliteDB(path=self.db_path)
        self._store = SqliteLedgerStore(db=self._db)

        self.tx_index: TxIndex = TxIndex.load_from_file(tx_index_path) if tx_index_path else load_default_tx_index()

        if self._store.exists():
            self.state = self._store.read()
        else:
            self.state = self._initial_state()

        # Fail-closed on chain_id mismatch once state is present.
        st_chain_id = str(self.state.get("chain_id") or "").strip()
        if st_chain_id and st_chain_id != self.chain_id:
            raise ExecutorError(f"chain_id mismatch: db={st_chain_id!r} executor={self.chain_id!r}. Refuse to start.")

        ensure_state(self.state)
        self.state["chain_id"] = self.chain_id
        self.state["params"]["require_signatures"] = bool(require_signatures)
        self.state.setdefault("seq", 0)
        self._store.write(self.state)
        self._update_gauges()

        log_event(
            _log,
            "executor_boot",
            chain_id=self.chain_id,
            db_path=self.db_path,
            seq=int(self.state["seq"]),
            require_signatures=bool(require_signatures),
            canon_sha256=self.tx_index.source_sha256,
        )

    def _initial_state(self) -> Json:
        return ensure_state({"chain_id": self.chain_id, "seq": 0})

    def _update_gauges(self) -> None:
        set_gauge("ledger_seq", int(self.state.get("seq", 0)))
        set_gauge("holders", len(self.state.get("balances", {})))

    # ----------------------------
    # Reads
    # ----------------------------

    def read_state(self) -> Json:
        with self._lock:
            return copy.deepcopy(self.state)

    def view(self) -> TokenLedgerView:
        with self._lock:
            return TokenLedgerView.from_ledger(self.state)

    def get_receipt(self, tx_id: str) -> Optional[Json]:
        return self._store.get_receipt(tx_id)

    def list_receipts(self, *, signer: Optional[str] = None, limit: int = 50) -> List[Json]:
        return self._store.list_receipts(signer=signer, limit=limit)

    # ----------------------------
    # Writes
    # ----------------------------

    def _reject(self, *, code: str, reason: str, details: Any, tx_type: str = "", tx_id: str = "") -> Json:
        inc_counter("tx_rejected_total")
        log_event(
            _log,
            "tx_rejected",
            level=logging.WARNING,
            tx_id=tx_id,
            tx_type=tx_type,
            error=code,
            reason=reason,
        )
        out: Json = {"ok": False, "error": code, "reason": reason, "details": details}
        if tx_id:
            out["tx_id"] = tx_id
        return out

    def submit_tx(self, env: Json) -> Json:
        """Admit, execute and persist one ledger call.

        Returns {"ok": True, "tx_id", "seq", "result", "events"} or
        {"ok": False, "error", "reason", "details"[, "tx_id"]}.
        """
        inc_counter("tx_submitted_total")
        if not isinstance(env, dict):
            return self._reject(code="bad_env", reason="not_object", details={"type": type(env).__name__})

        with self._lock:
            verdict = admit_tx(env, self.state, self.tx_index)
            if not verdict.ok:
                return self._reject(
                    code=verdict.code,
                    reason=verdict.reason,
                    details=verdict.details,
                    tx_type=str(env.get("tx_type") or ""),
                )

            envelope = TxEnvelope.from_json(env)
            tx_type = envelope.tx_type.strip().upper()
            tx_id = compute_tx_id_from_envelope(self.chain_id, envelope)

            if self._store.has_receipt(tx_id):
                inc_counter("tx_duplicate_total")
                return self._reject(
                    code="duplicate_tx",
                    reason="tx_already_executed",
                    details={"tx_id": tx_id},
                    tx_type=tx_type,
                    tx_id=tx_id,
                )

            seq = int(self.state.get("seq", 0))
            working = copy.deepcopy(self.state)
            try:
                out = apply_tx_atomic(working, envelope)
            except ApplyError as e:
                self._store.add_receipt(
                    {
                        "tx_id": tx_id,
                        "seq": seq,
                        "tx_type": tx_type,
                        "signer": envelope.signer,
                        "ok": False,
                        "error": e.code,
                        "reason": e.reason,
                        "details": e.details,
                    }
                )
                return self._reject(code=e.code, reason=e.reason, details=e.details, tx_type=tx_type, tx_id=tx_id)

            working["seq"] = seq + 1
            receipt: Json = {
                "tx_id": tx_id,
                "seq": seq + 1,
                "tx_type": tx_type,
                "signer": envelope.signer,
                "ok": True,
                "result": out.get("result"),
                "events": out.get("events", []),
            }
            self._store.commit(working, receipt)
            self.state = working

            inc_counter("tx_applied_total")
            self._update_gauges()
            log_event(
                _log,
                "tx_applied",
                tx_id=tx_id,
                tx_type=tx_type,
                signer=envelope.signer,
                seq=seq + 1,
                events=len(receipt["events"]),
            )

            return {
                "ok": True,
                "tx_id": tx_id,
                "seq": seq + 1,
                "result": receipt["result"],
                "events": receipt["events"],
            }


__all__ = ["ExecutorError", "TokenExecutor"]
