"""Token ledger boundary and the in-memory development ledger.

The arena never depends on a particular token backend: everything goes
through the ``Ledger`` protocol and every call answers with a
``TransactionResult``.  Insufficient balance and non-positive amounts are
ordinary failures, never exceptions.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransactionResult:
    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Transaction:
    """One ledger movement, kept for the wallet history view."""

    kind: str             # mint | spend | transfer_in | transfer_out | free_tokens
    address: str
    amount: int
    balance_after: int
    reason: str = ""
    timestamp: float = 0.0


class Ledger(Protocol):
    """What the arena services need from a token backend."""

    def get_balance(self, address: str) -> int: ...

    def mint(self, address: str, amount: int, reason: str = "") -> TransactionResult: ...

    def spend(self, address: str, amount: int, reason: str = "") -> TransactionResult: ...

    def transfer(self, source: str, dest: str, amount: int, reason: str = "") -> TransactionResult: ...

    def distribute_rewards(self, rewards: dict[str, int], reason: str = "") -> TransactionResult: ...

    def give_free_tokens(self, address: str, amount: int) -> TransactionResult: ...


class InMemoryLedger:
    """Process-local ledger.  Balances vanish with the process."""

    def __init__(self, history_size: int = 100) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._history: dict[str, deque[Transaction]] = defaultdict(lambda: deque(maxlen=history_size))
        self._lock = threading.Lock()

    def get_balance(self, address: str) -> int:
        with self._lock:
            return self._balances.get(address, 0)

    def history(self, address: str) -> list[Transaction]:
        with self._lock:
            return list(self._history.get(address, ()))

    def mint(self, address: str, amount: int, reason: str = "") -> TransactionResult:
        if amount <= 0:
            return self._reject("mint", address, amount, "Amount must be positive")
        with self._lock:
            balance = self._credit(address, amount, "mint", reason)
        return TransactionResult(True, f"Minted {amount}", {"address": address, "balance": balance})

    def spend(self, address: str, amount: int, reason: str = "") -> TransactionResult:
        if amount <= 0:
            return self._reject("spend", address, amount, "Amount must be positive")
        with self._lock:
            if self._balances.get(address, 0) < amount:
                balance = self._balances.get(address, 0)
            else:
                balance = self._debit(address, amount, "spend", reason)
                return TransactionResult(True, f"Spent {amount}", {"address": address, "balance": balance})
        return self._reject("spend", address, amount, "Insufficient balance", balance=balance)

    def transfer(self, source: str, dest: str, amount: int, reason: str = "") -> TransactionResult:
        if amount <= 0:
            return self._reject("transfer", source, amount, "Amount must be positive")
        if source == dest:
            return self._reject("transfer", source, amount, "Cannot transfer to the same address")
        with self._lock:
            if self._balances.get(source, 0) < amount:
                balance = self._balances.get(source, 0)
            else:
                src_balance = self._debit(source, amount, "transfer_out", reason)
                self._credit(dest, amount, "transfer_in", reason)
                return TransactionResult(True, f"Transferred {amount}", {"from": source, "to": dest, "balance": src_balance})
        return self._reject("transfer", source, amount, "Insufficient balance", balance=balance)

    def distribute_rewards(self, rewards: dict[str, int], reason: str = "") -> TransactionResult:
        bad = [addr for addr, amount in rewards.items() if amount <= 0]
        if bad:
            return self._reject("distribute", ",".join(bad), 0, "Reward amounts must be positive")
        with self._lock:
            for address, amount in rewards.items():
                self._credit(address, amount, "mint", reason)
        total = sum(rewards.values())
        return TransactionResult(True, f"Distributed {total} to {len(rewards)} addresses",
                                 {"total": total, "recipients": len(rewards)})

    def give_free_tokens(self, address: str, amount: int) -> TransactionResult:
        if amount <= 0:
            return self._reject("free_tokens", address, amount, "Amount must be positive")
        with self._lock:
            balance = self._credit(address, amount, "free_tokens", "free tokens")
        logger.info("Granted %d free tokens to %s", amount, address)
        return TransactionResult(True, f"Granted {amount} free tokens", {"address": address, "balance": balance})

    # -- internals (caller holds the lock) --

    def _credit(self, address: str, amount: int, kind: str, reason: str) -> int:
        self._balances[address] += amount
        balance = self._balances[address]
        self._history[address].append(Transaction(kind, address, amount, balance, reason, time.time()))
        return balance

    def _debit(self, address: str, amount: int, kind: str, reason: str) -> int:
        self._balances[address] -= amount
        balance = self._balances[address]
        self._history[address].append(Transaction(kind, address, -amount, balance, reason, time.time()))
        return balance

    @staticmethod
    def _reject(op: str, address: str, amount: int, message: str, **data: Any) -> TransactionResult:
        logger.warning("Ledger %s rejected for %s (amount=%d): %s", op, address, amount, message)
        return TransactionResult(False, message, dict(data, address=address))
