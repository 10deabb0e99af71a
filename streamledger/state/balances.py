"""
Multi-token balance tracking.

Implements BalanceTable[Holder, Token] -> Amount on top of a `KeyValueStore`,
so balance writes made during an engine operation are committed or reverted
together with the ledger records.
"""

from __future__ import annotations

import json
from typing import Dict, Tuple

from .store import KeyValueStore

# Type aliases
Holder = str
Token = str
Amount = int  # Non-negative integer (arbitrary precision)

BALANCE_KEY_PREFIX = "balance:"


def _key(holder: Holder, token: Token) -> str:
    # JSON keeps the pair unambiguous whatever characters the addresses use.
    return BALANCE_KEY_PREFIX + json.dumps([token, holder], separators=(",", ":"))


def _parse_key(key: str) -> Tuple[Holder, Token]:
    token, holder = json.loads(key[len(BALANCE_KEY_PREFIX):])
    return holder, token


class BalanceTable:
    """
    Balance table mapping (holder, token) -> amount.

    Zero balances are deleted to keep the table sparse.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get(self, holder: Holder, token: Token) -> Amount:
        """Get balance for (holder, token). Returns 0 if not found."""
        return int(self._store.get(_key(holder, token), 0))

    def set(self, holder: Holder, token: Token, amount: Amount) -> None:
        """
        Set balance for (holder, token).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._store.delete(_key(holder, token))
        else:
            self._store.set(_key(holder, token), amount)

    def add(self, holder: Holder, token: Token, delta: Amount) -> None:
        """
        Add delta to balance (negative delta subtracts).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(holder, token)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(holder, token, new_balance)

    def subtract(self, holder: Holder, token: Token, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(holder, token, -delta)

    def get_balances_for_token(self, token: Token) -> Dict[Holder, Amount]:
        result = {}
        for key in self._store.keys(BALANCE_KEY_PREFIX):
            holder, t = _parse_key(key)
            if t == token:
                result[holder] = self.get(holder, t)
        return result

    def total_supply(self, token: Token) -> Amount:
        return sum(self.get_balances_for_token(token).values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._store.keys(BALANCE_KEY_PREFIX))} entries)"
