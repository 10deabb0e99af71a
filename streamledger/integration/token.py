"""
Balance-table token service.

Reference `TokenService` for hosts without an external token system and for
tests. Tokens must be registered (with their decimals) before use; the
capability probe answers whether an address is a registered token. Balances and
registrations live in the same `KeyValueStore` as the ledger, so an engine
operation that fails after a transfer rolls the balances back too.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.errors import TransferError
from ..state.balances import BalanceTable
from ..state.store import KeyValueStore

log = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "token:"
MAX_DECIMALS = 38


class BalanceTokenService:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self.balances = BalanceTable(store)

    # -- token registry ------------------------------------------------------

    def register_token(self, token: str, decimals: int = 7) -> None:
        if not isinstance(token, str) or not token:
            raise ValueError("token must be a non-empty str")
        if not isinstance(decimals, int) or isinstance(decimals, bool) or not (0 <= decimals <= MAX_DECIMALS):
            raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}]: {decimals!r}")
        self._store.set(TOKEN_KEY_PREFIX + token, {"decimals": decimals})

    def decimals(self, token: str) -> Optional[int]:
        meta = self._store.get(TOKEN_KEY_PREFIX + token)
        return None if meta is None else int(meta["decimals"])

    def probe_capability(self, token: str) -> bool:
        return isinstance(token, str) and self.decimals(token) is not None

    # -- balances ------------------------------------------------------------

    def balance_of(self, holder: str, token: str) -> int:
        return self.balances.get(holder, token)

    def total_supply(self, token: str) -> int:
        return self.balances.total_supply(token)

    def mint(self, holder: str, token: str, amount: int) -> None:
        if not self.probe_capability(token):
            raise TransferError(f"unknown token {token!r}")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError(f"mint amount must be a positive int: {amount!r}")
        self.balances.add(holder, token, amount)

    def transfer(self, token: str, source: str, dest: str, amount: int) -> None:
        if not self.probe_capability(token):
            raise TransferError(f"unknown token {token!r}")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise TransferError(f"transfer amount must be a positive int: {amount!r}")
        available = self.balances.get(source, token)
        if available < amount:
            raise TransferError(
                f"insufficient {token} balance for {source}: {available} < {amount}"
            )
        self.balances.subtract(source, token, amount)
        self.balances.add(dest, token, amount)
        log.debug("transfer token=%s from=%s to=%s amount=%s", token, source, dest, amount)
