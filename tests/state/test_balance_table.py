import pytest

from streamledger.state.balances import BalanceTable
from streamledger.state.store import InMemoryStore


def test_default_zero_and_sparse() -> None:
    store = InMemoryStore()
    bal = BalanceTable(store)
    assert bal.get("alice", "USDC") == 0
    bal.set("alice", "USDC", 5)
    bal.set("alice", "USDC", 0)
    assert store.keys("balance:") == []


def test_add_subtract() -> None:
    bal = BalanceTable(InMemoryStore())
    bal.add("alice", "USDC", 100)
    bal.subtract("alice", "USDC", 40)
    assert bal.get("alice", "USDC") == 60
    with pytest.raises(ValueError):
        bal.subtract("alice", "USDC", 61)
    with pytest.raises(ValueError):
        bal.subtract("alice", "USDC", -1)
    assert bal.get("alice", "USDC") == 60


def test_addresses_with_separators_do_not_collide() -> None:
    bal = BalanceTable(InMemoryStore())
    bal.set("a:b", "c", 1)
    bal.set("a", "b:c", 2)
    assert bal.get("a:b", "c") == 1
    assert bal.get("a", "b:c") == 2


def test_supply_per_token() -> None:
    bal = BalanceTable(InMemoryStore())
    bal.set("alice", "USDC", 10)
    bal.set("bob", "USDC", 5)
    bal.set("bob", "XLM", 99)
    assert bal.get_balances_for_token("USDC") == {"alice": 10, "bob": 5}
    assert bal.total_supply("USDC") == 15


def test_reverted_with_store() -> None:
    store = InMemoryStore()
    bal = BalanceTable(store)
    bal.set("alice", "USDC", 10)
    with pytest.raises(RuntimeError):
        with store.transaction():
            bal.subtract("alice", "USDC", 10)
            raise RuntimeError
    assert bal.get("alice", "USDC") == 10
