"""
State management for the stream ledger
"""

from .balances import BalanceTable
from .ledger import ConfigStore, StreamLedger
from .store import InMemoryStore, JsonFileStore, KeyValueStore, TransactionConflict

__all__ = [
    "BalanceTable",
    "ConfigStore",
    "StreamLedger",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "TransactionConflict",
]
