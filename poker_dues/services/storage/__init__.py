"""
Storage Services Package

Provides typed repository interfaces and key-value backed implementations.
Currently implements JSON files on local disk, but designed to be swappable.
"""

from poker_dues.services.storage.interface import (
    CorruptDataError,
    PlayerRepository,
    SessionStateRepository,
    StatsRepository,
    StorageError,
    TransactionRepository,
)
from poker_dues.services.storage.key_value import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from poker_dues.services.storage.repositories import (
    KeyValuePlayerRepository,
    KeyValueSessionStateRepository,
    KeyValueStatsRepository,
    KeyValueTransactionRepository,
)

__all__ = [
    # Interfaces
    "PlayerRepository",
    "SessionStateRepository",
    "StatsRepository",
    "TransactionRepository",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Key-value stores
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    # Repositories
    "KeyValuePlayerRepository",
    "KeyValueSessionStateRepository",
    "KeyValueStatsRepository",
    "KeyValueTransactionRepository",
]
