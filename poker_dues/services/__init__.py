"""Services package."""

from poker_dues.services.storage import (
    CorruptDataError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValuePlayerRepository,
    KeyValueSessionStateRepository,
    KeyValueStatsRepository,
    KeyValueStore,
    KeyValueTransactionRepository,
    PlayerRepository,
    SessionStateRepository,
    StatsRepository,
    StorageError,
    TransactionRepository,
)

__all__ = [
    "CorruptDataError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValuePlayerRepository",
    "KeyValueSessionStateRepository",
    "KeyValueStatsRepository",
    "KeyValueStore",
    "KeyValueTransactionRepository",
    "PlayerRepository",
    "SessionStateRepository",
    "StatsRepository",
    "StorageError",
    "TransactionRepository",
]
