"""
Key-Value Backed Repositories

Implements the typed repository interfaces on top of a KeyValueStore.
Each collection is one JSON array in one slot; scalars are stored as
plain JSON values in their own slots.

Serialization goes through pydantic TypeAdapters so that field names,
floats, UUIDs and timezone-aware datetimes round-trip exactly.
"""

import json
from typing import Generic, Optional, Sequence, TypeVar
from uuid import UUID

from pydantic import BaseModel, TypeAdapter, ValidationError

from poker_dues.models.game import Player, PlayerStat, Transaction
from poker_dues.services.storage.interface import (
    CorruptDataError,
    PlayerRepository,
    SessionStateRepository,
    StatsRepository,
    TransactionRepository,
)
from poker_dues.services.storage.key_value import KeyValueStore


RecordT = TypeVar("RecordT", bound=BaseModel)


class _JsonCollection(Generic[RecordT]):
    """A list of models stored as a JSON array in one slot."""

    def __init__(self, store: KeyValueStore, key: str, adapter: TypeAdapter):
        self._store = store
        self._key = key
        self._adapter = adapter

    def read(self) -> list[RecordT]:
        raw = self._store.get(self._key)
        if raw is None or not raw.strip():
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(f"Stored '{self._key}' collection is invalid: {e}")

    def write(self, records: Sequence[RecordT]) -> None:
        self._store.set(self._key, self._adapter.dump_json(list(records)).decode("utf-8"))


class _GameScopedCollection(_JsonCollection[RecordT]):
    """A collection whose records carry a `game_id`."""

    def load_game(self, game_id: UUID) -> list[RecordT]:
        return [record for record in self.read() if record.game_id == game_id]

    def replace_game(self, game_id: UUID, records: Sequence[RecordT]) -> None:
        # read everything, drop this game, append, write everything back
        kept = [record for record in self.read() if record.game_id != game_id]
        kept.extend(records)
        self.write(kept)


class KeyValuePlayerRepository(PlayerRepository):
    """Players of every game in one slot."""

    def __init__(self, store: KeyValueStore, key: str = "participants"):
        self._collection: _GameScopedCollection[Player] = _GameScopedCollection(
            store, key, TypeAdapter(list[Player])
        )

    def load_all(self, game_id: UUID) -> list[Player]:
        return self._collection.load_game(game_id)

    def save_all(self, game_id: UUID, players: Sequence[Player]) -> None:
        foreign = [p for p in players if p.game_id != game_id]
        if foreign:
            raise ValueError(f"Player {foreign[0].name} does not belong to game {game_id}")
        self._collection.replace_game(game_id, players)


class KeyValueTransactionRepository(TransactionRepository):
    """Settlement transactions of every game in one slot."""

    def __init__(self, store: KeyValueStore, key: str = "transactions"):
        self._collection: _GameScopedCollection[Transaction] = _GameScopedCollection(
            store, key, TypeAdapter(list[Transaction])
        )

    def load_all(self, game_id: UUID) -> list[Transaction]:
        return self._collection.load_game(game_id)

    def save_all(self, game_id: UUID, transactions: Sequence[Transaction]) -> None:
        foreign = [t for t in transactions if t.game_id != game_id]
        if foreign:
            raise ValueError(f"Transaction {foreign[0].id} does not belong to game {game_id}")
        self._collection.replace_game(game_id, transactions)


class KeyValueStatsRepository(StatsRepository):
    """The global stats log in one slot."""

    def __init__(self, store: KeyValueStore, key: str = "stats"):
        self._collection: _JsonCollection[PlayerStat] = _JsonCollection(
            store, key, TypeAdapter(list[PlayerStat])
        )

    def load_all(self) -> list[PlayerStat]:
        return self._collection.read()

    def save_all(self, stats: Sequence[PlayerStat]) -> None:
        self._collection.write(stats)


class KeyValueSessionStateRepository(SessionStateRepository):
    """Current game id and last stats year, one slot each."""

    def __init__(
        self,
        store: KeyValueStore,
        game_key: str = "current_game_id",
        year_key: str = "last_stats_year",
    ):
        self._store = store
        self._game_key = game_key
        self._year_key = year_key

    def _read_scalar(self, key: str) -> Optional[object]:
        raw = self._store.get(key)
        if raw is None or not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Stored '{key}' value is invalid: {e}")

    def get_current_game_id(self) -> Optional[UUID]:
        value = self._read_scalar(self._game_key)
        if value is None:
            return None
        try:
            return UUID(str(value))
        except ValueError as e:
            raise CorruptDataError(f"Stored game id is not a UUID: {e}")

    def set_current_game_id(self, game_id: UUID) -> None:
        self._store.set(self._game_key, json.dumps(str(game_id)))

    def get_last_stats_year(self) -> Optional[int]:
        value = self._read_scalar(self._year_key)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise CorruptDataError(f"Stored stats year is not an integer: {value!r}")
        return value

    def set_last_stats_year(self, year: int) -> None:
        self._store.set(self._year_key, json.dumps(int(year)))
