"""
Abstract Storage Interface

DESIGN DECISION: We define typed repository interfaces, one per entity
kind, instead of handing an untyped key-value blob to business logic.
This allows us to:
1. Swap the JSON files for a real database later
2. Use in-memory storage for testing
3. Keep the orchestrator decoupled from serialization

Player and transaction collections hold records from MANY games at once.
Every per-game save is a read-modify-write of the whole collection:
read everything, drop this game's records, append the new ones, write
back. There is no locking; two processes saving at the same time can
lose an update.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from poker_dues.models.game import Player, PlayerStat, Transaction


class PlayerRepository(ABC):
    """Players, scoped by game id."""

    @abstractmethod
    def load_all(self, game_id: UUID) -> list[Player]:
        """
        Load the players of one game, in saved order.

        Raises:
            StorageError: If the collection cannot be read or decoded
        """
        pass

    @abstractmethod
    def save_all(self, game_id: UUID, players: Sequence[Player]) -> None:
        """
        Replace the stored players of one game.

        Records of other games are left untouched.

        Raises:
            StorageError: If the write fails
        """
        pass


class TransactionRepository(ABC):
    """Settlement transactions, scoped by game id."""

    @abstractmethod
    def load_all(self, game_id: UUID) -> list[Transaction]:
        pass

    @abstractmethod
    def save_all(self, game_id: UUID, transactions: Sequence[Transaction]) -> None:
        pass


class StatsRepository(ABC):
    """
    Global collection of per-game player stats.

    Not scoped by game: the aggregator decides what to purge.
    """

    @abstractmethod
    def load_all(self) -> list[PlayerStat]:
        pass

    @abstractmethod
    def save_all(self, stats: Sequence[PlayerStat]) -> None:
        pass


class SessionStateRepository(ABC):
    """Scalar markers that survive restarts."""

    @abstractmethod
    def get_current_game_id(self) -> Optional[UUID]:
        pass

    @abstractmethod
    def set_current_game_id(self, game_id: UUID) -> None:
        pass

    @abstractmethod
    def get_last_stats_year(self) -> Optional[int]:
        pass

    @abstractmethod
    def set_last_stats_year(self, year: int) -> None:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """A stored document could not be decoded."""
    pass
