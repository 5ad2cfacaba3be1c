"""
Stats Aggregator

Keeps a running log of every player's net result per settled game and
rolls the log over at the start of each calendar year.

DESIGN DECISION: The log is append-only per settlement, but re-settling
the same game REPLACES that game's records instead of adding to them.
Settling twice must not count a night twice.

Rollover runs at most once per aggregator instance, on the first load:
- First run ever: only remember the current year.
- Year has advanced: drop every record from another year, persist,
  remember the new year.
"""

from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional, Sequence
from uuid import UUID

from poker_dues.audit import AuditLogger
from poker_dues.models.game import NetBalance, PlayerStat, PlayerYearTotal, utc_now
from poker_dues.services.storage import SessionStateRepository, StatsRepository


class StatsAggregator:
    """Cross-game statistics with yearly rollover."""

    def __init__(
        self,
        repository: StatsRepository,
        state_repository: SessionStateRepository,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._state = state_repository
        self._audit_logger = audit_logger
        self._clock = clock or utc_now
        self._records: list[PlayerStat] = []
        self._rolled_over = False

    @property
    def records(self) -> list[PlayerStat]:
        return list(self._records)

    def load(self) -> list[PlayerStat]:
        """Read the stored log; the first call also performs the rollover."""
        self._records = self._repository.load_all()
        if not self._rolled_over:
            self._roll_over()
            self._rolled_over = True
        return self.records

    def _roll_over(self) -> int:
        """Returns the number of discarded records."""
        current_year = self._clock().year
        last_year = self._state.get_last_stats_year()

        if last_year is None:
            self._state.set_last_stats_year(current_year)
            return 0

        if current_year <= last_year:
            return 0

        kept = [r for r in self._records if r.date.year == current_year]
        discarded = len(self._records) - len(kept)
        self._repository.save_all(kept)
        self._records = kept
        self._state.set_last_stats_year(current_year)

        if self._audit_logger:
            self._audit_logger.log_stats_rolled_over(
                previous_year=last_year,
                current_year=current_year,
                discarded=discarded,
            )
        return discarded

    def replace_game_stats(
        self,
        game_id: UUID,
        balances: Sequence[NetBalance],
        date: Optional[datetime] = None,
    ) -> list[PlayerStat]:
        """
        Record one stat per balance for a game, replacing earlier ones.

        Returns the newly recorded stats.
        """
        when = date or self._clock()
        kept = [r for r in self._records if r.game_id != game_id]
        replaced = len(self._records) - len(kept)

        new_stats = [
            PlayerStat(
                game_id=game_id,
                date=when,
                player_name=balance.name,
                net_amount=balance.net,
            )
            for balance in balances
        ]
        updated = kept + new_stats
        self._repository.save_all(updated)
        self._records = updated

        if self._audit_logger:
            self._audit_logger.log_stats_recorded(
                game_id=game_id,
                record_count=len(new_stats),
                replaced=replaced,
            )
        return new_stats

    def clear(self) -> None:
        count = len(self._records)
        self._repository.save_all([])
        self._records = []
        if self._audit_logger:
            self._audit_logger.log_stats_cleared(record_count=count)

    def yearly_totals(self, year: Optional[int] = None) -> list[PlayerYearTotal]:
        """
        Net per player for one calendar year (default: the current one).

        Grouped by exact player name, biggest winner first.
        """
        target_year = year if year is not None else self._clock().year

        totals: dict[str, float] = defaultdict(float)
        games: dict[str, set[UUID]] = defaultdict(set)
        for record in self._records:
            if record.date.year != target_year:
                continue
            totals[record.player_name] += record.net_amount
            games[record.player_name].add(record.game_id)

        leaderboard = [
            PlayerYearTotal(
                player_name=name,
                total_net=total,
                games_played=len(games[name]),
            )
            for name, total in totals.items()
        ]
        leaderboard.sort(key=lambda t: (-t.total_net, t.player_name))
        return leaderboard
