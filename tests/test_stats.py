"""
Tests for cross-game statistics and the yearly rollover.
"""

import pytest
from datetime import datetime, timezone
from uuid import uuid4

from poker_dues.audit import AuditLogger
from poker_dues.models.audit import AuditEventType
from poker_dues.models.game import NetBalance, PlayerStat
from poker_dues.services.storage import (
    InMemoryKeyValueStore,
    KeyValueSessionStateRepository,
    KeyValueStatsRepository,
)
from poker_dues.stats import StatsAggregator


def at(year, month=6, day=1):
    return datetime(year, month, day, 21, 0, tzinfo=timezone.utc)


class Clock:
    """Settable time source."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


def make_aggregator(store, clock, audit_logger=None):
    return StatsAggregator(
        repository=KeyValueStatsRepository(store),
        state_repository=KeyValueSessionStateRepository(store),
        audit_logger=audit_logger,
        clock=clock,
    )


def stat(name, net, when, game_id=None):
    return PlayerStat(game_id=game_id or uuid4(), date=when, player_name=name, net_amount=net)


class TestRollover:
    """Tests for the once-per-load yearly rollover."""

    def test_first_run_only_sets_marker(self, store):
        """Test the first run keeps old records and remembers the year."""
        KeyValueStatsRepository(store).save_all([stat("A", 5, at(2024))])
        aggregator = make_aggregator(store, Clock(at(2026)))

        records = aggregator.load()

        assert len(records) == 1
        assert KeyValueSessionStateRepository(store).get_last_stats_year() == 2026

    def test_new_year_discards_old_records(self, store):
        """Test only current-year records survive a year change."""
        KeyValueStatsRepository(store).save_all([
            stat("A", 5, at(2025)),
            stat("B", -5, at(2025)),
            stat("A", 12, at(2026, 1, 2)),
        ])
        KeyValueSessionStateRepository(store).set_last_stats_year(2025)
        audit_logger = AuditLogger()

        aggregator = make_aggregator(store, Clock(at(2026, 1, 3)), audit_logger)
        records = aggregator.load()

        assert [(r.player_name, r.net_amount) for r in records] == [("A", 12.0)]
        assert len(KeyValueStatsRepository(store).load_all()) == 1
        assert KeyValueSessionStateRepository(store).get_last_stats_year() == 2026
        event = audit_logger.recent_events[-1]
        assert event.event_type == AuditEventType.STATS_ROLLED_OVER
        assert event.details["discarded"] == 2

    def test_same_year_keeps_everything(self, store):
        """Test nothing is dropped within the same year."""
        KeyValueStatsRepository(store).save_all([stat("A", 5, at(2025))])
        KeyValueSessionStateRepository(store).set_last_stats_year(2026)
        aggregator = make_aggregator(store, Clock(at(2026)))
        assert len(aggregator.load()) == 1

    def test_rollover_runs_once_per_instance(self, store):
        """Test a second load does not roll over again."""
        KeyValueSessionStateRepository(store).set_last_stats_year(2026)
        clock = Clock(at(2026))
        aggregator = make_aggregator(store, clock)
        aggregator.load()

        KeyValueStatsRepository(store).save_all([stat("A", 5, at(2026))])
        clock.now = at(2027)
        assert len(aggregator.load()) == 1
        assert KeyValueSessionStateRepository(store).get_last_stats_year() == 2026


class TestRecording:
    """Tests for replacing a game's stats."""

    def test_replace_game_stats(self, store):
        """Test one record per balance, stamped with the game id."""
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()
        game_id = uuid4()

        new = aggregator.replace_game_stats(game_id, [
            NetBalance(name="A", net=-10),
            NetBalance(name="B", net=10),
        ])

        assert [(s.player_name, s.net_amount) for s in new] == [("A", -10.0), ("B", 10.0)]
        assert all(s.game_id == game_id and s.date == at(2026) for s in new)
        assert KeyValueStatsRepository(store).load_all() == aggregator.records

    def test_resettling_replaces_not_accumulates(self, store):
        """Test settling the same game twice counts it once."""
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()
        game_id = uuid4()
        other_game = uuid4()

        aggregator.replace_game_stats(other_game, [NetBalance(name="A", net=3)])
        aggregator.replace_game_stats(game_id, [NetBalance(name="A", net=-10)])
        aggregator.replace_game_stats(game_id, [NetBalance(name="A", net=-20)])

        records = aggregator.records
        assert len(records) == 2
        assert sorted(r.net_amount for r in records) == [-20.0, 3.0]

    def test_clear(self, store):
        """Test clearing wipes stored stats."""
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()
        aggregator.replace_game_stats(uuid4(), [NetBalance(name="A", net=1)])
        aggregator.clear()
        assert aggregator.records == []
        assert KeyValueStatsRepository(store).load_all() == []


class TestYearlyTotals:
    """Tests for the yearly leaderboard."""

    def test_grouped_and_sorted(self, store):
        """Test totals per exact name, biggest winner first."""
        game_1, game_2 = uuid4(), uuid4()
        KeyValueStatsRepository(store).save_all([
            stat("A", -10, at(2026, 2), game_1),
            stat("B", 10, at(2026, 2), game_1),
            stat("A", 25, at(2026, 3), game_2),
            stat("C", -25, at(2026, 3), game_2),
            stat("a", 100, at(2026, 3), game_2),
        ])
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()

        totals = aggregator.yearly_totals()

        assert [(t.player_name, t.total_net, t.games_played) for t in totals] == [
            ("a", 100.0, 1),
            ("A", 15.0, 2),
            ("B", 10.0, 1),
            ("C", -25.0, 1),
        ]

    def test_other_years_excluded(self, store):
        """Test only the requested year counts."""
        KeyValueStatsRepository(store).save_all([
            stat("A", 5, at(2025)),
            stat("A", 7, at(2026)),
        ])
        KeyValueSessionStateRepository(store).set_last_stats_year(2026)
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()

        assert aggregator.yearly_totals()[0].total_net == 7.0
        assert aggregator.yearly_totals(2025)[0].total_net == 5.0
        assert aggregator.yearly_totals(2020) == []

    def test_ties_break_by_name(self, store):
        """Test equal totals sort alphabetically."""
        KeyValueStatsRepository(store).save_all([
            stat("Zed", 5, at(2026)),
            stat("Amy", 5, at(2026)),
        ])
        aggregator = make_aggregator(store, Clock(at(2026)))
        aggregator.load()
        assert [t.player_name for t in aggregator.yearly_totals()] == ["Amy", "Zed"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
