"""Cross-game statistics package."""

from poker_dues.stats.aggregator import StatsAggregator

__all__ = ["StatsAggregator"]
