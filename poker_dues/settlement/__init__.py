"""Settlement engine and host expense adjustment."""

from poker_dues.settlement.calculator import (
    GRAND_TOTAL_TOLERANCE,
    filter_blank,
    grand_total,
    settle,
)
from poker_dues.settlement.expense import adjust, expense_shares

__all__ = [
    "GRAND_TOTAL_TOLERANCE",
    "adjust",
    "expense_shares",
    "filter_blank",
    "grand_total",
    "settle",
]
