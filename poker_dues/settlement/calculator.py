"""
Settlement Engine

Turns a list of net balances into the payments that zero everyone out.

DESIGN DECISION: This is a pure function.
No storage, no logging, no clock unless one is passed in. The orchestrator
owns every side effect; this module only does arithmetic.

The algorithm is greedy and ORDER-DEPENDENT:
- Debtors are processed from the end of the list towards the start.
- Each debtor pays creditors from the start of the list onwards.
The same balances in the same order always produce the same payments,
but a different order can produce a different (equally valid) set.
It does not try to find the smallest possible number of payments.
"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from poker_dues.models.game import (
    GameError,
    NetBalance,
    SettlementResult,
    Transaction,
    utc_now,
)


# The grand total may drift from zero by at most this much (base currency
# units) before a settlement is rejected.
GRAND_TOTAL_TOLERANCE = 1.0


def filter_blank(balances: Sequence[NetBalance]) -> list[NetBalance]:
    """Drop rows whose name is empty or whitespace-only, keeping order."""
    return [b for b in balances if b.name.strip()]


def grand_total(balances: Sequence[NetBalance]) -> float:
    return sum(b.net for b in balances)


def settle(
    balances: Sequence[NetBalance],
    game_id: UUID,
    tolerance: float = GRAND_TOTAL_TOLERANCE,
    now: Optional[datetime] = None,
) -> SettlementResult:
    """
    Compute the payments that discharge every net balance.

    Args:
        balances: Net balances in ledger (insertion) order
        game_id: Game the produced transactions belong to
        tolerance: Allowed absolute deviation of the grand total from zero
        now: Timestamp for the transactions (defaults to current UTC time)

    Returns:
        SettlementResult with the ordered transactions, or an
        IMBALANCED_TOTAL error when the balances don't add up.
        An input with no named rows settles to an empty list.
    """
    valid = filter_blank(balances)
    if not valid:
        return SettlementResult(success=True)

    total = grand_total(valid)
    if abs(total) > tolerance:
        return SettlementResult(
            success=False,
            grand_total=total,
            error=GameError.imbalanced_total(total),
        )

    timestamp = now or utc_now()
    names = [b.name for b in valid]
    nets = [b.net for b in valid]
    rows = len(valid)
    transactions: list[Transaction] = []

    for i in range(rows - 1, -1, -1):
        j = 0
        while nets[i] < 0 and j < rows:
            if nets[j] > 0:
                if nets[i] + nets[j] >= 0:
                    # creditor j absorbs the rest of i's debt
                    amount = -nets[i]
                    nets[j] += nets[i]
                    nets[i] = 0.0
                else:
                    # creditor j is exhausted, i still owes
                    amount = nets[j]
                    nets[i] += nets[j]
                    nets[j] = 0.0
                transactions.append(Transaction(
                    game_id=game_id,
                    pay_from=names[i],
                    pay_to=names[j],
                    amount=amount,
                    date=timestamp,
                ))
            j += 1

    return SettlementResult(
        success=True,
        transactions=transactions,
        grand_total=total,
    )
