"""
Host Expense Adjustment

When one player hosts the game and spends money on it (food, drinks,
cards), the winners of the night share that cost in proportion to their
winnings, and the host is credited the full amount.

DESIGN DECISION: Like the settlement engine, this is a pure transform.
It returns NEW balances in the same order and never touches the ledger.
The grand total is preserved: winners give up exactly `expense` in total
and the host receives exactly `expense`.
"""

import math
from typing import Optional, Sequence
from uuid import UUID

from poker_dues.models.game import AdjustmentResult, GameError, NetBalance


def expense_shares(
    balances: Sequence[NetBalance],
    expense: float,
) -> dict[int, float]:
    """
    Work out how much of the expense each winner carries.

    Returns {index_in_balances: share}. Empty when nobody is up.
    """
    gainers = [(idx, b.net) for idx, b in enumerate(balances) if b.net > 0]
    total_positive = sum(net for _, net in gainers)
    if total_positive <= 0:
        return {}
    return {idx: expense * (net / total_positive) for idx, net in gainers}


def adjust(
    balances: Sequence[NetBalance],
    host_id: Optional[UUID],
    expense: float,
) -> AdjustmentResult:
    """
    Apply a host expense to a list of net balances.

    Args:
        balances: Net balances in ledger order (blank names already removed)
        host_id: Player id of the host, or None for no host
        expense: Amount the host spent, must be >= 0

    Returns:
        AdjustmentResult. `applied` is False when there was nothing to do.
    """
    if not math.isfinite(expense) or expense < 0:
        return AdjustmentResult(
            success=False,
            error=GameError.validation_failure(
                "Host expense must be a number greater than or equal to zero"
            ),
        )

    if host_id is None or expense == 0:
        return AdjustmentResult(
            success=True,
            balances=[b.model_copy() for b in balances],
        )

    host_index = next(
        (idx for idx, b in enumerate(balances) if b.player_id == host_id),
        None,
    )
    if host_index is None:
        return AdjustmentResult(
            success=False,
            error=GameError.validation_failure("Selected host is not a player in this game"),
        )

    gainers = [b for b in balances if b.net > 0]
    if not gainers:
        return AdjustmentResult(success=False, error=GameError.no_positive_net_players())

    total_positive = sum(b.net for b in gainers)
    if total_positive <= 0:
        return AdjustmentResult(
            success=False,
            error=GameError.non_positive_expense_total(total_positive),
        )

    shares = expense_shares(balances, expense)
    adjusted = []
    for idx, balance in enumerate(balances):
        net = balance.net - shares.get(idx, 0.0)
        if idx == host_index:
            net += expense
        adjusted.append(balance.model_copy(update={"net": net}))

    return AdjustmentResult(success=True, balances=adjusted, applied=True)
