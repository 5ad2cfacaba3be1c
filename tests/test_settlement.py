"""
Tests for the settlement engine and host expense adjustment.

Both are pure functions, so these tests need no storage or logging.
"""

import math
import pytest
from datetime import datetime, timezone
from uuid import uuid4

from poker_dues.models.game import ErrorKind, NetBalance
from poker_dues.settlement import (
    GRAND_TOTAL_TOLERANCE,
    adjust,
    expense_shares,
    filter_blank,
    settle,
)


def balances(*rows):
    return [NetBalance(name=name, net=net, player_id=uuid4()) for name, net in rows]


def payments(result):
    return [(t.pay_from, t.pay_to, round(t.amount, 2)) for t in result.transactions]


class TestSettle:
    """Tests for the greedy settlement engine."""

    def test_debtor_pays_creditors_in_order(self):
        """Test one debtor, two creditors."""
        result = settle(balances(("A", -30), ("B", 10), ("C", 20)), uuid4())
        assert result.success is True
        assert payments(result) == [("A", "B", 10), ("A", "C", 20)]

    def test_residual_within_tolerance(self):
        """Test a +1 grand total settles and leaves the residual unpaid."""
        result = settle(balances(("A", -5), ("B", 3), ("C", 3)), uuid4())
        assert result.success is True
        assert result.grand_total == pytest.approx(1.0)
        assert payments(result) == [("A", "B", 3), ("A", "C", 2)]

    def test_imbalanced_total_rejected(self):
        """Test a grand total beyond tolerance is rejected."""
        result = settle(balances(("A", -10), ("B", 11.5)), uuid4())
        assert result.success is False
        assert result.transactions == []
        assert result.error.kind == ErrorKind.IMBALANCED_TOTAL
        assert result.error.amount == pytest.approx(1.5)
        assert result.error.message.endswith("1.50")

    def test_negative_imbalance_rejected(self):
        """Test the tolerance applies in both directions."""
        result = settle(balances(("A", -12), ("B", 10)), uuid4())
        assert result.success is False
        assert result.error.amount == pytest.approx(-2.0)

    def test_tolerance_boundary_is_inclusive(self):
        """Test exactly 1.0 off is still accepted."""
        result = settle(balances(("A", -10), ("B", 11)), uuid4())
        assert GRAND_TOTAL_TOLERANCE == 1.0
        assert result.success is True

    def test_empty_input_settles_to_nothing(self):
        """Test no rows means no payments."""
        result = settle([], uuid4())
        assert result.success is True
        assert result.transactions == []

    def test_blank_names_are_ignored(self):
        """Test rows with blank names are dropped before settling."""
        rows = balances(("A", -10), ("   ", 500), ("B", 10))
        assert [b.name for b in filter_blank(rows)] == ["A", "B"]
        result = settle(rows, uuid4())
        assert result.success is True
        assert payments(result) == [("A", "B", 10)]

    def test_all_zero_produces_no_payments(self):
        """Test balanced players with zero nets."""
        result = settle(balances(("A", 0), ("B", 0)), uuid4())
        assert result.success is True
        assert result.transactions == []

    def test_debtors_processed_from_the_end(self):
        """Test the last debtor in the list pays first."""
        result = settle(balances(("A", -10), ("B", 25), ("C", -15)), uuid4())
        assert payments(result) == [("C", "B", 15), ("A", "B", 10)]

    def test_creditor_exhausted_then_next(self):
        """Test a debt larger than the first creditor's credit is split."""
        result = settle(balances(("W1", 5), ("W2", 45), ("L", -50)), uuid4())
        assert payments(result) == [("L", "W1", 5), ("L", "W2", 45)]

    def test_order_dependence(self):
        """Test reordering the same balances changes the payments."""
        game_id = uuid4()
        first = settle(balances(("A", -10), ("B", -20), ("C", 15), ("D", 15)), game_id)
        second = settle(balances(("B", -20), ("A", -10), ("D", 15), ("C", 15)), game_id)
        assert payments(first) == [("B", "C", 15), ("B", "D", 5), ("A", "D", 10)]
        assert payments(second) == [("A", "D", 10), ("B", "D", 5), ("B", "C", 15)]
        assert payments(first) != payments(second)

    def test_deterministic(self):
        """Test the same input always gives the same payments."""
        rows = balances(("A", -7.5), ("B", 2.25), ("C", -2.5), ("D", 7.75))
        game_id = uuid4()
        assert payments(settle(rows, game_id)) == payments(settle(rows, game_id))

    def test_payments_discharge_every_balance(self):
        """Test every player's nets are zeroed by the payments."""
        rows = balances(("A", -40), ("B", 25), ("C", -35), ("D", 30), ("E", 20))
        result = settle(rows, uuid4())

        remaining = {b.name: b.net for b in rows}
        for transaction in result.transactions:
            assert transaction.amount > 0
            remaining[transaction.pay_from] += transaction.amount
            remaining[transaction.pay_to] -= transaction.amount
        assert all(math.isclose(v, 0.0, abs_tol=1e-9) for v in remaining.values())

    @pytest.mark.parametrize("nets", [
        [-30, 10, 20],
        [-40, 25, -35, 30, 20],
        [15, -5, 0, -5, -5],
        [-1, -1, -1, -1, 4],
        [50, -50],
    ])
    def test_transaction_bound(self, nets):
        """Test at most one payment fewer than players with a non-zero net."""
        rows = balances(*[(f"P{idx}", net) for idx, net in enumerate(nets)])
        result = settle(rows, uuid4())
        non_zero = sum(1 for net in nets if net != 0)
        assert len(result.transactions) <= non_zero - 1

    def test_transactions_carry_game_and_timestamp(self):
        """Test game id and the given timestamp are stamped on every payment."""
        game_id = uuid4()
        now = datetime(2026, 3, 1, 22, 0, tzinfo=timezone.utc)
        result = settle(balances(("A", -10), ("B", 10)), game_id, now=now)
        assert all(t.game_id == game_id for t in result.transactions)
        assert all(t.date == now for t in result.transactions)

    def test_input_not_mutated(self):
        """Test the engine works on a copy of the nets."""
        rows = balances(("A", -30), ("B", 30))
        settle(rows, uuid4())
        assert [b.net for b in rows] == [-30, 30]


class TestAdjust:
    """Tests for the host expense adjustment."""

    def test_proportional_shares(self):
        """Test winners carry the expense in proportion to their winnings."""
        rows = balances(("H", 0), ("A", -100), ("B", 40), ("C", 60))
        result = adjust(rows, rows[0].player_id, 100.0)

        assert result.success is True
        assert result.applied is True
        nets = {b.name: b.net for b in result.balances}
        assert nets["B"] == pytest.approx(0.0)
        assert nets["C"] == pytest.approx(0.0)
        assert nets["H"] == pytest.approx(100.0)
        assert nets["A"] == pytest.approx(-100.0)

    def test_grand_total_preserved(self):
        """Test the adjustment moves money without creating any."""
        rows = balances(("A", -45), ("B", 20), ("H", -5), ("C", 30))
        result = adjust(rows, rows[2].player_id, 17.5)
        before = sum(b.net for b in rows)
        after = sum(b.net for b in result.balances)
        assert after == pytest.approx(before)

    def test_order_preserved(self):
        """Test adjusted balances keep the input order."""
        rows = balances(("A", -45), ("B", 20), ("H", -5), ("C", 30))
        result = adjust(rows, rows[2].player_id, 10)
        assert [b.name for b in result.balances] == ["A", "B", "H", "C"]

    def test_winning_host_shares_too(self):
        """Test a host who won carries a share and still gets the full expense."""
        rows = balances(("H", 50), ("B", 50), ("L", -100))
        result = adjust(rows, rows[0].player_id, 20)
        nets = [b.net for b in result.balances]
        assert nets == pytest.approx([60.0, 40.0, -100.0])

    def test_no_host_is_a_no_op(self):
        """Test no host leaves balances untouched."""
        rows = balances(("A", -10), ("B", 10))
        result = adjust(rows, None, 25)
        assert result.success is True
        assert result.applied is False
        assert [b.net for b in result.balances] == [-10, 10]

    def test_zero_expense_is_a_no_op(self):
        """Test a zero expense leaves balances untouched."""
        rows = balances(("A", -10), ("B", 10))
        result = adjust(rows, rows[0].player_id, 0)
        assert result.applied is False

    def test_no_winners(self):
        """Test an expense with nobody up is rejected."""
        rows = balances(("A", 0), ("B", 0))
        result = adjust(rows, rows[0].player_id, 10)
        assert result.success is False
        assert result.error.kind == ErrorKind.NO_POSITIVE_NET_PLAYERS

    def test_unknown_host(self):
        """Test a host that is not in the game is rejected."""
        rows = balances(("A", -10), ("B", 10))
        result = adjust(rows, uuid4(), 10)
        assert result.success is False
        assert result.error.kind == ErrorKind.VALIDATION_FAILURE

    @pytest.mark.parametrize("expense", [-1.0, float("nan"), float("inf")])
    def test_bad_expense(self, expense):
        """Test negative and non-finite expenses are rejected."""
        rows = balances(("A", -10), ("B", 10))
        result = adjust(rows, rows[0].player_id, expense)
        assert result.success is False
        assert result.error.kind == ErrorKind.VALIDATION_FAILURE

    def test_input_not_mutated(self):
        """Test the adjustment returns new balances."""
        rows = balances(("H", 0), ("A", -10), ("B", 10))
        adjust(rows, rows[0].player_id, 5)
        assert [b.net for b in rows] == [0, -10, 10]

    def test_expense_shares(self):
        """Test shares are keyed by position and sum to the expense."""
        rows = balances(("A", -40), ("B", 10), ("C", 30))
        shares = expense_shares(rows, 20)
        assert shares == {1: 5.0, 2: 15.0}
        assert expense_shares(balances(("A", -1), ("B", 0)), 20) == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
