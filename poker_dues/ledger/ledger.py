"""
Balance Ledger

Holds the state of ONE game: its players (in insertion order), their
buy-in history, and the payments from the last settlement.

DESIGN DECISION: The ledger does not validate user input and does not
know about storage. It enforces only the structural invariants:
- Every change to a buy-in goes through `record_buy_in`, so the history
  always sums to the current buy-in.
- Player order is insertion order. The settlement engine is
  order-dependent, so the ledger never sorts.
- Transactions are replaced wholesale, never edited.
"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from poker_dues.models.game import (
    BuyInEntry,
    NetBalance,
    PaymentRole,
    Player,
    PlayerPayment,
    Transaction,
    utc_now,
)


EDIT_NOTE = "Edited"


class Ledger:
    """Players and settlement results for a single game."""

    def __init__(
        self,
        game_id: UUID,
        players: Optional[Sequence[Player]] = None,
        transactions: Optional[Sequence[Transaction]] = None,
    ):
        self._game_id = game_id
        self._players: list[Player] = list(players or [])
        self._transactions: list[Transaction] = list(transactions or [])
        self._original_transactions: list[Transaction] = list(transactions or [])

    @property
    def game_id(self) -> UUID:
        return self._game_id

    @property
    def players(self) -> list[Player]:
        return list(self._players)

    @property
    def transactions(self) -> list[Transaction]:
        """Payments to make (after any host expense)."""
        return list(self._transactions)

    @property
    def original_transactions(self) -> list[Transaction]:
        """Payments before any host expense was applied."""
        return list(self._original_transactions)

    def __len__(self) -> int:
        return len(self._players)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_by_id(self, player_id: UUID) -> Optional[Player]:
        return next((p for p in self._players if p.id == player_id), None)

    def find_by_name(
        self,
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Player]:
        """Case-insensitive lookup, optionally ignoring one player."""
        key = name.strip().casefold()
        return next(
            (p for p in self._players if p.name_key == key and p.id != exclude_id),
            None,
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_player(
        self,
        name: str,
        buy_in: float,
        final_balance: float,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> Player:
        """Append a new player; a positive initial buy-in is recorded in history."""
        player = Player(
            game_id=self._game_id,
            name=name,
            buy_in=0.0,
            final_balance=final_balance,
        )
        if buy_in > 0:
            self.record_buy_in(player, buy_in, note=note, at=at)
        # only a fully built player joins the game
        self._players.append(player)
        return player

    def record_buy_in(
        self,
        player: Player,
        amount: float,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> BuyInEntry:
        """
        The single path through which a player's buy-in changes.

        The entry is built before the player is touched, so a rejected
        note leaves the player as it was.
        """
        entry = BuyInEntry(amount=amount, timestamp=at or utc_now(), note=note)
        player.buy_in_history.append(entry)
        player.buy_in = player.buy_in + amount
        return entry

    def replace_buy_in(
        self,
        player: Player,
        buy_in: float,
        at: Optional[datetime] = None,
    ) -> Optional[BuyInEntry]:
        """Set the buy-in to an absolute value by recording the difference."""
        delta = buy_in - player.buy_in
        if delta == 0:
            return None
        return self.record_buy_in(player, delta, note=EDIT_NOTE, at=at)

    def set_final_balance(self, player: Player, final_balance: float) -> float:
        """Replace the final balance; returns the previous value."""
        previous = player.final_balance
        player.final_balance = final_balance
        return previous

    def rename(self, player: Player, name: str) -> None:
        player.name = name

    def remove_at(self, index: int) -> Player:
        return self._players.pop(index)

    def publish(
        self,
        transactions: Sequence[Transaction],
        original_transactions: Optional[Sequence[Transaction]] = None,
    ) -> None:
        """Replace the settlement results."""
        self._transactions = list(transactions)
        self._original_transactions = list(
            transactions if original_transactions is None else original_transactions
        )

    def clear_transactions(self) -> None:
        self._transactions = []
        self._original_transactions = []

    def reset(self, game_id: UUID) -> None:
        """Start over with a new, empty game."""
        self._game_id = game_id
        self._players = []
        self.clear_transactions()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def named_players(self) -> list[Player]:
        """Players with a non-blank name, in order."""
        return [p for p in self._players if p.name.strip()]

    def balances(self) -> list[NetBalance]:
        return [p.to_balance() for p in self.named_players()]

    def grand_total(self) -> float:
        return sum(p.net for p in self._players)

    def payments_for(self, name: str) -> list[PlayerPayment]:
        """A player's side of the current settlement, in payment order."""
        payments = []
        for transaction in self._transactions:
            if transaction.pay_from == name:
                payments.append(PlayerPayment(
                    transaction_id=transaction.id,
                    counterpart_name=transaction.pay_to,
                    amount=transaction.amount,
                    role=PaymentRole.PAID,
                    date=transaction.date,
                ))
            elif transaction.pay_to == name:
                payments.append(PlayerPayment(
                    transaction_id=transaction.id,
                    counterpart_name=transaction.pay_from,
                    amount=transaction.amount,
                    role=PaymentRole.RECEIVED,
                    date=transaction.date,
                ))
        return payments
