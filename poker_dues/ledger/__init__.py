"""Balance ledger package."""

from poker_dues.ledger.ledger import EDIT_NOTE, Ledger

__all__ = ["EDIT_NOTE", "Ledger"]
