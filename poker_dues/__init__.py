"""
Poker Dues - Source Package

Tracks buy-ins and final balances for a home poker game and works out
who pays whom at the end of the night.

DESIGN PRINCIPLES:
1. Settlement is a pure function of the balances
2. Fail early, fail visibly
3. No silent corrections
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Poker Dues Team"
