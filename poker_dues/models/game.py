"""
Core Data Models for Poker Dues

These models define the schemas for everything that flows through the
system: players and their buy-ins, settlement transactions, and the
per-game statistics kept across the year.

DESIGN DECISION: Amounts are plain floats (64-bit doubles).
The grand-total tolerance of the settlement engine exists precisely to
absorb float drift and input rounding, so we keep the same numeric model
end to end and round only for display.

DESIGN DECISION: Domain failures are VALUES, not exceptions.
Every operation returns a result model carrying an optional GameError.
Exceptions are reserved for infrastructure problems (storage).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
)


NOTE_MAX_LENGTH = 200


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class InputMode(str, Enum):
    """
    How an amount is applied to a player that already exists.

    DESIGN DECISION: Accumulation is never implicit. Adding a player whose
    name is taken is rejected unless the caller names one of these modes.
    """
    BUY_IN = "buy_in"                  # Added to the cumulative buy-in
    FINAL_BALANCE = "final_balance"    # Replaces the final balance


class PaymentRole(str, Enum):
    """Which side of a settlement transaction a player is on."""
    PAID = "paid"
    RECEIVED = "received"


class ErrorKind(str, Enum):
    """
    Typed failure kinds surfaced to the caller.

    All of these are returned, never raised.
    """
    EMPTY_INPUT = "empty_input"
    IMBALANCED_TOTAL = "imbalanced_total"
    NO_POSITIVE_NET_PLAYERS = "no_positive_net_players"
    NON_POSITIVE_EXPENSE_TOTAL = "non_positive_expense_total"
    DUPLICATE_NAME = "duplicate_name"
    VALIDATION_FAILURE = "validation_failure"


# =============================================================================
# PLAYER MODELS
# =============================================================================

class BuyInEntry(BaseModel):
    """
    A single buy-in event in a player's history.

    One entry per buy-in (initial or incremental). Final balance changes
    never produce entries. A replace-style edit of the buy-in records the
    delta, which may be negative.
    """
    id: UUID = Field(default_factory=uuid4)
    amount: float = Field(
        ...,
        description="Amount added to the buy-in by this event"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the buy-in happened (UTC)"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=NOTE_MAX_LENGTH,
    )


class Player(BaseModel):
    """
    A participant in one game.

    `net` is derived and never stored as an input: positive means the
    player is owed money, negative means the player owes money.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique player ID"
    )
    game_id: UUID = Field(
        ...,
        description="Game this player belongs to"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, unique case-insensitively within a game"
    )
    buy_in: float = Field(
        default=0.0,
        ge=0,
        description="Cumulative buy-in"
    )
    final_balance: float = Field(
        default=0.0,
        description="Chips/cash held at the end of the game"
    )
    buy_in_history: list[BuyInEntry] = Field(default_factory=list)

    @computed_field
    @property
    def net(self) -> float:
        return self.final_balance - self.buy_in

    @property
    def name_key(self) -> str:
        """Normalized name used for uniqueness checks."""
        return self.name.casefold()

    def to_balance(self) -> "NetBalance":
        return NetBalance(name=self.name, net=self.net, player_id=self.id)


class NetBalance(BaseModel):
    """One row of input to the settlement engine and expense adjustment."""

    name: str
    net: float
    player_id: Optional[UUID] = None


# =============================================================================
# SETTLEMENT MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single payment produced by the settlement engine.

    Immutable once created; replaced wholesale on the next settlement.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    game_id: UUID
    pay_from: str = Field(..., description="Name of the paying player")
    pay_to: str = Field(..., description="Name of the receiving player")
    amount: float = Field(..., gt=0)
    date: datetime = Field(default_factory=utc_now)

    @property
    def description(self) -> str:
        return f"{self.pay_from} to {self.pay_to} : {self.amount:.2f}"


class PlayerPayment(BaseModel):
    """A settlement transaction as seen from one player's side."""

    transaction_id: UUID
    counterpart_name: str
    amount: float
    role: PaymentRole
    date: datetime
    note: Optional[str] = None


class PlayerHistory(BaseModel):
    """Everything that happened to one player in the current game."""

    player: Player
    buy_ins: list[BuyInEntry] = Field(
        default_factory=list,
        description="Buy-in events, newest first"
    )
    payments: list[PlayerPayment] = Field(default_factory=list)


# =============================================================================
# STATS MODELS
# =============================================================================

class PlayerStat(BaseModel):
    """
    A player's net result for one settled game.

    Records of one game are replaced, not accumulated, when that game is
    settled again.
    """
    id: UUID = Field(default_factory=uuid4)
    game_id: UUID
    date: datetime = Field(default_factory=utc_now)
    player_name: str
    net_amount: float


class PlayerYearTotal(BaseModel):
    """Aggregated stats for one player over a calendar year."""

    player_name: str
    total_net: float
    games_played: int = Field(ge=0)


# =============================================================================
# RESULT MODELS
# =============================================================================

class GameError(BaseModel):
    """A typed, user-presentable failure."""

    kind: ErrorKind
    message: str
    amount: Optional[float] = Field(
        default=None,
        description="Offending amount, e.g. the grand total when imbalanced"
    )

    @classmethod
    def empty_input(cls) -> "GameError":
        return cls(
            kind=ErrorKind.EMPTY_INPUT,
            message="Please add at least one player",
        )

    @classmethod
    def imbalanced_total(cls, grand_total: float) -> "GameError":
        return cls(
            kind=ErrorKind.IMBALANCED_TOTAL,
            message=(
                "ERROR: Grand Total must be zero, check your data: "
                f"{grand_total:.2f}"
            ),
            amount=grand_total,
        )

    @classmethod
    def no_positive_net_players(cls) -> "GameError":
        return cls(
            kind=ErrorKind.NO_POSITIVE_NET_PLAYERS,
            message="No players with a positive net to share the host expense",
        )

    @classmethod
    def non_positive_expense_total(cls, total: float) -> "GameError":
        return cls(
            kind=ErrorKind.NON_POSITIVE_EXPENSE_TOTAL,
            message="Total positive net must be greater than zero to share the host expense",
            amount=total,
        )

    @classmethod
    def duplicate_name(cls, name: str) -> "GameError":
        return cls(
            kind=ErrorKind.DUPLICATE_NAME,
            message=f"Player names must be unique. '{name}' is already in this game.",
        )

    @classmethod
    def validation_failure(cls, message: str) -> "GameError":
        return cls(kind=ErrorKind.VALIDATION_FAILURE, message=message)


class SettlementResult(BaseModel):
    """Output of one settlement engine run."""

    success: bool
    transactions: list[Transaction] = Field(default_factory=list)
    grand_total: float = 0.0
    error: Optional[GameError] = None


class AdjustmentResult(BaseModel):
    """Output of the host expense adjustment."""

    success: bool
    balances: list[NetBalance] = Field(default_factory=list)
    applied: bool = Field(
        default=False,
        description="False when no host/expense was given and balances are untouched"
    )
    error: Optional[GameError] = None


class PlayerOperationResult(BaseModel):
    """Output of add/update/remove operations on the ledger."""

    success: bool
    player: Optional[Player] = None
    error: Optional[GameError] = None
    warnings: list[str] = Field(default_factory=list)


class GameSettlement(BaseModel):
    """
    Output of settling a whole game.

    When a host expense was applied, `original_transactions` settles the
    balances before the expense and `transactions` settles them after.
    Without an expense both lists are the same.
    """

    success: bool
    game_id: UUID
    transactions: list[Transaction] = Field(default_factory=list)
    original_transactions: list[Transaction] = Field(default_factory=list)
    expense_applied: bool = False
    host_id: Optional[UUID] = None
    expense: float = 0.0
    error: Optional[GameError] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'negative')"
    )
    message: str = Field(..., description="Human-readable description")
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
    )


class ValidationResult(BaseModel):
    """
    Result of validating one operation's input.

    Errors block the operation; warnings are logged and passed through.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        return next(
            (issue.message for issue in self.issues if issue.severity == "error"),
            None,
        )

    def to_error(self) -> Optional[GameError]:
        """The first blocking issue as a VALIDATION_FAILURE, if any."""
        message = self.first_error
        return GameError.validation_failure(message) if message else None
