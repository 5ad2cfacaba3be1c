"""
Audit Models for Poker Dues

Every significant action in a game is logged for audit purposes.
This provides:
1. Traceability of every buy-in and balance change
2. Debugging information when a settlement is rejected
3. A way to reconstruct how the final numbers came about

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from poker_dues.models.game import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Player changes
    PLAYER_ADDED = "player_added"
    BUY_IN_RECORDED = "buy_in_recorded"
    FINAL_BALANCE_SET = "final_balance_set"
    PLAYER_UPDATED = "player_updated"
    PLAYER_REMOVED = "player_removed"
    VALIDATION_FAILED = "validation_failed"
    VALIDATION_WARNING = "validation_warning"

    # Settlement
    EXPENSE_APPLIED = "expense_applied"
    SETTLEMENT_COMPLETED = "settlement_completed"
    SETTLEMENT_FAILED = "settlement_failed"

    # Game lifecycle
    GAME_STARTED = "game_started"
    GAME_CLEARED = "game_cleared"

    # Stats
    STATS_RECORDED = "stats_recorded"
    STATS_CLEARED = "stats_cleared"
    STATS_ROLLED_OVER = "stats_rolled_over"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what is this about?
    game_id: Optional[UUID] = Field(
        default=None,
        description="Game the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'player', 'settlement', 'stats')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "game_id": str(self.game_id) if self.game_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.player_added(game_id, player_id, "Alice", 50.0)
        event = AuditEventBuilder.settlement_failed(game_id, "imbalanced_total", msg)
    """

    @staticmethod
    def player_added(
        game_id: UUID,
        player_id: UUID,
        name: str,
        buy_in: float,
        final_balance: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAYER_ADDED,
            game_id=game_id,
            entity_type="player",
            entity_id=player_id,
            description=f"Player added: {name}",
            details={
                "name": name,
                "buy_in": buy_in,
                "final_balance": final_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def buy_in_recorded(
        game_id: UUID,
        player_id: UUID,
        name: str,
        amount: float,
        total_buy_in: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUY_IN_RECORDED,
            game_id=game_id,
            entity_type="player",
            entity_id=player_id,
            description=f"Buy-in of {amount:.2f} recorded for {name}",
            details={
                "amount": amount,
                "total_buy_in": total_buy_in,
            },
            is_user_action=True,
        )

    @staticmethod
    def final_balance_set(
        game_id: UUID,
        player_id: UUID,
        name: str,
        previous: float,
        final_balance: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FINAL_BALANCE_SET,
            game_id=game_id,
            entity_type="player",
            entity_id=player_id,
            description=f"Final balance for {name} set to {final_balance:.2f}",
            details={
                "previous": previous,
                "final_balance": final_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def player_updated(
        game_id: UUID,
        player_id: UUID,
        old_name: str,
        new_name: str,
        buy_in: float,
        final_balance: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAYER_UPDATED,
            game_id=game_id,
            entity_type="player",
            entity_id=player_id,
            description=f"Player updated: {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "buy_in": buy_in,
                "final_balance": final_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def player_removed(
        game_id: UUID,
        player_id: UUID,
        name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAYER_REMOVED,
            game_id=game_id,
            entity_type="player",
            entity_id=player_id,
            description=f"Player removed: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        game_id: UUID,
        operation: str,
        error_code: str,
        message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            game_id=game_id,
            description=f"{operation} rejected",
            details={"operation": operation},
            error_code=error_code,
            error_message=message,
        )

    @staticmethod
    def validation_warning(
        game_id: UUID,
        operation: str,
        warnings: list[str],
        entity_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_WARNING,
            severity=AuditSeverity.WARNING,
            game_id=game_id,
            entity_type="player" if entity_id else None,
            entity_id=entity_id,
            description=f"{operation} accepted with {len(warnings)} warning(s)",
            details={
                "operation": operation,
                "warnings": warnings,
            },
        )

    @staticmethod
    def expense_applied(
        game_id: UUID,
        host_id: UUID,
        expense: float,
        deductions: dict[str, float],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_APPLIED,
            game_id=game_id,
            entity_type="player",
            entity_id=host_id,
            description=f"Host expense of {expense:.2f} shared by {len(deductions)} players",
            details={
                "expense": expense,
                "deductions": deductions,
            },
        )

    @staticmethod
    def settlement_completed(
        game_id: UUID,
        player_count: int,
        transaction_count: int,
        expense_applied: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPLETED,
            game_id=game_id,
            entity_type="settlement",
            description=(
                f"Settlement computed: {transaction_count} payments "
                f"for {player_count} players"
            ),
            details={
                "player_count": player_count,
                "transaction_count": transaction_count,
                "expense_applied": expense_applied,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_failed(
        game_id: UUID,
        error_code: str,
        message: str,
        amount: Optional[float] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_FAILED,
            severity=AuditSeverity.WARNING,
            game_id=game_id,
            entity_type="settlement",
            description="Settlement rejected",
            details={"amount": amount} if amount is not None else {},
            error_code=error_code,
            error_message=message,
        )

    @staticmethod
    def game_started(game_id: UUID, previous_game_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GAME_STARTED,
            game_id=game_id,
            description="New game started",
            details={
                "previous_game_id": str(previous_game_id) if previous_game_id else None,
            },
        )

    @staticmethod
    def game_cleared(game_id: UUID, new_game_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GAME_CLEARED,
            game_id=game_id,
            description="Game data cleared",
            details={"new_game_id": str(new_game_id)},
            is_user_action=True,
        )

    @staticmethod
    def stats_recorded(game_id: UUID, record_count: int, replaced: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATS_RECORDED,
            game_id=game_id,
            entity_type="stats",
            description=f"Recorded {record_count} stats for game",
            details={
                "record_count": record_count,
                "replaced": replaced,
            },
        )

    @staticmethod
    def stats_cleared(record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATS_CLEARED,
            entity_type="stats",
            description="All stats cleared",
            details={"record_count": record_count},
            is_user_action=True,
        )

    @staticmethod
    def stats_rolled_over(
        previous_year: int,
        current_year: int,
        discarded: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATS_ROLLED_OVER,
            entity_type="stats",
            description=f"Stats rolled over from {previous_year} to {current_year}",
            details={
                "previous_year": previous_year,
                "current_year": current_year,
                "discarded": discarded,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        game_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            game_id=game_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
