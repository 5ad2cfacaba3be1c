"""
Audit Logger

DESIGN DECISION: Every significant action in a game is logged.
This provides:
1. Traceability of buy-ins, balance edits and settlements
2. Debugging capability when a settlement is rejected

The audit logger:
- Writes structured JSON through structlog
- Never raises: a logging failure must not break a game in progress
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from poker_dues.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given stdlib level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("poker_dues").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Events are logged locally as structured JSON. Recent events are also
    kept in memory so callers (and tests) can inspect what happened.
    """

    def __init__(self, logger_name: str = "poker_dues.audit", keep_last: int = 500):
        self._logger = structlog.get_logger(logger_name)
        self._keep_last = keep_last
        self._recent: list[AuditEvent] = []

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, oldest first."""
        return list(self._recent)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._recent.append(event)
        if len(self._recent) > self._keep_last:
            del self._recent[: len(self._recent) - self._keep_last]

        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # never raise from the audit path
            logging.getLogger(__name__).warning("audit logging failed: %s", e)

    def log_player_added(
        self,
        game_id: UUID,
        player_id: UUID,
        name: str,
        buy_in: float,
        final_balance: float,
    ) -> None:
        self.log(AuditEventBuilder.player_added(
            game_id=game_id,
            player_id=player_id,
            name=name,
            buy_in=buy_in,
            final_balance=final_balance,
        ))

    def log_buy_in_recorded(
        self,
        game_id: UUID,
        player_id: UUID,
        name: str,
        amount: float,
        total_buy_in: float,
    ) -> None:
        self.log(AuditEventBuilder.buy_in_recorded(
            game_id=game_id,
            player_id=player_id,
            name=name,
            amount=amount,
            total_buy_in=total_buy_in,
        ))

    def log_final_balance_set(
        self,
        game_id: UUID,
        player_id: UUID,
        name: str,
        previous: float,
        final_balance: float,
    ) -> None:
        self.log(AuditEventBuilder.final_balance_set(
            game_id=game_id,
            player_id=player_id,
            name=name,
            previous=previous,
            final_balance=final_balance,
        ))

    def log_player_updated(
        self,
        game_id: UUID,
        player_id: UUID,
        old_name: str,
        new_name: str,
        buy_in: float,
        final_balance: float,
    ) -> None:
        self.log(AuditEventBuilder.player_updated(
            game_id=game_id,
            player_id=player_id,
            old_name=old_name,
            new_name=new_name,
            buy_in=buy_in,
            final_balance=final_balance,
        ))

    def log_player_removed(self, game_id: UUID, player_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.player_removed(
            game_id=game_id,
            player_id=player_id,
            name=name,
        ))

    def log_validation_failed(
        self,
        game_id: UUID,
        operation: str,
        error_code: str,
        message: str,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            game_id=game_id,
            operation=operation,
            error_code=error_code,
            message=message,
        ))

    def log_validation_warning(
        self,
        game_id: UUID,
        operation: str,
        warnings: list[str],
        entity_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_warning(
            game_id=game_id,
            operation=operation,
            warnings=warnings,
            entity_id=entity_id,
        ))

    def log_expense_applied(
        self,
        game_id: UUID,
        host_id: UUID,
        expense: float,
        deductions: dict[str, float],
    ) -> None:
        self.log(AuditEventBuilder.expense_applied(
            game_id=game_id,
            host_id=host_id,
            expense=expense,
            deductions=deductions,
        ))

    def log_settlement_completed(
        self,
        game_id: UUID,
        player_count: int,
        transaction_count: int,
        expense_applied: bool,
    ) -> None:
        self.log(AuditEventBuilder.settlement_completed(
            game_id=game_id,
            player_count=player_count,
            transaction_count=transaction_count,
            expense_applied=expense_applied,
        ))

    def log_settlement_failed(
        self,
        game_id: UUID,
        error_code: str,
        message: str,
        amount: Optional[float] = None,
    ) -> None:
        self.log(AuditEventBuilder.settlement_failed(
            game_id=game_id,
            error_code=error_code,
            message=message,
            amount=amount,
        ))

    def log_game_started(self, game_id: UUID, previous_game_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.game_started(
            game_id=game_id,
            previous_game_id=previous_game_id,
        ))

    def log_game_cleared(self, game_id: UUID, new_game_id: UUID) -> None:
        self.log(AuditEventBuilder.game_cleared(game_id=game_id, new_game_id=new_game_id))

    def log_stats_recorded(self, game_id: UUID, record_count: int, replaced: int) -> None:
        self.log(AuditEventBuilder.stats_recorded(
            game_id=game_id,
            record_count=record_count,
            replaced=replaced,
        ))

    def log_stats_cleared(self, record_count: int) -> None:
        self.log(AuditEventBuilder.stats_cleared(record_count=record_count))

    def log_stats_rolled_over(
        self,
        previous_year: int,
        current_year: int,
        discarded: int,
    ) -> None:
        self.log(AuditEventBuilder.stats_rolled_over(
            previous_year=previous_year,
            current_year=current_year,
            discarded=discarded,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        game_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            game_id=game_id,
        ))
