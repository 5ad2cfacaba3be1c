"""
Data Models Package

This package contains all Pydantic models used in Poker Dues.
All data flowing through the system must conform to these schemas.
"""

from poker_dues.models.game import (
    NOTE_MAX_LENGTH,
    AdjustmentResult,
    BuyInEntry,
    ErrorKind,
    GameError,
    GameSettlement,
    InputMode,
    NetBalance,
    PaymentRole,
    Player,
    PlayerHistory,
    PlayerOperationResult,
    PlayerPayment,
    PlayerStat,
    PlayerYearTotal,
    SettlementResult,
    Transaction,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from poker_dues.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Game models
    "NOTE_MAX_LENGTH",
    "AdjustmentResult",
    "BuyInEntry",
    "ErrorKind",
    "GameError",
    "GameSettlement",
    "InputMode",
    "NetBalance",
    "PaymentRole",
    "Player",
    "PlayerHistory",
    "PlayerOperationResult",
    "PlayerPayment",
    "PlayerStat",
    "PlayerYearTotal",
    "SettlementResult",
    "Transaction",
    "ValidationIssue",
    "ValidationResult",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
