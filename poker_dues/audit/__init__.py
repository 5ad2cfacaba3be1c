"""Audit logging package."""

from poker_dues.audit.logger import AuditLogger, configure_log_level

__all__ = ["AuditLogger", "configure_log_level"]
