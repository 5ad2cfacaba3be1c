"""
Player Input Validation

DESIGN DECISION: Bad input is rejected BEFORE it reaches the ledger or
the settlement engine. The engine only ever sees well-formed floats.

Checks:
- Names must be non-empty after trimming
- Amounts must be numbers (numeric strings are accepted)
- Amounts must be finite
- Buy-ins and final balances cannot be negative
- Incremental buy-ins must be greater than zero

Unusually large amounts produce a WARNING, never an error: a big pot is
suspicious but not impossible.

IMPORTANT: Validation NEVER silently fixes values. Whitespace around a
name is the only thing we normalize.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel

from poker_dues.config import AppSettings, get_settings
from poker_dues.models.game import (
    NOTE_MAX_LENGTH,
    InputMode,
    ValidationIssue,
    ValidationResult,
)


class PlayerInput(BaseModel):
    """Validated, normalized input for creating or replacing a player."""

    name: str
    buy_in: float
    final_balance: float


FIELD_LABELS = {
    "buy_in": "Buy-in",
    "final_balance": "Final balance",
    "amount": "Amount",
    "expense": "Host expense",
}


class PlayerInputValidator:
    """Validates names and amounts coming from the presentation layer."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _label(self, field: str) -> str:
        return FIELD_LABELS.get(field, field)

    def parse_amount(
        self,
        value: Any,
        field: str,
        allow_empty: bool = False,
    ) -> tuple[Optional[float], list[ValidationIssue]]:
        """
        Turn user input into a float.

        Returns: (amount or None, issues)
        """
        label = self._label(field)

        if value is None or (isinstance(value, str) and not value.strip()):
            if allow_empty:
                return 0.0, []
            return None, [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            )]

        if isinstance(value, bool):
            return None, [ValidationIssue(
                field=field,
                issue_type="not_a_number",
                message=f"{label} must be a number",
                severity="error",
            )]

        try:
            amount = float(value.strip() if isinstance(value, str) else value)
        except (TypeError, ValueError):
            return None, [ValidationIssue(
                field=field,
                issue_type="not_a_number",
                message=f"{label} must be a number, got '{value}'",
                severity="error",
            )]

        if not math.isfinite(amount):
            return None, [ValidationIssue(
                field=field,
                issue_type="not_finite",
                message=f"{label} must be a finite number",
                severity="error",
            )]

        issues = []
        if abs(amount) > self._settings.max_reasonable_amount:
            issues.append(ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=f"{label} ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))
        return amount, issues

    def _check_non_negative(self, amount: float, field: str) -> list[ValidationIssue]:
        if amount < 0:
            return [ValidationIssue(
                field=field,
                issue_type="negative",
                message=f"{self._label(field)} cannot be negative",
                severity="error",
            )]
        return []

    def validate_name(self, name: Any) -> tuple[Optional[str], list[ValidationIssue]]:
        """Trim and check a player name."""
        trimmed = name.strip() if isinstance(name, str) else ""
        if not trimmed:
            return None, [ValidationIssue(
                field="name",
                issue_type="missing",
                message="Player name cannot be empty",
                severity="error",
            )]
        if len(trimmed) > self._settings.max_name_length:
            return None, [ValidationIssue(
                field="name",
                issue_type="too_long",
                message=(
                    f"Player name cannot be longer than "
                    f"{self._settings.max_name_length} characters"
                ),
                severity="error",
            )]
        return trimmed, []

    def validate_note(self, note: Any) -> tuple[ValidationResult, Optional[str]]:
        """
        Check the free-text note attached to a buy-in.

        Returns: (result, note or None). A missing note is valid.
        """
        if note is None:
            return ValidationResult(), None

        issues = []
        if not isinstance(note, str):
            issues.append(ValidationIssue(
                field="note",
                issue_type="not_text",
                message="Note must be text",
                severity="error",
            ))
        elif len(note) > NOTE_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note cannot be longer than {NOTE_MAX_LENGTH} characters",
                severity="error",
            ))

        result = ValidationResult(issues=issues)
        return result, (note if result.is_valid else None)

    def validate_player(
        self,
        name: Any,
        buy_in: Any,
        final_balance: Any,
    ) -> tuple[ValidationResult, Optional[PlayerInput]]:
        """
        Validate the fields for a new player or a full edit.

        Returns: (result, normalized input or None when invalid)
        """
        issues = []

        trimmed, name_issues = self.validate_name(name)
        issues.extend(name_issues)

        buy_in_value, buy_in_issues = self.parse_amount(buy_in, "buy_in")
        issues.extend(buy_in_issues)
        if buy_in_value is not None:
            issues.extend(self._check_non_negative(buy_in_value, "buy_in"))

        final_value, final_issues = self.parse_amount(final_balance, "final_balance")
        issues.extend(final_issues)
        if final_value is not None:
            issues.extend(self._check_non_negative(final_value, "final_balance"))

        result = ValidationResult(issues=issues)
        if not result.is_valid:
            return result, None

        return result, PlayerInput(
            name=trimmed,
            buy_in=buy_in_value,
            final_balance=final_value,
        )

    def validate_increment(
        self,
        amount: Any,
        mode: InputMode,
    ) -> tuple[ValidationResult, Optional[float]]:
        """
        Validate an amount applied to an existing player.

        A buy-in increment must be > 0; a replacement final balance >= 0.
        """
        field = "buy_in" if mode == InputMode.BUY_IN else "final_balance"
        value, issues = self.parse_amount(amount, field)

        if value is not None:
            if mode == InputMode.BUY_IN and value <= 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="not_positive",
                    message="Additional buy-in must be greater than zero",
                    severity="error",
                ))
            else:
                issues.extend(self._check_non_negative(value, field))

        result = ValidationResult(issues=issues)
        return result, (value if result.is_valid else None)

    def validate_expense(self, expense: Any) -> tuple[ValidationResult, Optional[float]]:
        """Host expense: empty means zero, otherwise a number >= 0."""
        value, issues = self.parse_amount(expense, "expense", allow_empty=True)
        if value is not None:
            issues.extend(self._check_non_negative(value, "expense"))
        result = ValidationResult(issues=issues)
        return result, (value if result.is_valid else None)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per problem, errors first."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"• {issue.message}")
        for warning in result.warnings:
            lines.append(f"• Please verify: {warning}")
        return "\n".join(lines)
