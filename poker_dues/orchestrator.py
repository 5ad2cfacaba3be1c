"""
Game Session Orchestrator for Poker Dues

This module ties together all the components and defines the flows for:
1. Player management (add, incremental buy-in/final balance, edit, remove)
2. Settlement (validate → host expense → settle → stats → save)
3. Game and stats lifecycle (clear game, clear stats, yearly report)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger without passing validation
- Domain failures are returned, never raised; the last one is also kept in
  `last_error` / `error_message` / `show_error` for the presentation layer
- Storage failures are audited and re-raised
- Every step is audited

Session state (current game id, stats year marker) lives on this object
and in the session-state repository, never in module globals.
"""

from datetime import datetime
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from poker_dues.audit import AuditLogger, configure_log_level
from poker_dues.config import Settings, get_settings
from poker_dues.ledger import Ledger
from poker_dues.models.game import (
    ErrorKind,
    GameError,
    GameSettlement,
    InputMode,
    Player,
    PlayerHistory,
    PlayerOperationResult,
    PlayerStat,
    PlayerYearTotal,
    Transaction,
    utc_now,
)
from poker_dues.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValuePlayerRepository,
    KeyValueSessionStateRepository,
    KeyValueStatsRepository,
    KeyValueStore,
    KeyValueTransactionRepository,
    PlayerRepository,
    SessionStateRepository,
    StatsRepository,
    StorageError,
    TransactionRepository,
)
from poker_dues.settlement import adjust, expense_shares, settle
from poker_dues.stats import StatsAggregator
from poker_dues.validation import PlayerInputValidator


class GameSession:
    """
    Orchestrates one running game.

    Flow for a typical night:
    1. add_player for everyone at the table (initial buy-in)
    2. apply_amount(..., InputMode.BUY_IN) for every rebuy
    3. apply_amount(..., InputMode.FINAL_BALANCE) when people cash out
    4. settle(), optionally with a host expense
    5. clear_game() to start the next night
    """

    def __init__(
        self,
        player_repository: PlayerRepository,
        transaction_repository: TransactionRepository,
        stats_repository: StatsRepository,
        state_repository: SessionStateRepository,
        validator: Optional[PlayerInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._players_repo = player_repository
        self._transactions_repo = transaction_repository
        self._state = state_repository
        self._validator = validator or PlayerInputValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or utc_now
        self._stats = StatsAggregator(
            repository=stats_repository,
            state_repository=state_repository,
            audit_logger=self._audit_logger,
            clock=self._clock,
        )

        self.last_error: Optional[GameError] = None
        self.error_message: Optional[str] = None
        self.show_error: bool = False
        self.expense_applied: bool = False

        self._ledger = self._load()

    # ------------------------------------------------------------------
    # Initialization & persistence
    # ------------------------------------------------------------------

    def _load(self) -> Ledger:
        """Restore the current game, minting a game id on first run."""
        try:
            game_id = self._state.get_current_game_id()
            if game_id is None:
                game_id = uuid4()
                self._state.set_current_game_id(game_id)
                self._audit_logger.log_game_started(game_id=game_id)

            ledger = Ledger(
                game_id=game_id,
                players=self._players_repo.load_all(game_id),
                transactions=self._transactions_repo.load_all(game_id),
            )
            self._stats.load()
        except StorageError as e:
            self._audit_logger.log_storage_error(operation="load", error_message=str(e))
            raise
        return ledger

    def _save_game(self, operation: str) -> None:
        try:
            self._players_repo.save_all(self.game_id, self._ledger.players)
            self._transactions_repo.save_all(self.game_id, self._ledger.transactions)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                game_id=self.game_id,
            )
            raise

    # ------------------------------------------------------------------
    # State exposed to the presentation layer
    # ------------------------------------------------------------------

    @property
    def game_id(self) -> UUID:
        return self._ledger.game_id

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def players(self) -> list[Player]:
        return self._ledger.players

    @property
    def transactions(self) -> list[Transaction]:
        return self._ledger.transactions

    @property
    def original_transactions(self) -> list[Transaction]:
        return self._ledger.original_transactions

    @property
    def grand_total(self) -> float:
        return self._ledger.grand_total()

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def overall_stats(self) -> list[PlayerStat]:
        return self._stats.records

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # ------------------------------------------------------------------
    # Error slot
    # ------------------------------------------------------------------

    def _fail(self, error: GameError, operation: str) -> GameError:
        self.last_error = error
        self.error_message = error.message
        self.show_error = True

        if operation == "settle":
            self._audit_logger.log_settlement_failed(
                game_id=self.game_id,
                error_code=error.kind.value,
                message=error.message,
                amount=error.amount,
            )
        else:
            self._audit_logger.log_validation_failed(
                game_id=self.game_id,
                operation=operation,
                error_code=error.kind.value,
                message=error.message,
            )
        return error

    def _reject(self, error: GameError, operation: str) -> PlayerOperationResult:
        return PlayerOperationResult(success=False, error=self._fail(error, operation))

    def _succeed(
        self,
        player: Player,
        warnings: list[str],
        operation: str,
    ) -> PlayerOperationResult:
        if warnings:
            self._audit_logger.log_validation_warning(
                game_id=self.game_id,
                operation=operation,
                warnings=warnings,
                entity_id=player.id,
            )
        return PlayerOperationResult(success=True, player=player, warnings=warnings)

    def _clear_error(self) -> None:
        self.last_error = None
        self.error_message = None
        self.show_error = False

    def dismiss_error(self) -> None:
        """The presentation layer has shown the error."""
        self.show_error = False

    # ------------------------------------------------------------------
    # Player management
    # ------------------------------------------------------------------

    def add_player(
        self,
        name: Any,
        buy_in: Any,
        final_balance: Any,
        mode: Optional[InputMode] = None,
        note: Optional[str] = None,
    ) -> PlayerOperationResult:
        """
        Add a player, or apply an amount to an existing one.

        Without `mode`, a name that is already taken (case-insensitive) is
        rejected as DUPLICATE_NAME. With `mode`:
        - BUY_IN adds `buy_in` to the existing player's buy-in
        - FINAL_BALANCE replaces the existing player's final balance
        A name that is not taken always creates a new player.
        """
        trimmed, name_issues = self._validator.validate_name(name)
        if trimmed is None:
            return self._reject(
                GameError.validation_failure(name_issues[0].message),
                "add_player",
            )

        note_result, note = self._validator.validate_note(note)
        if not note_result.is_valid:
            return self._reject(note_result.to_error(), "add_player")

        existing = self._ledger.find_by_name(trimmed)
        if existing is not None:
            if mode is None:
                return self._reject(GameError.duplicate_name(trimmed), "add_player")
            amount = buy_in if mode == InputMode.BUY_IN else final_balance
            return self._apply(existing, amount, mode, note, "add_player")

        result, data = self._validator.validate_player(trimmed, buy_in, final_balance)
        if data is None:
            return self._reject(result.to_error(), "add_player")

        player = self._ledger.add_player(
            name=data.name,
            buy_in=data.buy_in,
            final_balance=data.final_balance,
            note=note,
            at=self._clock(),
        )
        self._audit_logger.log_player_added(
            game_id=self.game_id,
            player_id=player.id,
            name=player.name,
            buy_in=player.buy_in,
            final_balance=player.final_balance,
        )
        self._save_game("add_player")
        return self._succeed(player, result.warnings, "add_player")

    def apply_amount(
        self,
        player_id: UUID,
        amount: Any,
        mode: InputMode,
        note: Optional[str] = None,
    ) -> PlayerOperationResult:
        """Incremental edit of one player: add a buy-in or set the final balance."""
        player = self._ledger.find_by_id(player_id)
        if player is None:
            return self._reject(
                GameError.validation_failure("Player not found in this game"),
                "apply_amount",
            )
        return self._apply(player, amount, mode, note, "apply_amount")

    def _apply(
        self,
        player: Player,
        amount: Any,
        mode: InputMode,
        note: Optional[str],
        operation: str,
    ) -> PlayerOperationResult:
        note_result, note = self._validator.validate_note(note)
        if not note_result.is_valid:
            return self._reject(note_result.to_error(), operation)

        result, value = self._validator.validate_increment(amount, mode)
        if value is None:
            return self._reject(result.to_error(), operation)

        if mode == InputMode.BUY_IN:
            self._ledger.record_buy_in(player, value, note=note, at=self._clock())
            self._audit_logger.log_buy_in_recorded(
                game_id=self.game_id,
                player_id=player.id,
                name=player.name,
                amount=value,
                total_buy_in=player.buy_in,
            )
        else:
            previous = self._ledger.set_final_balance(player, value)
            self._audit_logger.log_final_balance_set(
                game_id=self.game_id,
                player_id=player.id,
                name=player.name,
                previous=previous,
                final_balance=value,
            )

        self._save_game(operation)
        return self._succeed(player, result.warnings, operation)

    def update_player(
        self,
        player_id: UUID,
        name: Any,
        buy_in: Any,
        final_balance: Any,
    ) -> PlayerOperationResult:
        """
        Full edit of one player: rename and replace both amounts.

        A changed buy-in is recorded in the history as a correcting entry
        so the history keeps summing to the buy-in.
        """
        player = self._ledger.find_by_id(player_id)
        if player is None:
            return self._reject(
                GameError.validation_failure("Player not found in this game"),
                "update_player",
            )

        result, data = self._validator.validate_player(name, buy_in, final_balance)
        if data is None:
            return self._reject(result.to_error(), "update_player")

        if self._ledger.find_by_name(data.name, exclude_id=player.id) is not None:
            return self._reject(GameError.duplicate_name(data.name), "update_player")

        old_name = player.name
        self._ledger.rename(player, data.name)
        self._ledger.replace_buy_in(player, data.buy_in, at=self._clock())
        self._ledger.set_final_balance(player, data.final_balance)

        self._audit_logger.log_player_updated(
            game_id=self.game_id,
            player_id=player.id,
            old_name=old_name,
            new_name=player.name,
            buy_in=player.buy_in,
            final_balance=player.final_balance,
        )
        self._save_game("update_player")
        return self._succeed(player, result.warnings, "update_player")

    def remove_player(self, index: int) -> PlayerOperationResult:
        """Remove the player at a position in the list."""
        if not 0 <= index < len(self._ledger):
            return self._reject(
                GameError.validation_failure(f"No player at position {index}"),
                "remove_player",
            )

        removed = self._ledger.remove_at(index)
        self._audit_logger.log_player_removed(
            game_id=self.game_id,
            player_id=removed.id,
            name=removed.name,
        )
        self._save_game("remove_player")
        return PlayerOperationResult(success=True, player=removed)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def settle(
        self,
        host_id: Optional[UUID] = None,
        expense: Any = 0.0,
    ) -> GameSettlement:
        """
        Work out who pays whom.

        FLOW:
        1. Drop blank names; nobody left → EMPTY_INPUT
        2. Settle the raw balances (the "original" settlement)
        3. If a host and a positive expense were given, share the expense
           among the winners and settle again (the "final" settlement)
        4. Publish both, replace this game's stats with the PRE-expense nets
        5. Save

        Any failure leaves the previous results cleared and nothing saved.
        """
        self._clear_error()
        self._ledger.clear_transactions()
        self.expense_applied = False
        game_id = self.game_id

        def failed(error: GameError) -> GameSettlement:
            return GameSettlement(
                success=False,
                game_id=game_id,
                host_id=host_id,
                error=self._fail(error, "settle"),
            )

        balances = self._ledger.balances()
        if not balances:
            return failed(GameError.empty_input())

        expense_result, expense_value = self._validator.validate_expense(expense)
        if expense_value is None:
            return failed(expense_result.to_error())
        if expense_result.warnings:
            self._audit_logger.log_validation_warning(
                game_id=game_id,
                operation="settle",
                warnings=expense_result.warnings,
                entity_id=host_id,
            )

        now = self._clock()
        original = settle(balances, game_id, now=now)
        if not original.success:
            return failed(original.error)

        final = original
        if host_id is not None and expense_value > 0:
            adjusted = adjust(balances, host_id, expense_value)
            if not adjusted.success:
                return failed(adjusted.error)

            final = settle(adjusted.balances, game_id, now=now)
            if not final.success:
                return failed(final.error)

            self.expense_applied = True
            shares = expense_shares(balances, expense_value)
            self._audit_logger.log_expense_applied(
                game_id=game_id,
                host_id=host_id,
                expense=expense_value,
                deductions={balances[idx].name: share for idx, share in shares.items()},
            )

        self._ledger.publish(final.transactions, original.transactions)

        try:
            self._stats.replace_game_stats(game_id, balances, date=now)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="record_stats",
                error_message=str(e),
                game_id=game_id,
            )
            raise
        self._save_game("settle")

        self._audit_logger.log_settlement_completed(
            game_id=game_id,
            player_count=len(balances),
            transaction_count=len(final.transactions),
            expense_applied=self.expense_applied,
        )
        return GameSettlement(
            success=True,
            game_id=game_id,
            transactions=final.transactions,
            original_transactions=original.transactions,
            expense_applied=self.expense_applied,
            host_id=host_id if self.expense_applied else None,
            expense=expense_value if self.expense_applied else 0.0,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear_game(self) -> UUID:
        """
        Start a new game.

        The previous game's stored players and transactions stay in the
        store under their own game id.
        """
        old_game_id = self.game_id
        new_game_id = uuid4()

        # the store must point at the new game before the session does
        try:
            self._state.set_current_game_id(new_game_id)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="clear_game",
                error_message=str(e),
                game_id=old_game_id,
            )
            raise

        self._ledger.reset(new_game_id)
        self._clear_error()
        self.expense_applied = False
        self._save_game("clear_game")

        self._audit_logger.log_game_cleared(game_id=old_game_id, new_game_id=new_game_id)
        return new_game_id

    def clear_stats(self) -> None:
        try:
            self._stats.clear()
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="clear_stats",
                error_message=str(e),
            )
            raise

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def player_history(self, player_id: UUID) -> Optional[PlayerHistory]:
        """Buy-ins (newest first) and settlement payments of one player."""
        player = self._ledger.find_by_id(player_id)
        if player is None:
            return None
        return PlayerHistory(
            player=player,
            buy_ins=sorted(player.buy_in_history, key=lambda e: e.timestamp, reverse=True),
            payments=self._ledger.payments_for(player.name),
        )

    def yearly_totals(self, year: Optional[int] = None) -> list[PlayerYearTotal]:
        return self._stats.yearly_totals(year)

    @property
    def last_error_kind(self) -> Optional[ErrorKind]:
        return self.last_error.kind if self.last_error else None


def create_key_value_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Build the configured key-value backend."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(
        storage_settings.data_path,
        write_attempts=storage_settings.write_attempts,
    )


def create_game_session(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> GameSession:
    """
    Factory function to create a fully wired GameSession.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        store: Key-value store to use instead of the configured backend
        clock: Time source, for tests

    Returns:
        GameSession restored from storage
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    configure_log_level(app_settings.effective_log_level)

    if store is None:
        store = create_key_value_store(settings)

    return GameSession(
        player_repository=KeyValuePlayerRepository(store, storage_settings.players_slot),
        transaction_repository=KeyValueTransactionRepository(
            store, storage_settings.transactions_slot
        ),
        stats_repository=KeyValueStatsRepository(store, storage_settings.stats_slot),
        state_repository=KeyValueSessionStateRepository(
            store,
            game_key=storage_settings.current_game_slot,
            year_key=storage_settings.stats_year_slot,
        ),
        validator=PlayerInputValidator(app_settings),
        audit_logger=AuditLogger(),
        clock=clock,
    )
