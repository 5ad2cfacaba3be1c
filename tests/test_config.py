"""
Tests for settings and the audit logger.
"""

import pytest
from uuid import uuid4

from poker_dues.audit import AuditLogger
from poker_dues.config import AppSettings, StorageSettings, get_settings, validate_all_settings
from poker_dues.models.audit import AuditEventType


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_storage_defaults(self, monkeypatch):
        """Test the default backend and slot names."""
        monkeypatch.delenv("POKER_DUES_STORAGE_BACKEND", raising=False)
        settings = StorageSettings()
        assert settings.backend == "json"
        assert settings.players_slot == "participants"
        assert settings.current_game_slot == "current_game_id"

    def test_storage_from_env(self, monkeypatch, tmp_path):
        """Test env vars override defaults."""
        monkeypatch.setenv("POKER_DUES_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("POKER_DUES_STORAGE_DATA_DIR", str(tmp_path))
        settings = StorageSettings()
        assert settings.backend == "memory"
        assert settings.data_path == tmp_path

    def test_unknown_backend(self, monkeypatch):
        """Test only known backends are accepted."""
        monkeypatch.setenv("POKER_DUES_STORAGE_BACKEND", "sheets")
        with pytest.raises(ValueError):
            StorageSettings()

    def test_data_dir_cannot_be_a_file(self, tmp_path):
        """Test a file path is rejected as data dir."""
        path = tmp_path / "file.json"
        path.write_text("{}")
        with pytest.raises(ValueError):
            StorageSettings(data_dir=str(path))

    def test_log_level_is_normalized(self):
        """Test log levels are upper-cased and checked."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_debug_mode_forces_debug_logging(self, monkeypatch):
        """Test the debug switch overrides the configured log level."""
        assert AppSettings(log_level="WARNING").effective_log_level == "WARNING"
        assert AppSettings(debug_mode=True, log_level="WARNING").effective_log_level == "DEBUG"

        monkeypatch.setenv("POKER_DUES_DEBUG_MODE", "true")
        assert AppSettings().effective_log_level == "DEBUG"

    def test_validate_all_settings(self, monkeypatch):
        """Test the validation report flags a broken section."""
        monkeypatch.setenv("POKER_DUES_LOG_LEVEL", "chatty")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["storage"] is True
        assert results["app"] is False
        assert "app_error" in results


class TestAuditLogger:
    """Tests for the in-memory audit trail."""

    def test_events_are_kept_in_order(self):
        """Test logged events can be inspected."""
        audit_logger = AuditLogger()
        game_id = uuid4()
        audit_logger.log_game_started(game_id=game_id)
        audit_logger.log_player_removed(game_id=game_id, player_id=uuid4(), name="Bob")

        events = audit_logger.recent_events
        assert [e.event_type for e in events] == [
            AuditEventType.GAME_STARTED,
            AuditEventType.PLAYER_REMOVED,
        ]
        assert all(e.game_id == game_id for e in events)

    def test_buffer_is_bounded(self):
        """Test only the most recent events are kept."""
        audit_logger = AuditLogger(keep_last=3)
        for count in range(5):
            audit_logger.log_stats_cleared(record_count=count)
        assert [e.details["record_count"] for e in audit_logger.recent_events] == [2, 3, 4]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
