"""Tests für das Konfigurationssystem."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.defaults import default_calendar_config, default_time_picker
from config.manager import ConfigManager
from config.schema import CacheConfig, CalendarConfig, LogLevel, TimePickerConfig


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_calendar_config(self):
        config = default_calendar_config()
        assert config.default_timezone == "UTC"
        assert config.payment_soon_days == 3
        assert config.exception_margin_days == 7
        assert config.cache.enabled
        assert config.cache_ttl == 300
        assert config.log_level == LogLevel.INFO

    def test_default_time_picker(self):
        tp = default_time_picker()
        assert (tp.start_hour, tp.end_hour, tp.step_minutes) == (6, 21, 30)
        assert tp.default_duration_minutes == 60

    def test_ttl_zero_means_no_expiry(self):
        config = CalendarConfig(cache=CacheConfig(ttl_seconds=0))
        assert config.cache_ttl is None


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            CalendarConfig(default_timezone="Mars/Olympus")

    def test_time_picker_range(self):
        with pytest.raises(ValidationError):
            TimePickerConfig(start_hour=20, end_hour=8)

    def test_negative_soon_days_rejected(self):
        with pytest.raises(ValidationError):
            CalendarConfig(payment_soon_days=-1)

    def test_admin_emails_normalized(self):
        config = CalendarConfig(admin_emails=[" Lehrer@Example.COM "])
        assert config.admin_emails == ["lehrer@example.com"]
        assert config.is_admin("LEHRER@example.com")
        assert not config.is_admin("ana@example.com")
        assert not config.is_admin(None)


# ─── CONFIG-MANAGER ───────────────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern und wieder laden ergibt identische Werte."""
        config = default_calendar_config().model_copy(update={"default_timezone": "Europe/Berlin"})
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "calendar_config.yaml"
        mgr.save(config)
        loaded = mgr.load()
        assert loaded == config

    def test_saved_file_has_comments(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "calendar_config.yaml"
        mgr.save(default_calendar_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert "# Kurskalender" in text
        assert "─── Cache ───" in text
        assert "Sekunden" in text

    def test_first_run_check_no_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "nonexistent.yaml"
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "calendar_config.yaml"
        mgr.save(default_calendar_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_or_default_without_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "not_there.yaml"
        assert mgr.load_or_default() == default_calendar_config()

    def test_invalid_file_raises_value_error(self, tmp_path: Path):
        target = tmp_path / "bad.yaml"
        target.write_text("default_timezone: Mars/Olympus\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            ConfigManager().load(target)

    def test_partial_file_uses_defaults(self, tmp_path: Path):
        target = tmp_path / "partial.yaml"
        target.write_text("payment_soon_days: 5\n", encoding="utf-8")
        config = ConfigManager().load(target)
        assert config.payment_soon_days == 5
        assert config.exception_margin_days == 7
