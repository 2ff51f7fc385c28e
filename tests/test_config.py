"""Tests for the configuration system."""

from decimal import Decimal

import pytest
import structlog
from structlog.testing import capture_logs

from revolut_ledger.config import LedgerSettings, configure_logging


class TestLedgerSettings:
    """Test suite for LedgerSettings."""

    def test_default_values(self):
        """LedgerSettings should have sensible defaults."""
        settings = LedgerSettings()

        assert settings.log_level == "INFO"
        assert settings.log_format == "console"
        assert settings.price_tolerance == Decimal("0.005")
        assert settings.implied_price_scale == 8
        assert settings.max_workers == 1

    def test_log_format_normalization(self):
        assert LedgerSettings(log_format=" JSON ").log_format == "json"

        with pytest.raises(ValueError):
            LedgerSettings(log_format="xml")

    def test_log_level_normalization(self):
        """Log levels are uppercased and validated."""
        assert LedgerSettings(log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValueError):
            LedgerSettings(log_level="verbose")

    def test_numeric_bounds(self):
        with pytest.raises(ValueError):
            LedgerSettings(price_tolerance=Decimal("-0.001"))

        with pytest.raises(ValueError):
            LedgerSettings(max_workers=0)

        with pytest.raises(ValueError):
            LedgerSettings(implied_price_scale=-1)

    def test_from_environment(self, monkeypatch):
        """Settings should load from environment variables."""
        monkeypatch.setenv("REVOLUT_LEDGER_LOG_FORMAT", "json")
        monkeypatch.setenv("REVOLUT_LEDGER_LOG_LEVEL", "warning")
        monkeypatch.setenv("REVOLUT_LEDGER_PRICE_TOLERANCE", "0.01")
        monkeypatch.setenv("REVOLUT_LEDGER_MAX_WORKERS", "4")

        settings = LedgerSettings()

        assert settings.log_format == "json"
        assert settings.log_level == "WARNING"
        assert settings.price_tolerance == Decimal("0.01")
        assert settings.max_workers == 4


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_events_below_level_are_dropped(self):
        configure_logging(LedgerSettings(log_level="WARNING"))

        with capture_logs() as entries:
            logger = structlog.get_logger()
            logger.info("hidden_event")
            logger.warning("visible_event", account_number="RVLT000123")

        assert [e["event"] for e in entries] == ["visible_event"]
        assert entries[0]["account_number"] == "RVLT000123"

    def test_json_format_renders_json(self):
        configure_logging(LedgerSettings(log_format="json"))

        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    def test_default_renders_console(self):
        configure_logging(LedgerSettings())

        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
