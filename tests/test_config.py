"""Tests for settings and logging setup."""

import pytest
from pydantic import ValidationError

from crowdfund_sync.config import DashboardSettings
from crowdfund_sync.logging_config import configure_logging


class TestDashboardSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CROWDFUND_REFRESH_INTERVAL_SECONDS", raising=False)
        settings = DashboardSettings(_env_file=None)

        assert settings.refresh_interval_seconds == 15.0
        assert settings.deadline_watch_interval_seconds == 1.0
        assert settings.page_size == 9
        assert settings.currency_symbol == "SOL"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CROWDFUND_LEDGER_URL", "http://gateway:9000")
        monkeypatch.setenv("CROWDFUND_PAGE_SIZE", "12")

        settings = DashboardSettings(_env_file=None)

        assert settings.ledger_url == "http://gateway:9000"
        assert settings.page_size == 12

    def test_watch_must_be_faster_than_refresh(self):
        with pytest.raises(ValidationError):
            DashboardSettings(_env_file=None, refresh_interval_seconds=1, deadline_watch_interval_seconds=5)

    @pytest.mark.parametrize(
        "field", ["fetch_timeout_seconds", "deadline_watch_interval_seconds", "page_size"]
    )
    def test_positive_values(self, field):
        with pytest.raises(ValidationError):
            DashboardSettings(_env_file=None, **{field: 0})


class TestConfigureLogging:

    @pytest.mark.parametrize("json", [False, True])
    def test_configures(self, json):
        configure_logging("debug", json=json)
        configure_logging("INFO")
