"""Tests for DashboardSettings."""

import pytest
from pydantic import ValidationError

from sspa_dashboard.config import DashboardSettings


class TestDashboardSettings:
    def test_defaults(self):
        settings = DashboardSettings()

        assert settings.terminal_command == "ping localhost"
        assert settings.terminal_history == 47
        assert settings.ssh_history == 20
        assert settings.channel_capacity == 128

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SSPA_DASHBOARD_SSH_COMMAND", "ssh -tt pi@10.0.0.5 sspa -v")
        monkeypatch.setenv("SSPA_DASHBOARD_REFRESH_INTERVAL", "0.1")
        monkeypatch.setenv("SSPA_DASHBOARD_MOUSE_CAPTURE", "false")

        settings = DashboardSettings()

        assert settings.ssh_command == "ssh -tt pi@10.0.0.5 sspa -v"
        assert settings.refresh_interval == 0.1
        assert settings.mouse_capture is False

    @pytest.mark.parametrize(
        "field", ["terminal_history", "ssh_history", "channel_capacity"]
    )
    def test_sizes_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            DashboardSettings(**{field: 0})

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            DashboardSettings(log_level="CHATTY")
