"""Tests for the sspa-dashboard CLI."""

from typer.testing import CliRunner

from sspa_dashboard.cli import app, configure_logging

runner = CliRunner()


class TestPanelsCommand:
    def test_prints_transition_table(self):
        result = runner.invoke(app, ["panels"], env={"COLUMNS": "200"})

        assert result.exit_code == 0
        assert "EXT *" in result.output
        assert "EXT_PRESETS" in result.output
        assert "HARD_RESET" in result.output


class TestRunCommand:
    def test_spawn_failure_exits_with_error(self, tmp_path):
        result = runner.invoke(
            app,
            [
                "run",
                "--terminal-command",
                "definitely-not-a-real-program-xyz",
                "--log-file",
                str(tmp_path / "logs" / "dashboard.log"),
            ],
            env={"COLUMNS": "200"},
        )

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "definitely-not-a-real-program-xyz" in result.output

    def test_invalid_refresh_exits_with_error(self, tmp_path):
        result = runner.invoke(
            app,
            ["run", "--refresh", "0", "--log-file", str(tmp_path / "dashboard.log")],
            env={"COLUMNS": "200"},
        )

        assert result.exit_code == 1
        assert "ERROR: Invalid refresh_interval" in result.output

    def test_unknown_log_level_exits_with_error(self, tmp_path):
        result = runner.invoke(
            app,
            [
                "run",
                "--log-level",
                "chatty",
                "--log-file",
                str(tmp_path / "dashboard.log"),
            ],
            env={"COLUMNS": "200"},
        )

        assert result.exit_code == 1
        assert "ERROR: Invalid log_level" in result.output


class TestConfigureLogging:
    def test_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "nested" / "dir" / "dashboard.log"

        configure_logging(log_file, "debug")

        assert log_file.parent.is_dir()
