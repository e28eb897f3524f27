"""Tests für die Kommandozeile (click CliRunner, ohne echte Konfiguration)."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from main import cli


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """Arbeitsverzeichnis mit erzeugtem Demo-Datensatz (Januar 2024)."""
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["generate", "--seed", "1", "--month", "2024-01"])
    assert result.exit_code == 0, result.output
    return tmp_path


class TestSetup:
    def test_init_writes_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["init", "--timezone", "Europe/Berlin"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "config" / "calendar_config.yaml").exists()

        again = CliRunner().invoke(cli, ["init"])
        assert "existiert bereits" in again.output

    def test_init_rejects_unknown_timezone(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["init", "--timezone", "Mars/Olympus"])
        assert result.exit_code != 0

    def test_config_show_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "Standardwerte" in result.output


class TestDataCommands:
    def test_generate_writes_file(self, workdir: Path):
        assert (workdir / "data" / "classes.json").exists()

    def test_validate_ok(self, workdir: Path):
        result = CliRunner().invoke(cli, ["validate"])
        assert result.exit_code == 0, result.output

    def test_validate_missing_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["validate", "--data", "fehlt.json"])
        assert result.exit_code == 1


class TestCalendarCommands:
    def test_calendar_month(self, workdir: Path):
        result = CliRunner().invoke(
            cli, ["calendar", "--month", "2024-01", "--today", "2024-01-10", "--day", "2024-01-15"]
        )
        assert result.exit_code == 0, result.output
        assert "2024-01 (UTC)" in result.output

    def test_calendar_bad_month(self, workdir: Path):
        result = CliRunner().invoke(cli, ["calendar", "--month", "Januar"])
        assert result.exit_code != 0

    def test_payments(self, workdir: Path):
        result = CliRunner().invoke(cli, ["payments", "--month", "2024-01", "--today", "2024-01-10"])
        assert result.exit_code == 0, result.output
        assert "Zahlungen 2024-01" in result.output


class TestExceptionCommands:
    def test_cancel_list_delete(self, workdir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["exception", "cancel", "class-001", "2024-01-22",
                                     "--reason", "Krank"])
        assert result.exit_code == 0, result.output

        listed = runner.invoke(cli, ["exception", "list", "class-001"])
        assert "Krank" in listed.output

    def test_reschedule_default_end(self, workdir: Path):
        result = CliRunner().invoke(cli, [
            "exception", "reschedule", "class-002", "2024-01-23", "2024-01-24",
            "--start", "4:00 PM",
        ])
        assert result.exit_code == 0, result.output
        assert "16:00–17:00" in result.output

    def test_student_may_not_cancel(self, workdir: Path):
        result = CliRunner().invoke(cli, ["exception", "cancel", "class-001", "2024-01-29",
                                          "--by", "ana@example.com"])
        assert result.exit_code == 1
        assert "Abgelehnt" in result.output

    def test_unknown_class(self, workdir: Path):
        result = CliRunner().invoke(cli, ["exception", "list", "class-999"])
        assert result.exit_code == 1
