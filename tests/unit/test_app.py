"""
Unit tests for the command-line entry point.
"""
from unittest.mock import AsyncMock

import pytest

from sheetboard import app
from sheetboard.exceptions import AcquisitionError
from sheetboard.network.client import SourceFetcher
from tests.fixtures.mock_data import SAMPLE_CSV


@pytest.fixture
def cli_paths(temp_dir, monkeypatch):
    """Isolate settings and logs from the real home directory."""
    for name in ("SHEETBOARD_GID", "SHEETBOARD_SHEET_ID", "SHEETBOARD_REFRESH_INTERVAL"):
        monkeypatch.delenv(name, raising=False)
    return ["--settings", str(temp_dir / "settings.json"), "--log-file", str(temp_dir / "sheetboard.log")]


class TestParseArgs:
    def test_defaults(self):
        args = app.parse_args([])
        assert args.settings == app.DEFAULT_SETTINGS_FILE
        assert not args.once
        assert args.interval is None

    def test_overrides(self, cli_paths):
        args = app.parse_args(cli_paths + ["--sheet-id", "abc", "--gid", "5", "--interval", "30"])
        manager = app.build_settings(args)
        assert manager.settings.sheet_id == "abc"
        assert manager.settings.gid == "5"
        assert manager.settings.refresh_interval == 30.0


class TestMain:
    """Test the non-interactive modes of main()."""

    def test_show_settings(self, cli_paths, capsys):
        assert app.main(cli_paths + ["--show-settings", "--gid", "77"]) == 0
        out = capsys.readouterr().out
        assert "Sheetboard settings" in out
        assert "77" in out

    def test_invalid_setting_exits_with_2(self, cli_paths, capsys):
        assert app.main(cli_paths + ["--sheet-id", "  ", "--show-settings"]) == 2
        assert "Loading settings failed" in capsys.readouterr().out

    def test_once_prints_lines(self, cli_paths, capsys, monkeypatch):
        monkeypatch.setattr(SourceFetcher, "fetch", AsyncMock(return_value=SAMPLE_CSV))

        assert app.main(cli_paths + ["--once"]) == 0

        out = capsys.readouterr().out
        assert "Coffee" in out
        assert "Cake, chocolate" in out
        assert "3 lines" in out

    def test_once_reports_failure(self, cli_paths, capsys, monkeypatch):
        monkeypatch.setattr(SourceFetcher, "fetch", AsyncMock(side_effect=AcquisitionError()))

        assert app.main(cli_paths + ["--once"]) == 1
        assert "Failed to load data." in capsys.readouterr().out
