"""Tests for cli.py -- Click CLI interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from highlight_sync.cli import main
from highlight_sync.concurrency import ImportLock
from highlight_sync.store import JsonLibraryStore

MOBY_DICK = (
    "Moby Dick (Melville, Herman)\n- Your Highlight on page 10\n\nCall me Ishmael.\n"
    "==========\n"
    "Moby Dick (Melville, Herman)\n- Your Highlight on page 20\n\nIt is a way I have.\n"
    "==========\n"
)


@pytest.fixture(autouse=True)
def _use_tmp_dirs(tmp_path, monkeypatch):
    """Point all directory config to tmp_path."""
    for var in ("LIBRARY_DIR", "LOG_DIR", "LOCK_DIR"):
        monkeypatch.setenv(var, str(tmp_path / var.lower()))
    for var in ("METADATA_LOOKUP", "DRY_RUN", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _no_env_file(monkeypatch):
    """Prevent CLI from loading the project .env file."""
    monkeypatch.setattr("highlight_sync.cli.find_env_file", lambda: None)


@pytest.fixture
def clippings(tmp_path):
    path = tmp_path / "My Clippings.txt"
    # Kindle writes a BOM at the start of the file
    path.write_text("\ufeff" + MOBY_DICK, encoding="utf-8")
    return path


class TestHelpOutput:
    def test_help_flag(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Import ebook highlights" in result.output
        assert "--library-dir" in result.output
        assert "--dry-run" in result.output
        assert "--no-lookup" in result.output


class TestImport:
    def test_imports_into_library_dir(self, clippings, tmp_path):
        lib = tmp_path / "mylib"
        result = CliRunner().invoke(main, [str(clippings), "-l", str(lib), "--no-lookup"])
        assert result.exit_code == 0, result.output + str(result.exception or "")
        assert "Books scanned:  1" in result.output
        assert "New highlights: +2" in result.output
        assert "Moby Dick" in result.output

        snap = JsonLibraryStore(lib).load()
        assert snap.books[0].title == "Moby Dick"
        assert snap.books[0].author == "Herman Melville"

    def test_reimport_reports_nothing_new(self, clippings, tmp_path):
        lib = tmp_path / "mylib"
        runner = CliRunner()
        runner.invoke(main, [str(clippings), "-l", str(lib), "--no-lookup"])
        result = runner.invoke(main, [str(clippings), "-l", str(lib), "--no-lookup"])
        assert result.exit_code == 0
        assert "No new highlights found in this batch." in result.output

    def test_json_output(self, clippings, tmp_path):
        result = CliRunner().invoke(
            main, [str(clippings), "-l", str(tmp_path / "lib"), "--no-lookup", "--json-output"],
        )
        assert result.exit_code == 0
        payload = json.loads(result.output[result.output.index("{"):])
        assert payload == {
            "totalBooksProcessed": 1,
            "totalHighlightsAdded": 2,
            "updates": [{"title": "Moby Dick", "newCount": 2}],
        }

    def test_dry_run_does_not_write(self, clippings, tmp_path):
        lib = tmp_path / "lib"
        result = CliRunner().invoke(main, [str(clippings), "-l", str(lib), "--no-lookup", "--dry-run"])
        assert result.exit_code == 0
        assert "dry run" in result.output
        assert not (lib / "library.json").exists()

    def test_unrecognized_file_fails(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("nothing importable here")
        result = CliRunner().invoke(main, [str(notes), "--no-lookup"])
        assert result.exit_code == 1
        assert "No highlights detected in that file." in result.output

    @patch("highlight_sync.cli.import_text")
    def test_lookup_enabled_by_default(self, mock_import, clippings):
        CliRunner().invoke(main, [str(clippings)])
        assert mock_import.call_args.kwargs["lookup"] is not None

    @patch("highlight_sync.cli.import_text")
    def test_no_lookup_flag(self, mock_import, clippings):
        CliRunner().invoke(main, [str(clippings), "--no-lookup"])
        assert mock_import.call_args.kwargs["lookup"] is None


class TestConfigResolution:
    def test_dry_run_from_env(self, clippings, tmp_path, monkeypatch):
        lib = tmp_path / "lib"
        monkeypatch.setenv("DRY_RUN", "true")
        result = CliRunner().invoke(main, [str(clippings), "-l", str(lib), "--no-lookup"])
        assert result.exit_code == 0
        assert "dry run" in result.output
        assert not (lib / "library.json").exists()

    def test_env_file_settings_applied(self, clippings, tmp_path, monkeypatch):
        lib = tmp_path / "from-env-file"
        monkeypatch.delenv("LIBRARY_DIR")
        env_file = tmp_path / "sync.env"
        env_file.write_text(f'LIBRARY_DIR="{lib}"\nMETADATA_LOOKUP=false\n')
        result = CliRunner().invoke(main, [str(clippings), "-c", str(env_file)])
        assert result.exit_code == 0, result.output
        assert JsonLibraryStore(lib).load().books[0].title == "Moby Dick"

    def test_env_var_beats_env_file(self, clippings, tmp_path):
        env_file = tmp_path / "sync.env"
        env_file.write_text(f"LIBRARY_DIR={tmp_path / 'ignored'}\nMETADATA_LOOKUP=false\n")
        result = CliRunner().invoke(main, [str(clippings), "-c", str(env_file)])
        assert result.exit_code == 0, result.output
        assert not (tmp_path / "ignored").exists()
        assert (tmp_path / "library_dir" / "library.json").exists()

    def test_unknown_log_level_fails(self, clippings, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        result = CliRunner().invoke(main, [str(clippings), "--no-lookup"])
        assert result.exit_code == 1
        assert "Unknown log level" in result.output


class TestLocking:
    def test_locked_library_fails(self, clippings, tmp_path):
        lib = tmp_path / "lib"
        with ImportLock(tmp_path / "lock_dir", lib):
            result = CliRunner().invoke(main, [str(clippings), "-l", str(lib), "--no-lookup"])
        assert result.exit_code == 1
        assert "Another import is already running" in result.output
        assert not (lib / "library.json").exists()

    def test_other_library_not_blocked(self, clippings, tmp_path):
        with ImportLock(tmp_path / "lock_dir", tmp_path / "other"):
            result = CliRunner().invoke(
                main, [str(clippings), "-l", str(tmp_path / "lib"), "--no-lookup"],
            )
        assert result.exit_code == 0, result.output
