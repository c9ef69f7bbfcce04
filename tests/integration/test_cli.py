"""
Integration tests for the command-line interface.

Tests cover:
- version
- records, with and without formats
- show for typed streams
- check in typed and raw modes
"""

import io
from dataclasses import dataclass

import pytest
from typer.testing import CliRunner

from tagtab import Encoder, __version__
from tagtab.cli import app
from tagtab.utils.logging import reset_logging

runner = CliRunner()


@dataclass
class City:
    name: str = ""
    population: int = 0


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch):
    """Wide console output; logging is configured globally by the CLI."""
    monkeypatch.setenv("COLUMNS", "200")
    yield
    reset_logging()


@pytest.fixture
def typed_file(tmp_path):
    buffer = io.BytesIO()
    Encoder(buffer).encode_all([City("Oslo", 700000), City("Bergen", 285000)])
    path = tmp_path / "cities.tt"
    path.write_bytes(buffer.getvalue())
    return path


@pytest.fixture
def raw_file(tmp_path):
    path = tmp_path / "raw.tt"
    path.write_bytes(b"#note\nid\t`two\nlines`\n1\n")
    return path


@pytest.mark.integration
class TestVersion:
    """Tests for the version command."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


@pytest.mark.integration
class TestRecords:
    """Tests for the records command."""

    def test_lists_records(self, raw_file):
        result = runner.invoke(app, ["records", str(raw_file), "--comment", "#"])

        assert result.exit_code == 0
        assert "two\\nlines" in result.stdout
        assert "#note" not in result.stdout
        assert "2 records" in result.stdout

    def test_comment_line_is_data_without_comment_option(self, raw_file):
        result = runner.invoke(app, ["records", str(raw_file)])

        assert result.exit_code == 0
        assert "3 records" in result.stdout

    def test_formats(self, raw_file):
        result = runner.invoke(app, ["records", str(raw_file), "-c", "#", "--formats"])

        assert result.exit_code == 0
        assert "`two\\nlines`" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["records", str(tmp_path / "absent.tt")])

        assert result.exit_code != 0

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.tt"
        path.write_bytes(b"ok\nab`c\n")

        result = runner.invoke(app, ["records", str(path)])

        assert result.exit_code == 1
        assert ":2:3" in result.stdout


@pytest.mark.integration
class TestShow:
    """Tests for the show command."""

    def test_table_per_type(self, typed_file):
        result = runner.invoke(app, ["show", str(typed_file)])

        assert result.exit_code == 0
        assert "City" in result.stdout
        assert "Bergen" in result.stdout

    def test_untyped_file(self, tmp_path):
        path = tmp_path / "empty.tt"
        path.write_bytes(b"")

        result = runner.invoke(app, ["show", str(path)])

        assert result.exit_code == 0
        assert "No typed rows" in result.stdout


@pytest.mark.integration
class TestCheck:
    """Tests for the check command."""

    def test_valid_typed_stream(self, typed_file):
        result = runner.invoke(app, ["check", str(typed_file)])

        assert result.exit_code == 0
        assert "2 rows, 1 types" in result.stdout

    def test_raw_mode(self, raw_file):
        result = runner.invoke(app, ["check", str(raw_file), "--raw", "-c", "#"])

        assert result.exit_code == 0
        assert "2 rows" in result.stdout

    def test_data_before_registration(self, raw_file):
        result = runner.invoke(app, ["check", str(raw_file), "-c", "#"])

        assert result.exit_code == 1
        assert "before any type" in result.stdout

    def test_tab_alias(self, tmp_path):
        path = tmp_path / "tabbed.tt"
        path.write_bytes(b"a\tb\n")

        result = runner.invoke(app, ["check", str(path), "--raw", "-d", "tab"])

        assert result.exit_code == 0
        assert "1 rows" in result.stdout


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
