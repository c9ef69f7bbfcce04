"""
Pytest configuration and shared fixtures.
"""

import io
import os

import pytest

from tagtab.core.config import reset_config
from tagtab.core.reader import Reader
from tagtab.core.writer import Writer


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts from default configuration."""
    for name in [n for n in os.environ if n.upper().startswith("TAGTAB_")]:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def buffer():
    """In-memory byte stream"""
    return io.BytesIO()


@pytest.fixture
def roundtrip():
    """Write records with a Writer and read them back with a Reader."""

    def _roundtrip(records, comment=None, **reader_kwargs):
        stream = io.BytesIO()
        writer = Writer(stream, comment=comment)
        writer.write_all(records)
        stream.seek(0)
        reader_kwargs.setdefault("fields_per_record", -1)
        return Reader(stream, comment=comment, **reader_kwargs).read_all()

    return _roundtrip


@pytest.fixture
def reader_for():
    """Build a Reader over literal text."""

    def _reader_for(text: str, **kwargs):
        return Reader(io.BytesIO(text.encode("utf-8")), **kwargs)

    return _reader_for


@pytest.fixture
def tricky_strings():
    """Field texts exercising every quoting branch"""
    return [
        "",
        "plain",
        "with\ttab",
        "with\nnewline",
        "with\r\ncrlf",
        "lone\rcr",
        "`",
        "``",
        "has `backtick`",
        "^",
        "^^",
        "^leading caret",
        "trailing caret^",
        "trailing caret with tick`^",
        "^1^^`foo\nbar`",
        "^^`^1^^2^`^3^",
        "mid^dle",
        "*",
        "@",
        "unicode ✓ ünïcødé",
    ]
