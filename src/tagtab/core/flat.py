"""
Flat typed streams.

The simplest use of the format: a fixed list of columns and kinds declared
once in a two-line header, followed by positional rows::

    id      name        score   seen                    avatar
    INT     STR         FLOAT   TIME                    BLOB
    1       alice       12.9    2024-01-01T12:00:00Z    AQID
    2       `bob
    smith`

Rows hold Python scalars. An empty field reads back as None, except in STR
columns where it reads back as ``""``.
"""

from collections.abc import Iterator, Sequence
from typing import Any, BinaryIO, TextIO

from ..exceptions import FieldCountMismatchError, HeaderError
from ..models.enums import ScalarKind
from ..utils.logging import get_logger
from .grammar import CR, LF
from .reader import Reader
from .scalars import check_value, decode_scalar, encode_scalar
from .writer import Writer

logger = get_logger(__name__)


def _parse_kinds(tags: Sequence[ScalarKind | str]) -> list[ScalarKind]:
    kinds = []
    for tag in tags:
        try:
            kinds.append(ScalarKind(tag))
        except ValueError as e:
            raise HeaderError(f"unknown column kind {tag!r}", details={"kind": tag}) from e
    return kinds


class FlatEncoder:
    """
    Writes positional rows under a column/kind header.

    The header is written before the first row (or by :meth:`write_header`).
    """

    def __init__(
        self,
        stream: BinaryIO | TextIO,
        columns: Sequence[str],
        kinds: Sequence[ScalarKind | str],
        *,
        delimiter: str | None = None,
        comment: str | None = None,
        encoding: str | None = None,
    ):
        self.writer = Writer(
            stream, delimiter=delimiter, comment=comment, encoding=encoding
        )
        if not columns:
            raise HeaderError("a flat stream needs at least one column")
        if len(columns) != len(kinds):
            raise HeaderError(
                f"{len(columns)} columns but {len(kinds)} kinds",
                details={"columns": len(columns), "kinds": len(kinds)},
            )
        for column in columns:
            if any(c in column for c in (self.writer.delimiter, CR, LF)):
                raise HeaderError(
                    "column names cannot contain the delimiter, CR or LF",
                    details={"column": column},
                )
        self.columns = list(columns)
        self.kinds = _parse_kinds(kinds)
        self._header_written = False

    def write_header(self) -> None:
        """Write the two header records (once)."""
        if self._header_written:
            return
        self.writer.write(self.columns)
        self.writer.write([kind.value for kind in self.kinds])
        self.writer.flush()
        self._header_written = True

    def encode(self, row: Sequence[Any]) -> None:
        """
        Write one row of Python scalars.

        Raises:
            FieldCountMismatchError: If the row width differs from the header
            ScalarTypeMismatchError: If a value does not fit its column kind
        """
        if len(row) != len(self.columns):
            raise FieldCountMismatchError(expected=len(self.columns), actual=len(row))
        for value, kind in zip(row, self.kinds):
            check_value(value, kind)

        self.write_header()
        self.writer.write([encode_scalar(value) for value in row])
        self.writer.flush()


class FlatDecoder:
    """Reads a flat typed stream; the header is read on first use."""

    def __init__(
        self,
        stream: BinaryIO | TextIO,
        *,
        delimiter: str | None = None,
        comment: str | None = None,
        encoding: str | None = None,
    ):
        self.reader = Reader(
            stream,
            delimiter=delimiter,
            comment=comment,
            fields_per_record=0,
            encoding=encoding,
        )
        self._columns: list[str] | None = None
        self._kinds: list[ScalarKind] | None = None

    def _read_header(self) -> None:
        if self._columns is not None:
            return
        columns = self.reader.read()
        if columns is None:
            raise HeaderError("stream has no column header")
        tags = self.reader.read()
        if tags is None:
            raise HeaderError("stream has no kind header")
        self._kinds = _parse_kinds(tags)
        self._columns = columns
        logger.debug("flat_header_read", columns=len(columns))

    def columns(self) -> list[str]:
        self._read_header()
        return list(self._columns)

    def kinds(self) -> list[ScalarKind]:
        self._read_header()
        return list(self._kinds)

    def decode(self) -> list[Any] | None:
        """
        Read the next row.

        Returns:
            Row values, or None at a clean end of stream
        """
        self._read_header()
        record = self.reader.read()
        if record is None:
            return None
        return [
            decode_scalar(text, kind, optional=kind != ScalarKind.STR)
            for text, kind in zip(record, self._kinds)
        ]

    def __iter__(self) -> Iterator[list[Any]]:
        while True:
            row = self.decode()
            if row is None:
                return
            yield row
