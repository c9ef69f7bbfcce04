"""
Record reader for tagged-tab streams.

A Reader is a cursor over one byte stream (text streams are accepted too).
It decodes runes incrementally, applies the quoting grammar and the
stream-level rules (comment lines, blank lines, field-count policy) and hands
back one record at a time.
"""

import codecs
import io
from collections.abc import Iterator
from typing import BinaryIO, TextIO

from ..exceptions import ConfigurationError, FieldCountMismatchError, MalformedQuoteError
from ..models.schemas import FieldFormat
from ..utils.logging import get_logger
from .config import check_rune, get_config
from .grammar import BACKTICK, CARET, CR, LF

logger = get_logger(__name__)

CHUNK_SIZE = 8192

# Returned by the scanner for blank and comment lines.
_SKIP = object()

_PLAIN = FieldFormat.plain()


class RuneSource:
    """
    Character cursor over a byte or text stream.

    Tracks the 1-based line and the column of the last consumed rune so that
    parse errors can point at where they were detected.
    """

    def __init__(self, stream: BinaryIO | TextIO, encoding: str = "utf-8"):
        self._stream = stream
        self._text_mode = isinstance(stream, io.TextIOBase)
        self._decoder = None if self._text_mode else codecs.getincrementaldecoder(encoding)()
        # Must return as soon as any data is available, not once CHUNK_SIZE is reached
        if self._text_mode:
            self._read_chunk = stream.readline
        else:
            self._read_chunk = getattr(stream, "read1", stream.read)
        self._buf = ""
        self._pos = 0
        self._eof = False
        self.line = 1
        self.column = 0

    def _fill(self) -> bool:
        """Make sure at least one rune is buffered; False at end of stream."""
        while self._pos >= len(self._buf):
            if self._eof:
                return False
            chunk = self._read_chunk(CHUNK_SIZE)
            if not chunk:
                self._eof = True
                self._buf = "" if self._decoder is None else self._decoder.decode(b"", final=True)
            else:
                self._buf = chunk if self._decoder is None else self._decoder.decode(chunk)
            self._pos = 0
        return True

    def _consume(self, text: str) -> None:
        self._pos += len(text)
        newlines = text.count(LF)
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind(LF) - 1
        else:
            self.column += len(text)

    def next(self) -> str | None:
        """Consume one rune; None at end of stream."""
        if not self._fill():
            return None
        c = self._buf[self._pos]
        self._consume(c)
        return c

    def peek(self) -> str | None:
        """Look at the next rune without consuming it."""
        if not self._fill():
            return None
        return self._buf[self._pos]

    def read_until(self, terminator: str) -> str | None:
        """
        Consume through the next occurrence of ``terminator``.

        Returns:
            Text before the terminator, or None if the stream ends first
        """
        acc = ""
        while self._fill():
            chunk = self._buf[self._pos:]
            start = max(0, len(acc) - len(terminator) + 1)
            offset = len(acc)
            acc += chunk
            idx = acc.find(terminator, start)
            if idx >= 0:
                self._consume(chunk[: idx + len(terminator) - offset])
                return acc[:idx]
            self._consume(chunk)
        return None


class Reader:
    """
    Reads records from a tagged-tab stream.

    Args:
        stream: Readable byte (or text) stream
        delimiter: Field delimiter (defaults to the configured one, a tab)
        comment: Comment character at the start of a line; ``""`` disables
        fields_per_record: Negative for no check, 0 to fix the count from the
            first record read, positive to require that count
        encoding: Text encoding of a byte stream

    Example:
        reader = Reader(io.BytesIO(b"a\\tb\\n`c\\td`\\te\\n"))
        reader.read_all()  # [["a", "b"], ["c\\td", "e"]]
    """

    def __init__(
        self,
        stream: BinaryIO | TextIO,
        *,
        delimiter: str | None = None,
        comment: str | None = None,
        fields_per_record: int | None = None,
        encoding: str | None = None,
    ):
        config = get_config()
        self.delimiter = check_rune(
            config.delimiter if delimiter is None else delimiter, "delimiter"
        )
        comment = config.comment if comment is None else comment
        self.comment = check_rune(comment, "comment") if comment else None
        if self.comment == self.delimiter:
            raise ConfigurationError(
                "comment character must differ from the delimiter", field="comment", value=comment
            )
        self.fields_per_record = (
            config.fields_per_record if fields_per_record is None else fields_per_record
        )
        self._source = RuneSource(stream, encoding or config.encoding)

    @property
    def line(self) -> int:
        """Line the reader is currently positioned on (1-based)."""
        return self._source.line

    def read(self) -> list[str] | None:
        """
        Read one record.

        Returns:
            The record's fields, or None at a clean end of stream

        Raises:
            MalformedQuoteError: On a quoting error
            FieldCountMismatchError: If the record breaks the field-count policy
        """
        parsed = self.read_with_format()
        return None if parsed is None else parsed[0]

    def read_with_format(self) -> tuple[list[str], list[FieldFormat]] | None:
        """
        Read one record along with the format each field was written in.

        Returns:
            ``(values, formats)``, or None at a clean end of stream
        """
        while True:
            start_line = self._source.line
            parsed = self._parse_record()
            if parsed is not _SKIP:
                break
        if parsed is None:
            return None

        values, formats = parsed
        self._check_field_count(values, start_line)
        return values, formats

    def read_all(self) -> list[list[str]]:
        """
        Read all remaining records.

        End of stream is not an error; any other error aborts the whole read.
        """
        return list(self)

    def __iter__(self) -> Iterator[list[str]]:
        while True:
            record = self.read()
            if record is None:
                return
            yield record

    def _check_field_count(self, values: list[str], line: int) -> None:
        if self.fields_per_record > 0:
            if len(values) != self.fields_per_record:
                logger.warning(
                    "field_count_mismatch",
                    expected=self.fields_per_record,
                    actual=len(values),
                    line=line,
                )
                raise FieldCountMismatchError(
                    expected=self.fields_per_record, actual=len(values), record=values, line=line
                )
        elif self.fields_per_record == 0:
            self.fields_per_record = len(values)

    def _parse_record(self):
        src = self._source
        values: list[str] = []
        formats: list[FieldFormat] = []
        buf: list[str] = []

        while True:
            c = src.next()

            if c is None:
                if not values and not buf:
                    return None
                values.append("".join(buf))
                formats.append(_PLAIN)
                return values, formats

            if c == LF:
                if not values and not buf:
                    return _SKIP
                values.append("".join(buf))
                formats.append(_PLAIN)
                return values, formats

            if c == self.comment and not values and not buf:
                src.read_until(LF)
                return _SKIP

            if c == self.delimiter:
                values.append("".join(buf))
                formats.append(_PLAIN)
                buf = []
            elif c == CR:
                if src.peek() != LF:
                    buf.append(c)
            elif c == BACKTICK or c == CARET:
                if buf:
                    raise MalformedQuoteError(
                        f"extraneous {c!r} in field", line=src.line, column=src.column
                    )
                text, fmt = self._read_quoted(c)
                values.append(text)
                formats.append(fmt)
                if self._close_quoted_field():
                    return values, formats
            else:
                buf.append(c)

    def _read_quoted(self, opener: str) -> tuple[str, FieldFormat]:
        src = self._source
        line, column = src.line, src.column

        if opener == BACKTICK:
            text = src.read_until(BACKTICK)
            if text is None:
                raise MalformedQuoteError("backtick field is not closed", line=line, column=column)
            return text, FieldFormat.backtick()

        tag = src.read_until(CARET)
        if tag is None:
            raise MalformedQuoteError("caret id is not closed", line=line, column=column)
        text = src.read_until(f"{CARET}{tag}{CARET}")
        if text is None:
            raise MalformedQuoteError(
                f"caret field is not closed by ^{tag}^", line=line, column=column
            )
        return text, FieldFormat.caret(tag)

    def _close_quoted_field(self) -> bool:
        """Consume what follows a closing quote; True when it ended the record."""
        src = self._source
        c = src.next()
        if c is None or c == LF:
            return True
        if c == self.delimiter:
            return False
        if c == CR and src.peek() == LF:
            src.next()
            return True
        raise MalformedQuoteError(
            f"unexpected {c!r} after closing quote", line=src.line, column=src.column
        )
