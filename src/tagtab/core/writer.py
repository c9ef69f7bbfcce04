"""
Record writer for tagged-tab streams.

Records are buffered as encoded lines and only reach the underlying stream
on :meth:`Writer.flush`. A failure during flush leaves the stream in an
undefined state; nothing is retried.
"""

import io
from collections.abc import Iterable, Sequence
from typing import BinaryIO, TextIO

from ..exceptions import EmptyRecordError, MalformedQuoteError
from ..models.schemas import FieldFormat
from ..utils.logging import get_logger
from .config import check_rune, get_config
from .grammar import BACKTICK, LF, check_format, choose_caret_id, choose_format, quote
from .registry import REFERENCE_MARKER, REGISTER_MARKER

logger = get_logger(__name__)

FormatSpec = FieldFormat | str | None


class Writer:
    """
    Writes records to a tagged-tab stream.

    Args:
        stream: Writable byte (or text) stream
        delimiter: Field delimiter (defaults to the configured one, a tab)
        comment: Comment character of the reading side; a first field that
            starts with it is quoted so the record is not read as a comment
        encoding: Text encoding used for byte streams

    Example:
        with Writer(buffer) as writer:
            writer.write(["id", "note"])
            writer.write(["1", "multi\\nline"])
    """

    def __init__(
        self,
        stream: BinaryIO | TextIO,
        *,
        delimiter: str | None = None,
        comment: str | None = None,
        encoding: str | None = None,
    ):
        config = get_config()
        self.delimiter = check_rune(
            config.delimiter if delimiter is None else delimiter, "delimiter"
        )
        comment = config.comment if comment is None else comment
        self.comment = check_rune(comment, "comment") if comment else None
        self.encoding = encoding or config.encoding
        self._stream = stream
        self._text_mode = isinstance(stream, io.TextIOBase)
        self._pending: list[str] = []

    def write(self, record: Sequence[str]) -> None:
        """
        Buffer one record, choosing each field's quoting automatically.

        Raises:
            EmptyRecordError: If the record has no fields
            QuoteIdExhaustedError: If a field cannot be caret-quoted
        """
        self.write_with_format(record, None)

    def write_with_format(
        self, record: Sequence[str], formats: Sequence[FormatSpec] | None
    ) -> None:
        """
        Buffer one record with caller-chosen formats.

        Args:
            record: Field strings
            formats: One entry per field: a FieldFormat, its string rendering
                (``""``, a backtick, ``^id^``), or None for automatic choice

        Raises:
            EmptyRecordError: If the record has no fields
            MalformedQuoteError: If a forced format cannot carry its field
        """
        if not record:
            raise EmptyRecordError()
        if formats is None:
            formats = [None] * len(record)
        elif len(formats) != len(record):
            raise MalformedQuoteError(
                f"got {len(formats)} formats for a record of {len(record)} fields",
                details={"formats": len(formats), "fields": len(record)},
            )

        fields = []
        for i, (text, fmt) in enumerate(zip(record, formats)):
            if isinstance(fmt, str):
                try:
                    fmt = FieldFormat.parse(fmt)
                except ValueError as e:
                    raise MalformedQuoteError(str(e), details={"format": fmt}) from e
            hides_as_comment = (
                i == 0 and self.comment is not None and text.startswith(self.comment)
            )
            if fmt is None:
                fmt = choose_format(text, self.delimiter)
                if hides_as_comment and fmt.is_plain:
                    # A backticked marker would read back as a control row
                    if text in (REGISTER_MARKER, REFERENCE_MARKER):
                        fmt = FieldFormat.caret(choose_caret_id(text))
                    else:
                        fmt = FieldFormat.backtick()
            else:
                check_format(text, fmt, self.delimiter)
                if hides_as_comment and fmt.is_plain:
                    raise MalformedQuoteError(
                        "a plain first field starting with the comment character "
                        "reads back as a comment",
                        details={"text": text},
                    )
            fields.append(quote(text, fmt))

        # A lone empty field would read back as a blank line.
        if fields == [""]:
            if formats[0] is not None:
                raise MalformedQuoteError("a lone empty plain field reads back as a blank line")
            fields = [BACKTICK * 2]

        self._pending.append(self.delimiter.join(fields) + LF)

    def write_all(self, records: Iterable[Sequence[str]]) -> None:
        """Write every record, then flush."""
        for record in records:
            self.write(record)
        self.flush()

    def flush(self) -> None:
        """Push buffered records to the underlying stream."""
        if not self._pending:
            return
        data = "".join(self._pending)
        count = len(self._pending)
        self._pending.clear()

        if self._text_mode:
            self._stream.write(data)
        else:
            self._stream.write(data.encode(self.encoding))
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()

        logger.debug("records_flushed", records=count, chars=len(data))

    @property
    def pending(self) -> int:
        """Number of records buffered but not yet flushed."""
        return len(self._pending)

    def __enter__(self) -> "Writer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.flush()
