"""
Quoting grammar of the tagged-tab format.

Each field is written in one of three forms:

- plain: the text itself, when it holds no delimiter, CR, LF, backtick or
  caret (the reader rejects a quote character in the middle of a field);
- backtick: ```text```, when quoting is needed and the text has no backtick;
- caret: ``^id^text^id^``, when the text holds a backtick. The id is the first
  of ``"", "1", ... "999"`` that no ``^digits^`` run inside the text already
  uses and whose terminator cannot be completed early by the end of the text.

The functions here are pure; Reader and Writer own the stream handling.
"""

import re

from ..exceptions import MalformedQuoteError, QuoteIdExhaustedError
from ..models.enums import QuoteStyle
from ..models.schemas import FieldFormat
from ..utils.logging import get_logger

logger = get_logger(__name__)

BACKTICK = "`"
CARET = "^"
CR = "\r"
LF = "\n"

MAX_QUOTE_ID = 999
MAX_TAG_DIGITS = 9

# Lookahead so overlapping tags ("^1^2^") are all found.
_EMBEDDED_TAG = re.compile(r"(?=\^(\d{0,%d})\^)" % MAX_TAG_DIGITS)


def embedded_tags(text: str) -> set[str]:
    """Digit strings already sitting between two carets in ``text``."""
    return set(_EMBEDDED_TAG.findall(text))


def needs_quoting(text: str, delimiter: str) -> bool:
    """True when ``text`` cannot be written as a plain field."""
    return any(c in text for c in (delimiter, CR, LF, BACKTICK, CARET))


def caret_terminates(text: str, tag: str) -> bool:
    """
    Check that ``^tag^`` closes a caret field holding ``text`` exactly at its end.

    The reader stops at the first ``^tag^`` after the opening tag, so the
    terminator must not occur in the text nor straddle its last characters.
    """
    terminator = f"{CARET}{tag}{CARET}"
    return (text + terminator).find(terminator) == len(text)


def choose_caret_id(text: str) -> str:
    """
    Pick the caret id for ``text``.

    Returns:
        The first candidate of ``"", "1", ... "999"`` that is free

    Raises:
        QuoteIdExhaustedError: If every candidate collides
    """
    taken = embedded_tags(text)
    for n in range(MAX_QUOTE_ID + 1):
        candidate = str(n) if n else ""
        if candidate not in taken and caret_terminates(text, candidate):
            return candidate

    logger.warning("quote_ids_exhausted", length=len(text), tags=len(taken))
    raise QuoteIdExhaustedError(MAX_QUOTE_ID)


def choose_format(text: str, delimiter: str) -> FieldFormat:
    """Decide how ``text`` is written when the caller does not force a format."""
    if not needs_quoting(text, delimiter):
        return FieldFormat.plain()
    if BACKTICK not in text:
        return FieldFormat.backtick()
    return FieldFormat.caret(choose_caret_id(text))


def check_format(text: str, fmt: FieldFormat, delimiter: str) -> None:
    """
    Verify that a forced format can carry ``text`` without ambiguity.

    Raises:
        MalformedQuoteError: If the format would corrupt the record
    """
    if fmt.style == QuoteStyle.PLAIN and needs_quoting(text, delimiter):
        raise MalformedQuoteError(
            "plain format cannot carry this text", details={"text": text}
        )
    if fmt.style == QuoteStyle.BACKTICK and BACKTICK in text:
        raise MalformedQuoteError(
            "backtick format cannot carry text holding a backtick", details={"text": text}
        )
    if fmt.style == QuoteStyle.CARET and not caret_terminates(text, fmt.tag):
        raise MalformedQuoteError(
            f"caret id {fmt.tag!r} collides with the field text", details={"text": text}
        )


def quote(text: str, fmt: FieldFormat) -> str:
    """Render ``text`` in the given format."""
    if fmt.style == QuoteStyle.BACKTICK:
        return f"{BACKTICK}{text}{BACKTICK}"
    if fmt.style == QuoteStyle.CARET:
        tag = str(fmt)
        return f"{tag}{text}{tag}"
    return text


def encode_field(text: str, delimiter: str = "\t") -> str:
    """Quote ``text`` with the automatically chosen format."""
    return quote(text, choose_format(text, delimiter))
