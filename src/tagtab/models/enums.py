"""Enums shared by the codec, the object layer and configuration.

Using str-valued enums keeps wire tags and settings readable in logs and
config files while still giving IDE completion and type checking.
"""

from enum import Enum


class QuoteStyle(str, Enum):
    """Physical encoding of a single field.

    Attributes:
        PLAIN: Field text written as-is
        BACKTICK: Field wrapped in a pair of backticks
        CARET: Field wrapped in ``^id^ ... ^id^``
    """
    PLAIN = "plain"
    BACKTICK = "backtick"
    CARET = "caret"

    def __str__(self) -> str:
        """Return the enum value as a string for serialization."""
        return self.value


class ScalarKind(str, Enum):
    """Scalar kinds understood by the scalar codec.

    The values double as the kind tags written in a flat typed stream header.

    Attributes:
        INT: Decimal integer
        STR: Verbatim text
        FLOAT: Decimal floating point
        TIME: RFC 3339 timestamp
        BLOB: Standard base64 bytes
    """
    INT = "INT"
    STR = "STR"
    FLOAT = "FLOAT"
    TIME = "TIME"
    BLOB = "BLOB"

    def __str__(self) -> str:
        """Return the enum value as a string for serialization."""
        return self.value


class LogLevel(str, Enum):
    """Standard logging levels.

    Attributes:
        DEBUG: Detailed diagnostic information
        INFO: General informational messages
        WARNING: Warning messages for potentially problematic situations
        ERROR: Error messages for serious problems
        CRITICAL: Critical messages for severe errors
    """
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        """Return the enum value as a string for serialization."""
        return self.value


__all__ = [
    "QuoteStyle",
    "ScalarKind",
    "LogLevel",
]
