"""Exception hierarchy for the tagged-tab codec and typed object layer"""

from typing import Any
from datetime import datetime


class TagTabError(Exception):
    """Base exception with context and metadata"""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        user_message: str | None = None,
    ):
        """
        Initialize exception with context.

        Args:
            message: Technical error message for logs
            details: Additional context (dict for structured logging)
            recoverable: Whether the stream can keep being used after the error
            user_message: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.user_message = user_message or message
        self.timestamp = datetime.now()

    def __str__(self) -> str:
        parts = [self.message]

        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            parts.append(f"({details_str})")

        if not self.recoverable:
            parts.append("[unrecoverable]")

        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "user_message": self.user_message,
            "timestamp": self.timestamp.isoformat(),
        }


class ParseError(TagTabError):
    """Errors raised while scanning a record, with the position they were detected at"""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        details = details or {}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column

        super().__init__(
            message=message,
            details=details,
            recoverable=True,
            user_message=user_message,
        )
        self.line = line
        self.column = column


class MalformedQuoteError(ParseError):
    """Unterminated backtick/caret field, or a quote character in the middle of a field"""


class FieldCountMismatchError(ParseError):
    """Record length disagrees with the established or declared field count"""

    def __init__(
        self,
        expected: int,
        actual: int,
        record: list[str] | None = None,
        line: int | None = None,
    ):
        super().__init__(
            message=f"wrong number of fields in record: got {actual}, expected {expected}",
            line=line,
            details={"expected": expected, "actual": actual},
            user_message=f"Record has {actual} fields but {expected} were expected.",
        )
        self.expected = expected
        self.actual = actual
        self.record = record


class RegistryError(TagTabError):
    """Type registry protocol errors"""


class UnknownTypeReferenceError(RegistryError):
    """A reference control row names a type that was never registered"""

    def __init__(self, namespace: str, name: str):
        super().__init__(
            message=f"type {namespace}.{name} is not registered in this stream",
            details={"namespace": namespace, "name": name},
            recoverable=False,
        )
        self.namespace = namespace
        self.name = name


class DuplicateTypeError(RegistryError):
    """A register control row repeats an identity already registered"""

    def __init__(self, namespace: str, name: str):
        super().__init__(
            message=f"type {namespace}.{name} is already registered in this stream",
            details={"namespace": namespace, "name": name},
            recoverable=False,
        )
        self.namespace = namespace
        self.name = name


class MissingActiveTypeError(RegistryError):
    """A data row was read before any type was registered or referenced"""

    def __init__(self, record: list[str] | None = None):
        super().__init__(
            message="data row found before any type was registered",
            recoverable=False,
        )
        self.record = record


class MalformedControlRowError(RegistryError):
    """A register/reference row does not carry the fields the protocol needs"""

    def __init__(self, marker: str, record: list[str]):
        super().__init__(
            message=f"malformed {marker!r} control row",
            details={"marker": marker, "fields": len(record)},
            recoverable=False,
        )
        self.marker = marker
        self.record = record


class MarshalError(TagTabError):
    """Errors converting between objects and rows"""


class FieldNotFoundError(MarshalError):
    """A column name has no matching field on the destination"""

    def __init__(self, column: str, target: str):
        super().__init__(
            message=f"no field named {column!r} on {target}",
            details={"column": column, "target": target},
        )
        self.column = column
        self.target = target


class ScalarTypeMismatchError(MarshalError):
    """Text cannot be parsed as the destination kind, or the kind is unsupported"""

    def __init__(self, message: str, kind: str | None = None, value: Any = None):
        details: dict[str, Any] = {}
        if kind is not None:
            details["kind"] = kind
        if value is not None:
            details["value"] = value

        super().__init__(message=message, details=details)
        self.kind = kind
        self.value = value


class UnsupportedTypeError(MarshalError):
    """The value handed to the object layer is not a dataclass or pydantic model"""

    def __init__(self, target: str):
        super().__init__(
            message=f"expected a dataclass or pydantic model, got {target}",
            details={"target": target},
        )
        self.target = target


class QuoteIdExhaustedError(TagTabError):
    """No caret id in the allowed range avoids every tag already in the text"""

    def __init__(self, limit: int):
        super().__init__(
            message=f"cannot generate a ^id^ quote tag within {limit} candidates",
            details={"limit": limit},
            recoverable=False,
            user_message="Field text cannot be represented in the tagged-tab format.",
        )
        self.limit = limit


class EmptyRecordError(TagTabError):
    """A record with no fields cannot be written"""

    def __init__(self):
        super().__init__(message="cannot write a record with no fields")


class HeaderError(TagTabError):
    """Flat typed stream header is missing or malformed"""


class ConfigurationError(TagTabError):
    """Configuration validation errors"""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(
            message=message,
            details=details,
            recoverable=False,
            user_message=f"Configuration error: {message}",
        )
        self.field = field
        self.value = value
