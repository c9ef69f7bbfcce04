"""
Pydantic models and enums for tagged-tab streams.
"""

from .enums import (
    LogLevel,
    QuoteStyle,
    ScalarKind,
)
from .schemas import (
    FieldFormat,
    TypeDescriptor,
)

__all__ = [
    "FieldFormat",
    "TypeDescriptor",
    "QuoteStyle",
    "ScalarKind",
    "LogLevel",
]
