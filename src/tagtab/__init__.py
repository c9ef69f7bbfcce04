"""
tagtab - tagged-tab text serialization

Line-oriented records with backtick and caret-tagged quoting, plus a typed
object layer that registers each structured type's columns once per stream.
"""

from .core import (
    Decoder,
    Embedded,
    Encoder,
    FlatDecoder,
    FlatEncoder,
    Reader,
    TypeRegistry,
    Writer,
)
from .core.config import TagTabConfig
from .models import FieldFormat, ScalarKind, TypeDescriptor

__version__ = "0.1.0"

__all__ = [
    "Reader",
    "Writer",
    "Encoder",
    "Decoder",
    "Embedded",
    "FlatEncoder",
    "FlatDecoder",
    "TypeRegistry",
    "TypeDescriptor",
    "FieldFormat",
    "ScalarKind",
    "TagTabConfig",
]
