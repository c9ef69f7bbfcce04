"""
Core components of the tagged-tab codec and typed object layer.
"""

from .decoder import Decoder
from .encoder import Encoder
from .fields import Embedded, discover_fields
from .flat import FlatDecoder, FlatEncoder
from .reader import Reader
from .registry import TypeRegistry
from .writer import Writer

__all__ = [
    "Reader",
    "Writer",
    "TypeRegistry",
    "Encoder",
    "Decoder",
    "Embedded",
    "discover_fields",
    "FlatEncoder",
    "FlatDecoder",
]
