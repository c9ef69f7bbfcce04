"""
Object decoder: reads typed rows back into dataclass and pydantic instances.
"""

from collections.abc import Callable, Iterator
from typing import Any, BinaryIO, TextIO, TypeVar

from ..exceptions import (
    FieldCountMismatchError,
    FieldNotFoundError,
    ScalarTypeMismatchError,
    UnsupportedTypeError,
)
from ..models.schemas import TypeDescriptor
from .fields import field_index, is_structured, write_field
from .reader import Reader
from .registry import TypeRegistry
from .scalars import decode_scalar

T = TypeVar("T")


class Decoder:
    """
    Reads a typed tagged-tab stream.

    Control rows are consumed transparently; each data row is matched to the
    destination's fields by column name. Rows of different types share one
    stream, so the reader runs without a field-count policy and the count is
    checked against the active type instead.
    """

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
            fields_per_record=-1,
            encoding=encoding,
        )
        self.registry = TypeRegistry()

    def read_row(self) -> tuple[TypeDescriptor, list[str]] | None:
        """
        Read the next data row and the descriptor governing it.

        Returns:
            ``(descriptor, values)``, or None at a clean end of stream

        Raises:
            MissingActiveTypeError: If a data row precedes every control row
            FieldCountMismatchError: If the row width differs from the type's
        """
        while True:
            parsed = self.reader.read_with_format()
            if parsed is None:
                return None
            values, formats = parsed
            if not self.registry.apply(values, formats):
                break

        descriptor = self.registry.require_active(values)
        if len(values) != len(descriptor.columns):
            raise FieldCountMismatchError(
                expected=len(descriptor.columns), actual=len(values), record=values
            )
        return descriptor, values

    def rows(self) -> Iterator[tuple[TypeDescriptor, list[str]]]:
        """Iterate ``(descriptor, values)`` pairs until end of stream."""
        while True:
            row = self.read_row()
            if row is None:
                return
            yield row

    def decode(self, destination: T) -> T | None:
        """
        Populate ``destination`` from the next data row.

        Only the first field with a given name (in discovery order) is written;
        fields not named by the row keep their current values.

        Returns:
            ``destination``, or None at a clean end of stream

        Raises:
            UnsupportedTypeError: If ``destination`` is not a dataclass or model
            FieldNotFoundError: If a column has no matching field
            ScalarTypeMismatchError: If a value does not parse as its field's kind
        """
        cls = type(destination)
        if not is_structured(cls):
            raise UnsupportedTypeError(cls.__qualname__)

        row = self.read_row()
        if row is None:
            return None
        descriptor, values = row

        index = field_index(cls)
        decoded: list[tuple[Any, Any]] = []
        for column, text in zip(descriptor.columns, values):
            spec = index.get(column)
            if spec is None:
                raise FieldNotFoundError(column, cls.__qualname__)
            if spec.kind is None:
                raise ScalarTypeMismatchError(
                    f"field {column!r} of {cls.__qualname__} has no supported scalar kind",
                    value=text,
                )
            decoded.append((spec, decode_scalar(text, spec.kind, spec.optional)))

        for spec, value in decoded:
            write_field(destination, spec, value)
        return destination

    def objects(self, factory: Callable[[], T]) -> Iterator[T]:
        """Decode every remaining row into a fresh ``factory()`` instance."""
        while True:
            obj = self.decode(factory())
            if obj is None:
                return
            yield obj
