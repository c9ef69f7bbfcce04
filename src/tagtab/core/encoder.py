"""
Object encoder: writes dataclass and pydantic model instances as typed rows.
"""

from collections.abc import Iterable
from typing import Any, BinaryIO, TextIO

from ..exceptions import UnsupportedTypeError
from ..models.schemas import TypeDescriptor
from ..utils.logging import get_logger
from .fields import discover_fields, is_structured, read_field, type_identity
from .registry import TypeRegistry, control_formats
from .scalars import encode_scalar
from .writer import Writer


class Encoder:
    """
    Writes structured values to a typed tagged-tab stream.

    The first value of a type registers its column layout; later values of
    the same type only reference it when another type was written in between.
    Every call to :meth:`encode` flushes.

    Example:
        encoder = Encoder(buffer)
        encoder.encode(User(id=1, name="alice"))
        encoder.encode(Group(id=7, title="admins"))
        encoder.encode(User(id=2, name="bob"))
    """

    def __init__(
        self,
        stream: BinaryIO | TextIO,
        *,
        delimiter: str | None = None,
        comment: str | None = None,
        encoding: str | None = None,
    ):
        self.writer = Writer(
            stream, delimiter=delimiter, comment=comment, encoding=encoding
        )
        self.registry = TypeRegistry()
        self.logger = get_logger(__name__)
        self._descriptors: dict[type, TypeDescriptor] = {}

    def descriptor_for(self, cls: type) -> TypeDescriptor:
        """Descriptor built from the discovered columns of ``cls``."""
        descriptor = self._descriptors.get(cls)
        if descriptor is None:
            namespace, name = type_identity(cls)
            descriptor = TypeDescriptor(
                namespace=namespace,
                name=name,
                columns=tuple(spec.name for spec in discover_fields(cls)),
            )
            self._descriptors[cls] = descriptor
        return descriptor

    def encode(self, value: Any) -> None:
        """
        Write one structured value, preceded by any control rows it needs.

        Raises:
            UnsupportedTypeError: If ``value`` is not a dataclass or pydantic model
            ScalarTypeMismatchError: If a field value has no scalar encoding
            EmptyRecordError: If the type has no public fields
        """
        cls = type(value)
        if not is_structured(cls):
            raise UnsupportedTypeError(cls.__qualname__)

        # Encode first so a bad value leaves the registry untouched.
        row = [encode_scalar(read_field(value, spec)) for spec in discover_fields(cls)]

        descriptor = self.descriptor_for(cls)
        for control in self.registry.activate(descriptor):
            self.writer.write_with_format(control, control_formats(control))
        self.writer.write(row)
        self.writer.flush()

    def encode_all(self, values: Iterable[Any]) -> int:
        """Encode every value; returns how many were written."""
        count = 0
        for value in values:
            self.encode(value)
            count += 1
        self.logger.debug("objects_encoded", count=count, types=len(self.registry))
        return count
