"""
Type registry protocol.

A typed stream multiplexes rows of several structured types. Before the
first row of a type the writer emits a register control row carrying the
type's column layout; switching back to an already registered type costs a
short reference row. Control rows are ordinary records whose first field is
a backtick-quoted marker::

    `*`    app.models    User    id    name     -- register, becomes active
    1      alice                                -- User row
    `*`    app.models    Group   id    title    -- register, becomes active
    7      admins                               -- Group row
    `@`    app.models    User                   -- reference, becomes active
    2      bob                                  -- User row

Quoting the marker keeps a data row whose first value is a literal ``*`` or
``@`` (written plain) distinct from a control row.
"""

from collections.abc import Iterator

from ..exceptions import (
    DuplicateTypeError,
    MalformedControlRowError,
    MissingActiveTypeError,
    UnknownTypeReferenceError,
)
from ..models.enums import QuoteStyle
from ..models.schemas import FieldFormat, TypeDescriptor
from ..utils.logging import get_logger

logger = get_logger(__name__)

REGISTER_MARKER = "*"
REFERENCE_MARKER = "@"


def register_row(descriptor: TypeDescriptor) -> list[str]:
    return [REGISTER_MARKER, descriptor.namespace, descriptor.name, *descriptor.columns]


def reference_row(descriptor: TypeDescriptor) -> list[str]:
    return [REFERENCE_MARKER, descriptor.namespace, descriptor.name]


def control_formats(row: list[str]) -> list[FieldFormat | None]:
    """Backtick on the marker, automatic quoting for everything else."""
    return [FieldFormat.backtick()] + [None] * (len(row) - 1)


class TypeRegistry:
    """
    Registered type descriptors of one stream plus the active type.

    Owned by a single Encoder or Decoder; entries are never removed.
    """

    def __init__(self):
        self._types: dict[tuple[str, str], TypeDescriptor] = {}
        self.active: TypeDescriptor | None = None

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def get(self, namespace: str, name: str) -> TypeDescriptor | None:
        return self._types.get((namespace, name))

    def register(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        """
        Add a descriptor and make it active.

        Raises:
            DuplicateTypeError: If the identity is already registered
        """
        if descriptor.key in self._types:
            raise DuplicateTypeError(descriptor.namespace, descriptor.name)
        self._types[descriptor.key] = descriptor
        self.active = descriptor
        logger.debug(
            "type_registered",
            type=descriptor.qualified_name,
            columns=len(descriptor.columns),
        )
        return descriptor

    def reference(self, namespace: str, name: str) -> TypeDescriptor:
        """
        Make a registered descriptor active.

        Raises:
            UnknownTypeReferenceError: If the identity was never registered
        """
        descriptor = self._types.get((namespace, name))
        if descriptor is None:
            raise UnknownTypeReferenceError(namespace, name)
        self.active = descriptor
        logger.debug("type_referenced", type=descriptor.qualified_name)
        return descriptor

    def activate(self, descriptor: TypeDescriptor) -> list[list[str]]:
        """
        Encoding side: make ``descriptor`` active.

        Returns:
            Control rows that must precede the next data row (possibly none)
        """
        known = self._types.get(descriptor.key)
        if known is None:
            self.register(descriptor)
            return [register_row(descriptor)]
        if self.active is None or self.active.key != known.key:
            self.active = known
            logger.debug("type_activated", type=known.qualified_name)
            return [reference_row(known)]
        return []

    def apply(self, values: list[str], formats: list[FieldFormat]) -> bool:
        """
        Decoding side: consume ``values`` if it is a control row.

        Returns:
            True if the record was a control row, False for a data row

        Raises:
            MalformedControlRowError: If a control row lacks its identity fields
            DuplicateTypeError: If a register row repeats an identity
            UnknownTypeReferenceError: If a reference row names an unknown type
        """
        if not values or formats[0].style != QuoteStyle.BACKTICK:
            return False

        marker = values[0]
        if marker == REGISTER_MARKER:
            if len(values) < 3:
                raise MalformedControlRowError(marker, values)
            self.register(
                TypeDescriptor(namespace=values[1], name=values[2], columns=tuple(values[3:]))
            )
            return True
        if marker == REFERENCE_MARKER:
            if len(values) != 3:
                raise MalformedControlRowError(marker, values)
            self.reference(values[1], values[2])
            return True
        return False

    def require_active(self, record: list[str] | None = None) -> TypeDescriptor:
        """
        Raises:
            MissingActiveTypeError: If no type has been activated yet
        """
        if self.active is None:
            raise MissingActiveTypeError(record)
        return self.active
