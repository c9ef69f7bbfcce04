"""
Field discovery for structured values.

Dataclasses and pydantic models are flattened into an ordered column list:

- declared fields are walked in declaration order;
- a field annotated ``Annotated[Sub, Embedded]`` is recursed into depth-first
  and its columns are spliced in at its position;
- a name already seen earlier in the walk is skipped, so the first occurrence
  wins for both encoding and decoding;
- names starting with an underscore are not public and are ignored.

Example:
    @dataclass
    class Audit:
        created: datetime | None = None
        note: str = ""

    @dataclass
    class Order:
        audit: Annotated[Audit, Embedded] = field(default_factory=Audit)
        id: int = 0
        note: str = ""      # shadowed by Audit.note

    [spec.name for spec in discover_fields(Order)]  # ["created", "note", "id"]
"""

import dataclasses
import functools
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel

from ..exceptions import UnsupportedTypeError
from ..models.enums import ScalarKind
from .scalars import kind_of_type


class Embedded:
    """Marker for ``Annotated`` fields whose fields are flattened into the parent."""


@dataclass(frozen=True)
class FieldSpec:
    """One discovered column and where it lives on the root object."""

    name: str
    path: tuple[str, ...]
    kind: ScalarKind | None
    optional: bool = False
    # Classes of the embedded containers along ``path[:-1]``
    containers: tuple[type, ...] = ()


def is_structured(cls: Any) -> bool:
    """True for dataclass and pydantic model classes."""
    return isinstance(cls, type) and (
        dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel)
    )


def type_identity(cls: type) -> tuple[str, str]:
    """Registry identity ``(namespace, name)`` of a structured class."""
    return (cls.__module__, cls.__qualname__)


def _is_embedded_marker(meta: Any) -> bool:
    return meta is Embedded or isinstance(meta, Embedded)


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(tp) if a is not type(None)]
        optional = len(args) < len(get_args(tp))
        if len(args) == 1:
            return args[0], optional
        return tp, optional
    return tp, False


def _declared_fields(cls: type) -> list[tuple[str, Any, tuple]]:
    """``(name, annotation, metadata)`` for each declared field of ``cls``."""
    if issubclass(cls, BaseModel):
        return [
            (name, info.annotation, tuple(info.metadata))
            for name, info in cls.model_fields.items()
        ]

    hints = typing.get_type_hints(cls, include_extras=True)
    declared = []
    for f in dataclasses.fields(cls):
        hint = hints.get(f.name, Any)
        if get_origin(hint) is Annotated:
            base, *meta = get_args(hint)
            declared.append((f.name, base, tuple(meta)))
        else:
            declared.append((f.name, hint, ()))
    return declared


def _walk(
    cls: type,
    path: tuple[str, ...],
    containers: tuple[type, ...],
    seen: set[str],
    out: list[FieldSpec],
) -> None:
    for name, annotation, meta in _declared_fields(cls):
        if name.startswith("_"):
            continue

        tp, optional = _unwrap_optional(annotation)

        if any(_is_embedded_marker(m) for m in meta):
            if not is_structured(tp):
                raise UnsupportedTypeError(f"embedded field {cls.__qualname__}.{name}")
            _walk(tp, path + (name,), containers + (tp,), seen, out)
            continue

        if name in seen:
            continue
        seen.add(name)
        out.append(
            FieldSpec(
                name=name,
                path=path + (name,),
                kind=kind_of_type(tp),
                optional=optional,
                containers=containers,
            )
        )


@functools.lru_cache(maxsize=None)
def discover_fields(cls: type) -> tuple[FieldSpec, ...]:
    """
    Flatten the public fields of a structured class, depth-first.

    Raises:
        UnsupportedTypeError: If ``cls`` (or an embedded field's type) is not a
            dataclass or pydantic model
    """
    if not is_structured(cls):
        raise UnsupportedTypeError(getattr(cls, "__qualname__", repr(cls)))
    out: list[FieldSpec] = []
    _walk(cls, (), (), set(), out)
    return tuple(out)


@functools.lru_cache(maxsize=None)
def field_index(cls: type) -> dict[str, FieldSpec]:
    return {spec.name: spec for spec in discover_fields(cls)}


def read_field(obj: Any, spec: FieldSpec) -> Any:
    """Value of ``spec`` on ``obj``; None when an embedded container is None."""
    target = obj
    for attr in spec.path:
        if target is None:
            return None
        target = getattr(target, attr)
    return target


def write_field(obj: Any, spec: FieldSpec, value: Any) -> None:
    """Set ``spec`` on ``obj``, creating missing embedded containers."""
    target = obj
    for attr, container_cls in zip(spec.path[:-1], spec.containers):
        child = getattr(target, attr)
        if child is None:
            child = container_cls()
            setattr(target, attr, child)
        target = child
    setattr(target, spec.path[-1], value)
