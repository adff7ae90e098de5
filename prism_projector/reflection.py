"""
Reflection layer the projector walks messages through.

A `Reflection` answers schema questions (which fields, in which order,
of which kind) and reads values out of one message without the caller
knowing the concrete message class. `ProtobufReflection` covers every
`google.protobuf` message; `prism_projector.dynamic` covers messages
described at runtime.

Field tables are built once per message type and cached; they are
immutable tuples, so sharing them between threads needs no locking.
"""
from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from google.protobuf.descriptor import Descriptor, FieldDescriptor
from google.protobuf.message import Message

from prism_projector.kinds import FLOATING, FieldKind, UNSUPPORTED


@dataclass(frozen=True)
class FieldInfo:
    name: str
    kind: FieldKind
    repeated: bool = False
    # enum number -> symbolic name (ENUM only)
    enum_names: Optional[Mapping[int, str]] = field(default=None, compare=False)
    # schema handle of the nested type (MESSAGE / GROUP only)
    message_type: Any = field(default=None, compare=False, repr=False)
    map_key: Optional["FieldInfo"] = None
    map_value: Optional["FieldInfo"] = None
    # backend-specific descriptor
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def is_map(self) -> bool:
        return self.map_value is not None


class Reflection(abc.ABC):
    """Capability interface: enumerate a message's fields and read them."""

    @abc.abstractmethod
    def handles(self, message: Any) -> bool: ...

    @abc.abstractmethod
    def schema_of(self, message: Any) -> Any: ...

    @abc.abstractmethod
    def fields(self, schema: Any) -> Tuple[FieldInfo, ...]: ...

    # ------------------------- singular -------------------------------
    @abc.abstractmethod
    def has(self, message: Any, info: FieldInfo) -> bool: ...

    @abc.abstractmethod
    def get(self, message: Any, info: FieldInfo) -> Any: ...

    # ------------------------- repeated -------------------------------
    @abc.abstractmethod
    def count(self, message: Any, info: FieldInfo) -> int: ...

    @abc.abstractmethod
    def get_all(self, message: Any, info: FieldInfo) -> Sequence[Any]:
        """Bulk read of a repeated scalar field, in source order."""

    @abc.abstractmethod
    def get_item(self, message: Any, info: FieldInfo, index: int) -> Any: ...

    @abc.abstractmethod
    def map_items(self, message: Any, info: FieldInfo) -> Iterable[Tuple[Any, Any]]: ...


def first_unsupported(reflection: Reflection, schema: Any) -> Optional[Tuple[str, str]]:
    """
    Walk every message type reachable from *schema* and return
    ``(path, kind_name)`` of the first field whose kind cannot be projected,
    or None. Recursive schemas are visited once per type.
    """
    return _first_unsupported(reflection, schema)


@lru_cache(maxsize=1024)
def _first_unsupported(reflection: Reflection, schema: Any) -> Optional[Tuple[str, str]]:
    seen: set[Any] = set()
    stack: list[Tuple[Any, str]] = [(schema, schema_name(schema))]
    while stack:
        current, path = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        nested: list[Tuple[Any, str]] = []
        for info in reflection.fields(current):
            target = info.map_value if info.is_map else info
            if target.kind in UNSUPPORTED:
                return f"{path}.{info.name}", target.kind.name.lower()
            if target.message_type is not None:
                nested.append((target.message_type, f"{path}.{info.name}"))
        # declaration order for the first hit
        stack.extend(reversed(nested))
    return None


def schema_name(schema: Any) -> str:
    return getattr(schema, "full_name", None) or getattr(schema, "name", None) or type(schema).__name__


# ───────────────────────── google.protobuf backend ─────────────────────────
def _is_repeated(fd: FieldDescriptor) -> bool:
    # newer runtimes deprecate `label` in favour of `is_repeated`
    flag = getattr(fd, "is_repeated", None)
    if flag is None:
        return fd.label == FieldDescriptor.LABEL_REPEATED
    return bool(flag() if callable(flag) else flag)


def _enum_names(fd: FieldDescriptor) -> Mapping[int, str]:
    names: dict[int, str] = {}
    for value in fd.enum_type.values:
        names.setdefault(value.number, value.name)  # first alias wins
    return MappingProxyType(names)


def _field_info(fd: FieldDescriptor) -> FieldInfo:
    kind = FieldKind(fd.type)
    repeated = _is_repeated(fd)
    map_key = map_value = None
    if kind is FieldKind.MESSAGE and repeated and fd.message_type.GetOptions().map_entry:
        entry = fd.message_type
        map_key = _field_info(entry.fields_by_name["key"])
        map_value = _field_info(entry.fields_by_name["value"])
    return FieldInfo(
        name=fd.name,
        kind=kind,
        repeated=repeated,
        enum_names=_enum_names(fd) if kind is FieldKind.ENUM else None,
        message_type=fd.message_type if kind in (FieldKind.MESSAGE, FieldKind.GROUP) else None,
        map_key=map_key,
        map_value=map_value,
        handle=fd,
    )


@lru_cache(maxsize=None)
def protobuf_field_table(descriptor: Descriptor) -> Tuple[FieldInfo, ...]:
    """Field table of a protobuf message type, in declaration order."""
    return tuple(_field_info(fd) for fd in descriptor.fields)


class ProtobufReflection(Reflection):
    """
    Presence follows the protobuf runtime: fields with explicit presence
    (proto2 optional, proto3 ``optional``, messages, oneof members) are
    present when set; proto3 implicit-presence scalars are present when
    they hold a non-default value. Like the runtime, a float compares
    by bit pattern there, so -0.0 counts as set.
    """

    def handles(self, message: Any) -> bool:
        return isinstance(message, Message)

    def schema_of(self, message: Message) -> Descriptor:
        return message.DESCRIPTOR

    def fields(self, schema: Descriptor) -> Tuple[FieldInfo, ...]:
        return protobuf_field_table(schema)

    def has(self, message: Message, info: FieldInfo) -> bool:
        fd: FieldDescriptor = info.handle
        if fd.has_presence:
            return message.HasField(info.name)
        value = getattr(message, info.name)
        if info.kind in FLOATING:
            return value != 0.0 or math.copysign(1.0, value) < 0
        return value != fd.default_value

    def get(self, message: Message, info: FieldInfo) -> Any:
        return getattr(message, info.name)

    def count(self, message: Message, info: FieldInfo) -> int:
        return len(getattr(message, info.name))

    def get_all(self, message: Message, info: FieldInfo) -> Sequence[Any]:
        return list(getattr(message, info.name))

    def get_item(self, message: Message, info: FieldInfo, index: int) -> Any:
        return getattr(message, info.name)[index]

    def map_items(self, message: Message, info: FieldInfo) -> Iterable[Tuple[Any, Any]]:
        return list(getattr(message, info.name).items())
