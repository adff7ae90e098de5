"""
Schema-driven generic messages.

For values whose shape is only known at runtime (fixtures, adapters over
foreign schema systems) without a generated protobuf class::

    cell = DynamicSchema("Cell", (
        scalar_field("family_name", FieldKind.STRING),
        scalar_field("timestamp_micros", FieldKind.INT64),
    ))
    project(DynamicMessage(cell, family_name="cf1", timestamp_micros=-1))

Presence is always explicit: a field is present once it has been set,
whatever the value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from prism_projector.kinds import FieldKind
from prism_projector.reflection import FieldInfo, Reflection


# ── field constructors ──────────────────────────────────────────────
def scalar_field(name: str, kind: FieldKind, *, repeated: bool = False) -> FieldInfo:
    if kind in (FieldKind.MESSAGE, FieldKind.ENUM, FieldKind.GROUP):
        raise ValueError(f"{name}: use message_field/enum_field/group_field for {kind.name}")
    return FieldInfo(name=name, kind=kind, repeated=repeated)


def enum_field(name: str, names: Mapping[int, str], *, repeated: bool = False) -> FieldInfo:
    return FieldInfo(
        name=name,
        kind=FieldKind.ENUM,
        repeated=repeated,
        enum_names=MappingProxyType(dict(names)),
    )


def message_field(name: str, schema: "DynamicSchema", *, repeated: bool = False) -> FieldInfo:
    return FieldInfo(name=name, kind=FieldKind.MESSAGE, repeated=repeated, message_type=schema)


def group_field(name: str, schema: "DynamicSchema", *, repeated: bool = False) -> FieldInfo:
    return FieldInfo(name=name, kind=FieldKind.GROUP, repeated=repeated, message_type=schema)


def map_field(name: str, key_kind: FieldKind, value: FieldInfo) -> FieldInfo:
    return FieldInfo(
        name=name,
        kind=FieldKind.MESSAGE,
        repeated=True,
        map_key=FieldInfo(name="key", kind=key_kind),
        map_value=value,
    )


# ── schema & message ────────────────────────────────────────────────
@dataclass(frozen=True, eq=False)
class DynamicSchema:
    name: str
    fields: Tuple[FieldInfo, ...] = ()
    _by_name: Dict[str, FieldInfo] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        by_name: Dict[str, FieldInfo] = {}
        for info in fields:
            if info.name in by_name:
                raise ValueError(f"{self.name}: duplicate field '{info.name}'")
            by_name[info.name] = info
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "_by_name", by_name)

    @property
    def full_name(self) -> str:
        return self.name

    def field(self, name: str) -> FieldInfo:
        try:
            return self._by_name[name]
        except KeyError:
            raise AttributeError(f"{self.name} has no field '{name}'") from None


class DynamicMessage:
    __slots__ = ("schema", "_values")

    def __init__(self, schema: DynamicSchema, **values: Any):
        self.schema = schema
        self._values: Dict[str, Any] = {}
        for name, value in values.items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> "DynamicMessage":
        info = self.schema.field(name)
        if info.is_map:
            value = dict(value)
        elif info.repeated:
            value = list(value)
        self._values[name] = value
        return self

    def clear(self, name: str) -> None:
        self.schema.field(name)
        self._values.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        self.schema.field(name)
        return self._values.get(name, default)

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{self.schema.name}({body})"


class DynamicReflection(Reflection):
    def handles(self, message: Any) -> bool:
        return isinstance(message, DynamicMessage)

    def schema_of(self, message: DynamicMessage) -> DynamicSchema:
        return message.schema

    def fields(self, schema: DynamicSchema) -> Tuple[FieldInfo, ...]:
        return schema.fields

    def has(self, message: DynamicMessage, info: FieldInfo) -> bool:
        return message.has(info.name)

    def get(self, message: DynamicMessage, info: FieldInfo) -> Any:
        return message.get(info.name)

    def count(self, message: DynamicMessage, info: FieldInfo) -> int:
        return len(message.get(info.name, ()))

    def get_all(self, message: DynamicMessage, info: FieldInfo) -> list:
        return list(message.get(info.name, ()))

    def get_item(self, message: DynamicMessage, info: FieldInfo, index: int) -> Any:
        return message.get(info.name)[index]

    def map_items(self, message: DynamicMessage, info: FieldInfo) -> Iterable[Tuple[Any, Any]]:
        return list(message.get(info.name, {}).items())
