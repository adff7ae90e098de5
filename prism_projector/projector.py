"""
Message → JSON projection.

`project()` turns any message the reflection layer understands into a
fresh ``dict`` holding only the populated fields, keyed by declared field
name, in declaration order:

* repeated fields with no elements and unset singular fields are left
  out; a set field holding its default value is kept;
* integers of every width stay exact Python ints;
* enums become their symbolic names;
* bytes become base64 text (or strict UTF-8 text, see ProjectionSettings);
* a schema declaring a group field anywhere aborts before any value is read.
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from prism_projector.dynamic import DynamicReflection
from prism_projector.errors import (
    BytesDecodeError,
    ProjectionDepthError,
    UnsupportedFieldTypeError,
)
from prism_projector.kinds import INDEXED, SCALAR_CONVERTERS, FieldKind, kind_name
from prism_projector.reflection import (
    FieldInfo,
    ProtobufReflection,
    Reflection,
    first_unsupported,
    schema_name,
)
from prism_projector.settings import BYTES_UTF8, ProjectionSettings, default_settings

log = logging.getLogger(__name__)

JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

_REFLECTIONS: Tuple[Reflection, ...] = (DynamicReflection(), ProtobufReflection())


def reflection_for(message: Any) -> Reflection:
    for reflection in _REFLECTIONS:
        if reflection.handles(message):
            return reflection
    raise TypeError(f"no reflection available for {type(message).__name__}")


class Projector:
    """
    Stateless apart from its configuration; one instance may be shared by
    any number of threads.
    """

    def __init__(
        self,
        reflection: Optional[Reflection] = None,
        settings: Optional[ProjectionSettings] = None,
    ):
        self.reflection = reflection
        self.settings = settings if settings is not None else default_settings()

    def project(self, message: Any) -> Dict[str, Any]:
        reflection = self.reflection or reflection_for(message)
        schema = reflection.schema_of(message)
        root = schema_name(schema)

        unsupported = first_unsupported(reflection, schema)
        if unsupported is not None:
            path, kind = unsupported
            raise UnsupportedFieldTypeError(kind, path)

        doc = self._message(reflection, message, root, 0)
        log.debug("projected %s: %d field(s)", root, len(doc))
        return doc

    # ─────────────────────────── message level ──────────────────────────
    def _message(self, reflection: Reflection, message: Any, path: str, depth: int) -> Dict[str, Any]:
        limit = self.settings.max_depth
        if limit is not None and depth > limit:
            raise ProjectionDepthError(limit, path)

        doc: Dict[str, Any] = {}
        for info in reflection.fields(reflection.schema_of(message)):
            field_path = f"{path}.{info.name}"
            if info.repeated:
                count = reflection.count(message, info)
                if count == 0:
                    continue
                doc[info.name] = self._repeated(reflection, message, info, count, field_path, depth)
            elif reflection.has(message, info):
                value = reflection.get(message, info)
                doc[info.name] = self._value(reflection, info, value, field_path, depth)
        return doc

    def _repeated(
        self,
        reflection: Reflection,
        message: Any,
        info: FieldInfo,
        count: int,
        path: str,
        depth: int,
    ) -> JSONValue:
        if info.is_map:
            return self._map(reflection, message, info, path, depth)

        if info.kind in INDEXED:
            return [
                self._value(reflection, info, reflection.get_item(message, info, i), f"{path}[{i}]", depth)
                for i in range(count)
            ]

        return [
            self._value(reflection, info, value, f"{path}[{i}]", depth)
            for i, value in enumerate(reflection.get_all(message, info))
        ]

    def _map(self, reflection: Reflection, message: Any, info: FieldInfo, path: str, depth: int) -> Dict[str, Any]:
        value_info = info.map_value
        # keys sorted: map iteration order is unspecified
        items = sorted(reflection.map_items(message, info), key=lambda kv: kv[0])
        return {
            _map_key(key): self._value(reflection, value_info, value, f"{path}[{key!r}]", depth)
            for key, value in items
        }

    # ──────────────────────────── type dispatch ─────────────────────────
    def _value(self, reflection: Reflection, info: FieldInfo, value: Any, path: str, depth: int) -> JSONValue:
        kind = info.kind
        if kind is FieldKind.MESSAGE:
            return self._message(reflection, value, path, depth + 1)
        if kind is FieldKind.ENUM:
            return _enum(info, value, path)
        if kind is FieldKind.BYTES:
            return self._bytes(value, path)

        convert = SCALAR_CONVERTERS.get(kind)
        if convert is None:
            raise UnsupportedFieldTypeError(kind_name(kind), path)
        return convert(value)

    def _bytes(self, value: Any, path: str) -> str:
        raw = bytes(value)
        if self.settings.bytes_encoding == BYTES_UTF8:
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise BytesDecodeError(f"invalid UTF-8 at byte {exc.start}", path) from exc
        return base64.b64encode(raw).decode("ascii")


def _enum(info: FieldInfo, value: Any, path: str) -> Union[str, int]:
    number = int(value)
    name = info.enum_names.get(number) if info.enum_names is not None else None
    if name is None:
        log.debug("%s: enum number %d has no declared name; emitting the number", path, number)
        return number
    return name


def _map_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def project(message: Any, *, settings: Optional[ProjectionSettings] = None) -> Dict[str, Any]:
    """Project *message* with the reflection that handles its type."""
    return Projector(settings=settings).project(message)
