"""
Declared field kinds and the numeric projection policy.

Kind values are the protobuf `FieldDescriptor.TYPE_*` numbers, so a
descriptor's ``type`` converts with ``FieldKind(fd.type)``.
"""
from __future__ import annotations

import math
from enum import IntEnum
from typing import Any, Callable, Dict, Final, FrozenSet


class FieldKind(IntEnum):
    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18


FLOATING: Final[FrozenSet[FieldKind]] = frozenset({FieldKind.DOUBLE, FieldKind.FLOAT})

SIGNED_32: Final = frozenset({FieldKind.INT32, FieldKind.SINT32, FieldKind.SFIXED32})
SIGNED_64: Final = frozenset({FieldKind.INT64, FieldKind.SINT64, FieldKind.SFIXED64})
UNSIGNED_32: Final = frozenset({FieldKind.UINT32, FieldKind.FIXED32})
UNSIGNED_64: Final = frozenset({FieldKind.UINT64, FieldKind.FIXED64})
INTEGRAL: Final = SIGNED_32 | SIGNED_64 | UNSIGNED_32 | UNSIGNED_64

# Kinds that need more than a plain value conversion: handled by the projector.
COMPOSITE: Final = frozenset({FieldKind.MESSAGE, FieldKind.ENUM, FieldKind.BYTES})
UNSUPPORTED: Final = frozenset({FieldKind.GROUP})

# Repeated fields of these kinds are read element by element.
INDEXED: Final = frozenset({FieldKind.MESSAGE, FieldKind.ENUM})


def _floating(value: Any) -> Any:
    # JSON has no NaN or Infinity tokens
    value = float(value)
    return value if math.isfinite(value) else None


def _integral(value: Any) -> int:
    # bool is an int subclass; a schema-typed integer never is
    if isinstance(value, bool):
        raise TypeError(f"expected integer, got {type(value).__name__}")
    return int(value)


Converter = Callable[[Any], Any]

SCALAR_CONVERTERS: Final[Dict[FieldKind, Converter]] = {
    **{k: _floating for k in FLOATING},
    **{k: _integral for k in INTEGRAL},
    FieldKind.BOOL: bool,
    FieldKind.STRING: str,
}


def _check_exhaustive() -> None:
    handled = set(SCALAR_CONVERTERS) | COMPOSITE | UNSUPPORTED
    missing = set(FieldKind) - handled
    if missing:
        names = ", ".join(sorted(k.name for k in missing))
        raise RuntimeError(f"FieldKind values without a projection rule: {names}")


_check_exhaustive()


def kind_name(kind: int) -> str:
    try:
        return FieldKind(kind).name.lower()
    except ValueError:
        return f"type#{kind}"
