from prism_projector.errors import (
    BytesDecodeError,
    ProjectionDepthError,
    ProjectionError,
    SettingsError,
    UnsupportedFieldTypeError,
)
from prism_projector.kinds import FieldKind
from prism_projector.projector import Projector, project, reflection_for
from prism_projector.reflection import FieldInfo, ProtobufReflection, Reflection
from prism_projector.settings import ProjectionSettings

__all__ = [
    "BytesDecodeError",
    "FieldInfo",
    "FieldKind",
    "ProjectionDepthError",
    "ProjectionError",
    "ProjectionSettings",
    "Projector",
    "ProtobufReflection",
    "Reflection",
    "SettingsError",
    "UnsupportedFieldTypeError",
    "project",
    "reflection_for",
]
