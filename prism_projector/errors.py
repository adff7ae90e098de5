from __future__ import annotations


class ProjectionError(Exception):
    """Base class; *path* is the dotted field path where projection stopped."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class UnsupportedFieldTypeError(ProjectionError):
    def __init__(self, kind_name: str, path: str = ""):
        self.kind_name = kind_name
        super().__init__(f"field type '{kind_name}' is not supported", path)


class ProjectionDepthError(ProjectionError):
    def __init__(self, max_depth: int, path: str = ""):
        self.max_depth = max_depth
        super().__init__(f"message nesting exceeds max_depth={max_depth}", path)


class BytesDecodeError(ProjectionError, ValueError):
    pass


class SettingsError(ProjectionError, ValueError):
    pass
