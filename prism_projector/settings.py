from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, Mapping, Optional

from prism_projector.errors import SettingsError
from prism_shared.env_loader import load_env

BYTES_BASE64: Final = "base64"
BYTES_UTF8: Final = "utf8"
BYTES_ENCODINGS: Final = (BYTES_BASE64, BYTES_UTF8)

DEFAULT_MAX_DEPTH: Final = 100


@dataclass(slots=True, frozen=True)
class ProjectionSettings:
    """
    max_depth       deepest message nesting allowed (root = 0); None disables
    bytes_encoding  "base64" (default) or "utf8" (strict decode, legacy)
    """
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH
    bytes_encoding: str = BYTES_BASE64

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise SettingsError(f"max_depth must be >= 0 or None, got {self.max_depth}")
        if self.bytes_encoding not in BYTES_ENCODINGS:
            raise SettingsError(
                f"bytes_encoding must be one of {', '.join(BYTES_ENCODINGS)}, "
                f"got {self.bytes_encoding!r}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProjectionSettings":
        """
        PRISM_MAX_DEPTH=<int>          (0 disables the guard)
        PRISM_BYTES_ENCODING=base64|utf8
        """
        env = os.environ if environ is None else environ
        return cls(
            max_depth=_parse_depth(env.get("PRISM_MAX_DEPTH")),
            bytes_encoding=(env.get("PRISM_BYTES_ENCODING") or BYTES_BASE64).strip().lower(),
        )


def _parse_depth(raw: str | None) -> Optional[int]:
    if raw is None or not raw.strip():
        return DEFAULT_MAX_DEPTH
    try:
        depth = int(raw)
    except ValueError as exc:
        raise SettingsError(f"PRISM_MAX_DEPTH must be an integer, got {raw!r}") from exc
    if depth < 0:
        raise SettingsError(f"PRISM_MAX_DEPTH must be >= 0, got {depth}")
    return depth or None


@lru_cache(maxsize=1)
def default_settings() -> ProjectionSettings:
    """Settings from projector.env + the process environment, read once."""
    load_env("projector")
    return ProjectionSettings.from_env()
