"""
Light-weight .env loader that sits inside prism_shared.

• Looks for  <prism_shared>/<profile>.env, or $PRISM_ENV_DIR/<profile>.env
• Ignores blank lines & #-comments
• Does **not** overwrite variables already defined in the host shell
  (so command-line/CI overrides still win).
• No external dependencies - pure std-lib.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Dict


def _parse_env_file(path: Path) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue                         # skip malformed
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'\"")   # trim simple quotes
        env[key] = value
    return env


def env_file_for(profile: str) -> Path:
    override = os.getenv("PRISM_ENV_DIR")
    root = Path(override) if override else Path(__file__).resolve().parent
    return root / f"{profile}.env"


def load_env(profile: str = "projector") -> bool:
    """
    Load projector.env (or another *profile*) **once, at process start-up**.
    Returns True when a file was found and applied.

    Example:
        from prism_shared.env_loader import load_env
        load_env("projector")
    """
    env_file = env_file_for(profile)

    if not env_file.exists():
        return False                # nothing to do

    for k, v in _parse_env_file(env_file).items():
        # Keep explicit host-level vars intact
        os.environ.setdefault(k, v)
    return True
