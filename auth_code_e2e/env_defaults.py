"""Read defaults for the e2e harness from a dotenv-style file.

CI sets everything through environment variables. For local runs the same keys
can live in `.env.defaults` at the repository root (or the file named by
E2E_ENV_DEFAULTS), which keeps the lab service principal out of shell history.
Real environment variables always win over the file.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]


def defaults_path() -> Path:
    explicit = os.getenv("E2E_ENV_DEFAULTS")
    return Path(explicit) if explicit else REPO_ROOT / ".env.defaults"


@lru_cache(maxsize=4)
def parse_env_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key] = value
    return values


def get_env_default(key: str) -> str | None:
    return parse_env_file(defaults_path()).get(key)


def getenv(key: str, default: str | None = None) -> str | None:
    """Environment value, then the defaults file, then the given default."""
    value = os.getenv(key)
    if value:
        return value
    fallback = get_env_default(key)
    return fallback if fallback is not None else default
