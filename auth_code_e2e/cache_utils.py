"""Read and reset the token cache file written by the sample app.

The sample app persists MSAL's serialized cache: a JSON object with one section
per entity type, each mapping a cache key to an entity. Credentials carry a
``credential_type`` field (``AccessToken``, ``IdToken`` or ``RefreshToken``),
which is what the suite counts on.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

EMPTY_CACHE: Dict[str, Dict[str, Any]] = {
    "Account": {},
    "IdToken": {},
    "AccessToken": {},
    "RefreshToken": {},
    "AppMetadata": {},
}


class CacheFileError(ValueError):
    """Raised when the cache file exists but cannot be parsed."""


@dataclass
class CachedTokens:
    """Credentials found in a cache file, grouped by type."""

    access_tokens: List[Dict[str, Any]] = field(default_factory=list)
    id_tokens: List[Dict[str, Any]] = field(default_factory=list)
    refresh_tokens: List[Dict[str, Any]] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "access_tokens": len(self.access_tokens),
            "id_tokens": len(self.id_tokens),
            "refresh_tokens": len(self.refresh_tokens),
        }

    def __str__(self) -> str:
        return ", ".join(f"{name}={count}" for name, count in self.counts().items())


def read_cache(cache_location: str | Path) -> Dict[str, Any]:
    """Load the cache file. A missing or empty file reads as an empty cache."""
    path = Path(cache_location)
    if not path.exists():
        return {}
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CacheFileError(f"Token cache {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CacheFileError(f"Token cache {path} must hold a JSON object, got {type(data).__name__}")
    return data


def get_tokens(cache_location: str | Path) -> CachedTokens:
    """Group every credential in the cache by its credential_type."""
    tokens = CachedTokens()
    buckets = {
        "accesstoken": tokens.access_tokens,
        "accesstoken_with_authscheme": tokens.access_tokens,
        "idtoken": tokens.id_tokens,
        "refreshtoken": tokens.refresh_tokens,
    }
    for section in read_cache(cache_location).values():
        if not isinstance(section, dict):
            continue
        for entity in section.values():
            if not isinstance(entity, dict):
                continue
            bucket = buckets.get(str(entity.get("credential_type", "")).lower())
            if bucket is not None:
                bucket.append(entity)
    return tokens


def get_accounts(cache_location: str | Path) -> List[Dict[str, Any]]:
    return list(read_cache(cache_location).get("Account", {}).values())


def get_access_token_for_scope(cache_location: str | Path, scope: str) -> Optional[Dict[str, Any]]:
    """First access token whose target contains the given scope (case-insensitive)."""
    wanted = scope.lower()
    for token in get_tokens(cache_location).access_tokens:
        targets = str(token.get("target", "")).lower().split()
        if wanted in targets:
            return token
    return None


def reset_cache(cache_location: str | Path) -> None:
    """Overwrite the cache file with an empty cache."""
    path = Path(cache_location)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(EMPTY_CACHE), encoding="utf-8")
    logger.debug("Reset token cache at %s", path)
