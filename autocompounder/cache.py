"""On-disk vault state snapshots and schema migration."""

import hashlib
import json
import os
import shutil
import sys
from pathlib import Path
from typing import Any

from autocompounder.addresses import to_address
from autocompounder.constants import CACHE_DIR_NAME, CACHE_VERSION, STATE_SCHEMA_VERSION
from autocompounder.errors import StateError
from autocompounder.state import VaultState

# Claim field names used by schema version 1.
_V1_CLAIM_FIELDS = {
    "amount_of_vault_tokens_to_burn": "vault_tokens_burned",
    "amount_of_lp_tokens_to_unbond": "lp_tokens_to_unbond",
}


def _cache_path(base: str | Path | None) -> Path:
    if base is not None:
        return Path(base) / CACHE_DIR_NAME
    cache_home = os.getenv("XDG_CACHE_HOME")
    root = Path(cache_home) if cache_home else Path.home() / ".cache"
    return root / CACHE_DIR_NAME


def get_cache_dir(base: str | Path | None = None) -> Path:
    """Get the cache directory path.

    Uses `base` if given, else XDG_CACHE_HOME if available, otherwise ~/.cache.
    """
    cache_dir = _cache_path(base)
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def clear_cache(base: str | Path | None = None) -> None:
    """Remove every stored snapshot."""
    cache_dir = _cache_path(base)
    if cache_dir.exists():
        shutil.rmtree(cache_dir)
        print("✅ Cache cleared successfully.", file=sys.stderr)
    else:
        print("ℹ️  Cache directory does not exist (nothing to clear).", file=sys.stderr)


def cache_key(prefix: str, *parts: Any) -> str:
    """Generate a deterministic cache key from prefix and parts."""
    key_str = f"{prefix}:{CACHE_VERSION}:" + ":".join(str(p) for p in parts)
    return hashlib.sha256(key_str.encode()).hexdigest()


def get_cached(key: str, base: str | Path | None = None) -> Any | None:
    """Get cached data by key. Returns None if not found or unreadable."""
    cache_file = get_cache_dir(base) / f"{key}.json"
    if not cache_file.exists():
        return None
    try:
        with cache_file.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        # A corrupted snapshot is treated as missing
        return None


def set_cached(key: str, data: Any, base: str | Path | None = None) -> Path:
    """Store data in cache and return the file written."""
    cache_file = get_cache_dir(base) / f"{key}.json"
    with cache_file.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=None, separators=(",", ":"))
    return cache_file


def migrate_state(data: dict[str, Any]) -> dict[str, Any]:
    """Upgrade a stored state dict to the current schema version.

    Version 1 keyed the claim maps by unvalidated strings and used the long claim field names.
    Every key is validated while migrating, so a bad entry fails loudly instead of being dropped.
    """
    version = int(data.get("schema_version", 1))
    if version > STATE_SCHEMA_VERSION:
        raise StateError(
            f"State schema {version} is newer than supported ({STATE_SCHEMA_VERSION})",
            version=version,
        )
    if version == STATE_SCHEMA_VERSION:
        return data

    migrated = dict(data)
    migrated["pending_claims"] = {
        to_address(user): str(amount) for user, amount in data.get("pending_claims", {}).items()
    }
    claims: dict[str, list[dict[str, Any]]] = {}
    for user, user_claims in data.get("claims", {}).items():
        claims[to_address(user)] = [
            {_V1_CLAIM_FIELDS.get(name, name): value for name, value in claim.items()} for claim in user_claims
        ]
    migrated["claims"] = claims
    latest = data.get("latest_unbonding")
    if latest is not None and not isinstance(latest, dict):
        # Version 1 stored only the block time.
        migrated["latest_unbonding"] = {"height": 0, "time": int(latest)}
    migrated["schema_version"] = STATE_SCHEMA_VERSION
    return migrated


def save_state(state: VaultState, name: str, base: str | Path | None = None) -> Path:
    """Write `state` under the snapshot `name`."""
    return set_cached(cache_key("state", name), state.to_dict(), base)


def load_state(name: str, base: str | Path | None = None) -> VaultState | None:
    """Read the snapshot `name`, migrating older schemas. Returns None if there is none."""
    data = get_cached(cache_key("state", name), base)
    if data is None:
        return None
    return VaultState.from_dict(migrate_state(data))
