import json

import pytest
from conftest import ALICE, BOB

from autocompounder.cache import (
    cache_key,
    clear_cache,
    get_cache_dir,
    get_cached,
    load_state,
    migrate_state,
    save_state,
    set_cached,
)
from autocompounder.constants import STATE_SCHEMA_VERSION
from autocompounder.errors import InvalidAddress, StateError
from autocompounder.models import BlockInfo, Claim, Duration, Expiration


def test_cache_key_is_deterministic():
    assert cache_key("state", "demo") == cache_key("state", "demo")
    assert cache_key("state", "demo") != cache_key("state", "other")


def test_get_cache_dir_uses_xdg(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    cache_dir = get_cache_dir()
    assert cache_dir.parent == tmp_path
    assert cache_dir.is_dir()


def test_state_round_trip(state, tmp_path):
    state.pending_claims[ALICE] = 500
    state.claims[BOB] = [Claim(Expiration("height", 400), 1_000, 90)]
    state.latest_unbonding = BlockInfo(300, 1_700_001_000)
    state.update_config(unbonding_period=Duration.height(100), min_unbonding_cooldown=Duration.height(25))

    save_state(state, "demo", tmp_path)
    assert load_state("demo", tmp_path) == state


def test_missing_snapshot(tmp_path):
    assert load_state("missing", tmp_path) is None


def test_corrupted_snapshot_is_treated_as_missing(tmp_path):
    path = set_cached("broken", {"ok": True}, tmp_path)
    path.write_text("{not json", encoding="utf-8")
    assert get_cached("broken", tmp_path) is None


def test_clear_cache(tmp_path, capsys):
    set_cached("entry", [1, 2, 3], tmp_path)
    clear_cache(tmp_path)
    assert get_cached("entry", tmp_path) is None
    assert "Cache cleared" in capsys.readouterr().err

    clear_cache(tmp_path / "elsewhere")
    assert "nothing to clear" in capsys.readouterr().err


def test_migrate_v1_state(state):
    data = state.to_dict()
    data["schema_version"] = 1
    data["pending_claims"] = {ALICE.lower(): "500"}
    data["claims"] = {
        BOB: [
            {
                "unbonding_timestamp": {"kind": "time", "value": 1_700_100_000},
                "amount_of_vault_tokens_to_burn": "1000",
                "amount_of_lp_tokens_to_unbond": "90",
            }
        ]
    }
    data["latest_unbonding"] = 1_700_000_000

    migrated = migrate_state(data)
    assert migrated["schema_version"] == STATE_SCHEMA_VERSION
    assert migrated["latest_unbonding"] == {"height": 0, "time": 1_700_000_000}
    assert migrated["claims"][BOB][0]["vault_tokens_burned"] == "1000"
    assert ALICE in migrated["pending_claims"]


def test_migrate_v1_rejects_bad_keys(state):
    data = state.to_dict()
    data["schema_version"] = 1
    data["pending_claims"] = {"alice": "500"}
    with pytest.raises(InvalidAddress):
        migrate_state(data)


def test_newer_schema_is_rejected(state, tmp_path):
    data = state.to_dict()
    data["schema_version"] = STATE_SCHEMA_VERSION + 1
    set_cached(cache_key("state", "future"), data, tmp_path)
    with pytest.raises(StateError):
        load_state("future", tmp_path)


def test_snapshot_is_json(state, tmp_path):
    path = save_state(state, "demo", tmp_path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["fee_config"]["performance"] == "0.05"
    assert data["config"]["pool_assets"] == ["uatom", "uosmo"]
