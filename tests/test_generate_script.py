"""
Integration test for the generate_setlist script.
"""

import json

import pytest
from scripts.generate_setlist import load_catalog, main


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "songs": [
            {"_id": f"s{n}", "title": f"Song {n}", "energyLevel": 1 + n % 5, "vocalIntensity": 2}
            for n in range(8)
        ],
        "sets": [{"setIndex": 1, "songsPerSet": 4}, {"setIndex": 2, "songsPerSet": 6}],
        "pinned": [{"setIndex": 2, "position": 5, "songId": "s0"}],
        "excluded": ["s7"],
        "flowPreset": "party-starter",
    }))
    return path


@pytest.fixture
def script_env(tmp_path, catalog_file, monkeypatch):
    output = tmp_path / "out" / "setlist.json"
    monkeypatch.setenv("SETLIST_CATALOG_PATH", str(catalog_file))
    monkeypatch.setenv("SETLIST_OUTPUT_PATH", str(output))
    monkeypatch.setenv("SETLIST_ENGINE_CONFIG", str(tmp_path / "no-config.toml"))
    monkeypatch.setenv("SETLIST_SEED", "42")
    return output


def test_load_catalog(catalog_file):
    catalog = load_catalog(catalog_file)
    assert len(catalog["songs"]) == 8
    assert catalog["pinned"][0].song_id == "s0"
    assert catalog["flow_preset"] == "party-starter"


def test_writes_result(script_env):
    assert main() == 0

    data = json.loads(script_env.read_text())
    song_ids = [i["song_id"] for i in data["items"]]
    assert len(song_ids) == 7
    assert "s7" not in song_ids
    assert {"set_index": 2, "position": 5, "song_id": "s0", "is_pinned": True} in data["items"]
    # 7 usable songs for 10 slots
    assert data["warnings"] == ["Set 2: Not enough songs available for positions 2-4"]


def test_seed_reproducible(script_env):
    main()
    first = script_env.read_text()
    main()
    assert script_env.read_text() == first


def test_missing_catalog(script_env, monkeypatch, tmp_path):
    monkeypatch.setenv("SETLIST_CATALOG_PATH", str(tmp_path / "absent.json"))
    assert main() == 1
