import json

import pytest
import yaml

from conftest import CONFIG_PATH
from discovery_engine.configs import get_config_value, load_config, validate_config
from discovery_engine.deck import DeckConfig
from discovery_engine.filtering import DiscoveryFilters
from discovery_engine.scoring import ScoringConfig
from discovery_engine.storage import FilterStore


@pytest.fixture
def config():
    return load_config(str(CONFIG_PATH))


def test_shipped_config_is_valid(config):
    assert validate_config(config) == []
    assert ScoringConfig.from_config(config).weights.total() == pytest.approx(1.0)
    assert DeckConfig.from_config(config) == DeckConfig()


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_empty_config_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    with pytest.raises(ValueError, match="empty"):
        load_config(str(path))


def test_bad_weights_and_sections_are_reported(config):
    del config["storage"]
    config["scoring"]["weights"]["budget"] = 0.5
    config["scoring"]["weights"]["charisma"] = 0.1
    config["deck"]["page_size"] = 0
    issues = validate_config(config)
    assert "Missing required section: storage" in issues
    assert any("don't sum to 1" in issue for issue in issues)
    assert any("Unknown scoring weights" in issue for issue in issues)
    assert any("deck.page_size" in issue for issue in issues)


def test_zero_low_watermark_is_reported(config):
    config["deck"]["low_watermark"] = 0
    assert validate_config(config) == ["deck.low_watermark must be >= 1, got 0"]


def test_config_round_trips_through_yaml(tmp_path, config):
    path = tmp_path / "copy.yaml"
    path.write_text(yaml.safe_dump(config))
    assert load_config(str(path)) == config


def test_get_config_value(config):
    assert get_config_value(config, "scoring.weights.budget") == 0.20
    assert get_config_value(config, "deck.low_watermark") == 3
    assert get_config_value(config, "deck.nothing", default="x") == "x"
    assert get_config_value(config, "global.random_seed.deeper") is None


# -----------------------------------------------------------------------------
# FilterStore
# -----------------------------------------------------------------------------

def test_store_round_trip(tmp_path):
    store = FilterStore(str(tmp_path / "state.json"))
    filters = DiscoveryFilters().merged({"ageRange": {"min": 25, "max": 30}, "hasPhotos": True})
    store.save(filters, "yoga")
    assert store.load() == (filters, "yoga")


def test_store_without_file_is_empty(tmp_path):
    assert FilterStore(str(tmp_path / "missing.json")).load() == (None, "")


def test_store_keeps_other_keys(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"auth-store": {"token": "t"}}))
    store = FilterStore(str(path))
    store.save(DiscoveryFilters())
    data = json.loads(path.read_text())
    assert data["auth-store"] == {"token": "t"}
    store.clear()
    assert json.loads(path.read_text()) == {"auth-store": {"token": "t"}}


def test_store_discards_invalid_filters(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"discovery-store": {
        "state": {"filters": {"ageRange": {"min": 40, "max": 20}}, "searchQuery": "art"},
        "version": 0,
    }}))
    filters, query = FilterStore(str(path)).load()
    assert filters is None
    assert query == "art"


def test_store_discards_null_range(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"discovery-store": {
        "state": {"filters": {"budgetRange": None}, "searchQuery": "art"},
        "version": 0,
    }}))
    assert FilterStore(str(path)).load() == (None, "art")


def test_store_ignores_unreadable_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    assert FilterStore(str(path)).load() == (None, "")


def test_store_from_config(config):
    store = FilterStore.from_config(config)
    assert store.key == "discovery-store"
    assert store.path.name == "discovery_state.json"
