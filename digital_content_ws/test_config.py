"""
Tests for configuration loading from environment fragments.
"""
import json

import pytest

from digital_content_ws.config import deep_merge, load_config, redacted, timeout_with_minimum
from digital_content_ws.errors import ConfigurationError


def env(**fragments) -> dict:
    return {f"DIGITAL_CONTENT_WS_JSON_{name}": json.dumps(value) for name, value in fragments.items()}


class TestLoadConfig:

    def test_fragments_merged_in_sorted_order(self):
        environ = env(
            B_SOLR={"solr": {"core": "second", "params": {"qt": "search"}}},
            A_SOLR={"solr": {"host": "http://solr", "core": "first"}},
        )

        config = load_config(environ)

        assert config.solr.host == "http://solr"
        assert config.solr.core == "second"
        assert config.solr.params.qt == "search"

    def test_lists_replace(self):
        environ = env(
            A={"fields": [{"name": "a", "field": "id"}, {"name": "b", "field": "id"}]},
            B={"fields": [{"name": "c", "field": "id"}]},
        )

        config = load_config(environ)

        assert [f.name for f in config.fields] == ["c"]

    def test_solr_host_override(self):
        environ = env(A={"solr": {"host": "http://from-json"}})
        environ["DIGITAL_CONTENT_WS_SOLR_HOST"] = "http://override"

        assert load_config(environ).solr.host == "http://override"

    def test_config_file_loaded_first(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": "9000", "solr": {"core": "from-file"}}))
        environ = env(A={"solr": {"core": "from-env"}})
        environ["DIGITAL_CONTENT_WS_CONFIG_FILE"] = str(path)

        config = load_config(environ)

        assert config.port == "9000"
        assert config.solr.core == "from-env"

    def test_all_decode_errors_reported(self):
        environ = {
            "DIGITAL_CONTENT_WS_JSON_A": "{not json",
            "DIGITAL_CONTENT_WS_JSON_B": "[1, 2]",
        }

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(environ)

        assert len(exc_info.value.problems) == 2

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigurationError, match="bogus"):
            load_config(env(A={"solr": {"bogus": 1}}))

    def test_defaults(self):
        config = load_config({})

        assert config.port == "8080"
        assert config.group_key == "parts"
        assert config.identifier_field == "pid"
        assert config.pdf.endpoints.status == "/status"


def test_redacted_hides_key():
    config = load_config(env(A={"jwt_key": "secret"}))

    assert redacted(config)["jwt_key"] != "secret"


def test_timeout_with_minimum():
    assert timeout_with_minimum("10") == 10
    assert timeout_with_minimum("2") == 5
    assert timeout_with_minimum("") == 5
    assert timeout_with_minimum("abc") == 5


def test_deep_merge():
    merged = deep_merge({"a": {"x": 1, "y": 2}, "b": [1]}, {"a": {"y": 3}, "b": [2]})

    assert merged == {"a": {"x": 1, "y": 3}, "b": [2]}
