"""
tests/test_config.py — User configuration tests.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import knc.config
from knc.config import KncConfig, config_path, load_config
from knc.errors import ConfigError
from knc.flags.reference import GroupVersionKind
from knc.flags.sink import GroupVersionResource


@pytest.fixture(autouse=True)
def knc_home(tmp_path, monkeypatch):
    home = tmp_path / "knc"
    home.mkdir()
    monkeypatch.setattr(knc.config, "KNC_HOME", home)
    return home


def write_config(home, text):
    path = home / "config.yaml"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self):
        cfg = load_config()
        assert cfg == KncConfig()
        assert cfg.sink_table()["ksvc"] == GroupVersionResource("serving.knative.dev", "v1", "services")
        assert "imc" in cfg.channel_type_table()
        assert "ksvc" in cfg.alias_table()

    def test_default_path(self, knc_home):
        assert config_path() == knc_home / "config.yaml"

    def test_sink_mappings(self, knc_home):
        write_config(knc_home, """
eventing:
  sink-mappings:
    - prefix: svc
      group: core
      version: v1
      resource: services
    - prefix: pipe
      group: special.dev
      version: v1alpha1
      resource: pipes
""")
        table = load_config().sink_table()
        assert table["svc"] == GroupVersionResource("", "v1", "services")
        assert table["pipe"] == GroupVersionResource("special.dev", "v1alpha1", "pipes")
        assert "broker" in table

    def test_legacy_sink_key(self, knc_home):
        write_config(knc_home, """
sink:
  - prefix: pipe
    group: special.dev
    version: v1alpha1
    resource: pipes
""")
        assert load_config().sink_mappings[0].prefix == "pipe"

    def test_channel_types_and_aliases(self, knc_home):
        write_config(knc_home, """
eventing:
  channel-type-mappings:
    - alias: kafka
      group: messaging.knative.dev
      version: v1alpha1
      kind: KafkaChannel
aliases:
  - alias: deploy
    group: apps
    version: v1
    kind: Deployment
    resource: deployments
""")
        cfg = load_config()
        assert cfg.channel_type_table()["kafka"] == GroupVersionKind(
            "messaging.knative.dev", "v1alpha1", "KafkaChannel"
        )
        assert cfg.alias_table()["deploy"] == GroupVersionKind("apps", "v1", "Deployment", "deployments")

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("aliases:\n  - alias: pod\n    kind: Pod\n")
        alias = load_config(path).aliases[0]
        assert (alias.alias, alias.group, alias.version) == ("pod", "", "v1")

    def test_empty_file(self, knc_home):
        write_config(knc_home, "")
        assert load_config() == KncConfig()

    def test_invalid_yaml(self, knc_home):
        write_config(knc_home, "eventing: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config()

    def test_not_a_mapping(self, knc_home):
        write_config(knc_home, "- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config()

    def test_entry_missing_keys(self, knc_home):
        write_config(knc_home, "eventing:\n  sink-mappings:\n    - prefix: pipe\n")
        with pytest.raises(ConfigError, match="missing resource"):
            load_config()

    def test_entries_must_be_list(self, knc_home):
        write_config(knc_home, "aliases:\n  deploy: Deployment\n")
        with pytest.raises(ConfigError, match="'aliases' .* must be a list"):
            load_config()
