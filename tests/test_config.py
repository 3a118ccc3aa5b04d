"""Tests for config module."""

import dataclasses
from pathlib import Path
from unittest.mock import Mock

import pytest
import yaml

from gke_ip_update.config import (
    DEFAULT_LOOKUP_URL,
    ClusterConfig,
    Config,
    WatcherConfig,
    get_config_path,
    load_config,
)
from gke_ip_update.errors import ConfigError


def complete_config(**cluster_overrides):
    values = {
        "service_account": "/keys/sa.json",
        "project": "my-project",
        "zone": "us-central1-c",
        "cluster": "my-cluster",
        "network_name": "home",
    }
    values.update(cluster_overrides)
    return Config(cluster=ClusterConfig(**values))


class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_config_values(self):
        """Config has sensible defaults when no file exists."""
        config = Config()

        assert config.watcher.check_interval == 180.0
        assert config.watcher.lookup_url == DEFAULT_LOOKUP_URL
        assert config.watcher.persist_on_failure is True
        assert config.state_dir == "~/.gke_ip_update"
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_paths_expand_home(self):
        config = Config()

        assert config.state_path == Path.home() / ".gke_ip_update"
        assert config.log_path == Path.home() / ".gke_ip_update" / "gke_ip_update.log"

    def test_custom_log_file(self, tmp_path):
        config = Config(log_file=str(tmp_path / "agent.log"))

        assert config.log_path == tmp_path / "agent.log"

    def test_config_is_immutable(self):
        """Config cannot be changed after construction."""
        config = Config()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.log_level = "DEBUG"


class TestValidate:
    """Test required value checks."""

    def test_complete_config_is_valid(self):
        complete_config().validate()

    @pytest.mark.parametrize(
        "field,message",
        [
            ("service_account", "No path for the service account provided"),
            ("project", "No project provided"),
            ("zone", "No zone provided"),
            ("cluster", "ClusterID is not provided"),
            ("network_name", "DisplayName is not provided"),
        ],
    )
    def test_missing_value_raises(self, field, message):
        config = complete_config(**{field: ""})

        with pytest.raises(ConfigError, match=message):
            config.validate()

    def test_non_positive_interval_raises(self):
        config = dataclasses.replace(
            complete_config(), watcher=WatcherConfig(check_interval=0)
        )

        with pytest.raises(ConfigError):
            config.validate()


class TestWithOverrides:
    """Test layering flags over file values."""

    def test_none_values_are_ignored(self):
        base = complete_config()

        config = base.with_overrides(
            cluster={"project": None}, watcher={"check_interval": None}, log_level=None
        )

        assert config == base

    def test_values_override(self):
        base = complete_config()

        config = base.with_overrides(
            cluster={"project": "other"},
            watcher={"check_interval": 60.0},
            state_dir="/tmp/state",
        )

        assert config.cluster.project == "other"
        assert config.cluster.zone == "us-central1-c"
        assert config.watcher.check_interval == 60.0
        assert config.state_dir == "/tmp/state"
        assert base.cluster.project == "my-project"


class TestGetConfigPath:
    """Test config path resolution."""

    def test_get_config_path_default(self):
        path = get_config_path()
        assert path == Path.home() / ".config" / "gke-ip-update" / "config.yaml"

    def test_get_config_path_custom(self):
        custom = Path("/custom/config.yaml")
        assert get_config_path(custom) == custom


class TestLoadConfig:
    """Test config loading."""

    def test_load_config_no_file_returns_defaults(self, tmp_path):
        config = load_config(tmp_path / "nonexistent.yaml")

        assert config == Config()

    def test_load_config_from_file(self, tmp_path):
        """Config loads values from YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "cluster": {
                        "project": "my-project",
                        "zone": "europe-west1-b",
                        "cluster": "prod",
                        "network_name": "office",
                        "service_account": "/keys/sa.json",
                    },
                    "watcher": {"check_interval": 60, "persist_on_failure": False},
                    "state_dir": str(tmp_path / "state"),
                    "log_level": "DEBUG",
                }
            )
        )

        config = load_config(config_file)

        assert config.cluster.zone == "europe-west1-b"
        assert config.cluster.network_name == "office"
        assert config.watcher.check_interval == 60
        assert config.watcher.persist_on_failure is False
        assert config.watcher.lookup_url == DEFAULT_LOOKUP_URL
        assert config.state_dir == str(tmp_path / "state")
        assert config.log_level == "DEBUG"

    def test_unknown_keys_ignored(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"cluster": {"project": "p", "color": "blue"}}))

        config = load_config(config_file)

        assert config.cluster.project == "p"

    def test_load_config_with_injectable_reader(self, tmp_path):
        """Config loading supports injectable file reader for testing."""
        mock_reader = Mock(return_value={"log_level": "WARNING"})

        config = load_config(tmp_path / "config.yaml", file_reader=mock_reader)

        assert config.log_level == "WARNING"
        mock_reader.assert_called_once_with(tmp_path / "config.yaml")

    def test_load_config_rejects_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_load_config_rejects_non_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_load_config_handles_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert load_config(config_file) == Config()
