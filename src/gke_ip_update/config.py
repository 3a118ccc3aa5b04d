"""Configuration management for gke-ip-update."""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable

import yaml

from gke_ip_update.errors import ConfigError


DEFAULT_LOOKUP_URL = "http://checkip.amazonaws.com/"
DEFAULT_STATE_DIR = "~/.gke_ip_update"
LOG_FILE_NAME = "gke_ip_update.log"


@dataclass(frozen=True)
class ClusterConfig:
    """Target cluster and the allow-list entry this agent owns."""

    service_account: str = ""  # credential file path
    project: str = ""
    zone: str = ""
    cluster: str = ""
    network_name: str = ""  # display name of the managed entry


@dataclass(frozen=True)
class WatcherConfig:
    """IP watcher configuration."""

    check_interval: float = 180.0  # seconds
    lookup_url: str = DEFAULT_LOOKUP_URL
    lookup_timeout: float = 10.0  # seconds
    persist_on_failure: bool = True  # save observed IP even if the update failed


@dataclass(frozen=True)
class Config:
    """Agent configuration."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    state_dir: str = DEFAULT_STATE_DIR
    log_level: str = "INFO"
    log_file: str | None = None  # defaults to <state_dir>/gke_ip_update.log

    @property
    def state_path(self) -> Path:
        """Expanded state directory."""
        return Path(self.state_dir).expanduser()

    @property
    def log_path(self) -> Path:
        """Expanded log file path."""
        if self.log_file:
            return Path(self.log_file).expanduser()
        return self.state_path / LOG_FILE_NAME

    def validate(self) -> None:
        """Check that every required cluster value is present.

        Raises:
            ConfigError: Naming the first missing value.
        """
        required = [
            (self.cluster.service_account, "No path for the service account provided"),
            (self.cluster.project, "No project provided"),
            (self.cluster.zone, "No zone provided"),
            (self.cluster.cluster, "ClusterID is not provided"),
            (self.cluster.network_name, "DisplayName is not provided"),
        ]
        for value, message in required:
            if not value:
                raise ConfigError(message)

        if self.watcher.check_interval <= 0:
            raise ConfigError(
                f"check_interval must be positive, got {self.watcher.check_interval}"
            )

    def with_overrides(
        self,
        cluster: dict[str, Any] | None = None,
        watcher: dict[str, Any] | None = None,
        **top_level: Any,
    ) -> "Config":
        """Return a copy with non-None override values applied.

        Used to layer command line flags over file values.
        """
        cluster_changes = {k: v for k, v in (cluster or {}).items() if v is not None}
        watcher_changes = {k: v for k, v in (watcher or {}).items() if v is not None}
        changes = {k: v for k, v in top_level.items() if v is not None}

        return replace(
            self,
            cluster=replace(self.cluster, **cluster_changes),
            watcher=replace(self.watcher, **watcher_changes),
            **changes,
        )


def get_config_path(custom_path: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        custom_path: Override path. If None, returns default.

    Returns:
        Path to config file.
    """
    if custom_path is not None:
        return custom_path
    return Path.home() / ".config" / "gke-ip-update" / "config.yaml"


def _default_file_reader(path: Path) -> dict[str, Any] | None:
    """Default file reader that loads YAML from disk."""
    if not path.exists():
        return None
    try:
        content = path.read_text()
        if not content.strip():
            return None
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}")


def _section(data: dict[str, Any], cls: type, name: str) -> dict[str, Any]:
    """Pick the known keys of a config section."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    known = {f.name for f in fields(cls)}
    return {k: v for k, v in section.items() if k in known}


def load_config(
    path: Path | None = None,
    file_reader: Callable[[Path], dict[str, Any] | None] | None = None,
) -> Config:
    """Load configuration from file.

    Args:
        path: Path to config file. If None, uses default path.
        file_reader: Injectable file reader for testing.

    Returns:
        Config object with values from file or defaults.

    Raises:
        ConfigError: If the file cannot be parsed.
    """
    config_path = get_config_path(path)
    reader = file_reader or _default_file_reader

    data = reader(config_path)

    if data is None:
        return Config()

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    cluster_config = ClusterConfig(**_section(data, ClusterConfig, "cluster"))
    watcher_config = WatcherConfig(**_section(data, WatcherConfig, "watcher"))

    return Config(
        cluster=cluster_config,
        watcher=watcher_config,
        state_dir=data.get("state_dir", Config.state_dir),
        log_level=data.get("log_level", Config.log_level),
        log_file=data.get("log_file", Config.log_file),
    )
