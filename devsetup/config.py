"""Configuration management for devsetup."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .context import DEFAULT_COMMAND_TIMEOUT


GLOBAL_CONFIG_PATH = Path.home() / ".devsetup.yaml"
LOCAL_CONFIG_NAME = "devsetup.yaml"
CONFIG_ENV_VAR = "DEVSETUP_CONFIG"


class Config:
    """devsetup configuration with hierarchical lookup.

    Config hierarchy (higher priority first):
    1. Explicit or local config (./devsetup.yaml)
    2. Global config (~/.devsetup.yaml)

    Recognised keys: skip, fatal, command_timeout, upgrade, post_install,
    node_version, nvm_version, postgres_version.
    """

    def __init__(self, config_path: Optional[Path] = None, enable_hierarchy: bool = True, global_path: Path = GLOBAL_CONFIG_PATH):
        self.config_path = Path(config_path) if config_path else global_path
        self.global_path = global_path
        self.enable_hierarchy = enable_hierarchy
        self._data: Dict[str, Any] = {}
        self._global_data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from file(s)."""
        self._data = _read_yaml(self.config_path)
        if self.enable_hierarchy and self.config_path != self.global_path:
            self._global_data = _read_yaml(self.global_path)
        else:
            self._global_data = {}

    def save(self) -> None:
        """Save configuration to primary config file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False)
        except OSError as e:
            raise RuntimeError(f"Failed to save config to {self.config_path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, local first, then global, then default."""
        if key in self._data:
            return self._data[key]
        if key in self._global_data:
            return self._global_data[key]
        return default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    @property
    def skip(self) -> List[str]:
        return [str(s) for s in (self.get("skip") or [])]

    @property
    def fatal(self) -> Dict[str, bool]:
        return {str(k): bool(v) for k, v in (self.get("fatal") or {}).items()}

    @property
    def command_timeout(self) -> float:
        return float(self.get("command_timeout", DEFAULT_COMMAND_TIMEOUT))

    @property
    def upgrade(self) -> bool:
        return bool(self.get("upgrade", True))

    @property
    def post_install(self) -> Optional[List[str]]:
        notes = self.get("post_install")
        return None if notes is None else [str(n) for n in notes]

    @property
    def node_version(self) -> str:
        return str(self.get("node_version", "lts/*"))

    @property
    def nvm_version(self) -> str:
        return str(self.get("nvm_version", "v0.40.1"))

    @property
    def postgres_version(self) -> int:
        return int(self.get("postgres_version", 17))

    @classmethod
    def discover(cls, explicit: Optional[Path] = None, cwd: Optional[Path] = None) -> "Config":
        """Pick the config file: explicit path, $DEVSETUP_CONFIG, ./devsetup.yaml, then global only."""
        if explicit is not None:
            return cls(config_path=explicit)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return cls(config_path=Path(env_path))
        local = (cwd or Path.cwd()) / LOCAL_CONFIG_NAME
        if local.exists():
            return cls(config_path=local)
        return cls(config_path=GLOBAL_CONFIG_PATH, enable_hierarchy=False)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise RuntimeError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(data, dict):
        raise RuntimeError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data
