"""Configuration loading service"""

import os
from pathlib import Path
from typing import List, Optional, Union

import yaml

from ..constants import ENV_CONFIG_PATH, PROJECT_CONFIG_FILE
from ..exceptions import ConfigError
from ..models.config import EngineConfig


def candidate_paths(explicit: Optional[Union[str, Path]] = None,
                    cwd: Optional[Path] = None) -> List[Path]:
    """Configuration file locations in lookup order"""
    if explicit:
        return [Path(explicit).expanduser()]

    candidates = []
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        candidates.append(Path(env_path).expanduser())

    cwd = (cwd or Path.cwd()).resolve()
    for folder in [cwd] + list(cwd.parents):
        candidates.append(folder / PROJECT_CONFIG_FILE)

    candidates.append(Path.home() / PROJECT_CONFIG_FILE)
    return candidates


def find_config_file(explicit: Optional[Union[str, Path]] = None,
                     cwd: Optional[Path] = None) -> Path:
    """Locate the configuration file

    Raises:
        ConfigError: If no candidate exists
    """
    candidates = candidate_paths(explicit, cwd)
    for path in candidates:
        if path.is_file():
            return path

    if explicit:
        raise ConfigError(f"Configuration file not found: {candidates[0]}")
    raise ConfigError(
        f"No {PROJECT_CONFIG_FILE} found (set {ENV_CONFIG_PATH} or pass --config)"
    )


class ConfigService:
    """Service for loading engine configuration"""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config service

        Args:
            config_path: Explicit configuration file; searched for when omitted
        """
        self._explicit = config_path
        self.config_path: Optional[Path] = None
        self._config: Optional[EngineConfig] = None

    @property
    def config(self) -> EngineConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> EngineConfig:
        """Load configuration from file

        Environment variables (``$VAR``/``${VAR}``) are expanded before the
        YAML is parsed. Relative paths resolve against the file's folder.

        Raises:
            ConfigError: Missing file or invalid content
        """
        self.config_path = find_config_file(self._explicit)

        try:
            content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {self.config_path}: {e}")

        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}")

        try:
            config = EngineConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}")

        base = self.config_path.parent
        paths = config.paths
        for name in ("releases_root", "config_dir", "build_root", "state_root"):
            value = Path(getattr(paths, name)).expanduser()
            if not value.is_absolute():
                value = base / value
            setattr(paths, name, str(value))

        self._config = config
        return self._config

    def save_config(self, config: Optional[EngineConfig] = None) -> Path:
        """Write configuration back to its file"""
        if config:
            self._config = config
        if not self._config:
            raise ValueError("No configuration to save")

        path = self.config_path or Path.cwd() / PROJECT_CONFIG_FILE
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)
        self.config_path = path
        return path


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load the engine configuration"""
    return ConfigService(config_path).load_config()
