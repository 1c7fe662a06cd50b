"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_COPY_COMMAND,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_MAX_WAIT,
    DEFAULT_SSH_PORT,
    SELF_DEPLOY_STAGING_SUFFIX,
)


@dataclass
class PathsConfig:
    """Filesystem locations used by the engine"""

    releases_root: str
    config_dir: str
    build_root: str = "/tmp/release-engine"
    state_root: str = "/var/lib/release-engine"

    @property
    def releases_path(self) -> Path:
        return Path(self.releases_root)

    @property
    def config_path(self) -> Path:
        return Path(self.config_dir)

    @property
    def build_path(self) -> Path:
        return Path(self.build_root)

    @property
    def state_path(self) -> Path:
        return Path(self.state_root)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "releases_root": self.releases_root,
            "config_dir": self.config_dir,
            "build_root": self.build_root,
            "state_root": self.state_root,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PathsConfig':
        """Create from dictionary"""
        if not data.get("releases_root") or not data.get("config_dir"):
            raise ValueError("paths section requires 'releases_root' and 'config_dir'")
        return cls(
            releases_root=str(data["releases_root"]),
            config_dir=str(data["config_dir"]),
            build_root=str(data.get("build_root", "/tmp/release-engine")),
            state_root=str(data.get("state_root", "/var/lib/release-engine")),
        )


@dataclass
class RepositoryConfig:
    """Subversion repository settings"""

    url: str = ""
    config_path: str = "AppConfigs"
    executable: str = "svn"
    username: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "url": self.url,
            "config_path": self.config_path,
            "executable": self.executable,
        }
        if self.username:
            data["username"] = self.username
        if self.password:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositoryConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class NotificationConfig:
    """SMTP notification settings"""

    enabled: bool = True
    host: str = "localhost"
    port: int = 25
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    from_address: str = "release-engine@localhost"
    admin_emails: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "enabled": self.enabled,
            "host": self.host,
            "port": self.port,
            "use_tls": self.use_tls,
            "from_address": self.from_address,
            "admin_emails": self.admin_emails,
        }
        if self.username:
            data["username"] = self.username
        if self.password:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NotificationConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class RemoteConfig:
    """Remote execution channel and relay host settings"""

    relay_host: Optional[str] = None
    port: int = DEFAULT_SSH_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    key_filename: Optional[str] = None
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    engine_command: str = "release-engine"
    copy_command: str = DEFAULT_COPY_COMMAND

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "relay_host": self.relay_host,
            "port": self.port,
            "connect_timeout": self.connect_timeout,
            "engine_command": self.engine_command,
            "copy_command": self.copy_command,
        }
        if self.username:
            data["username"] = self.username
        if self.password:
            data["password"] = self.password
        if self.key_filename:
            data["key_filename"] = self.key_filename
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RemoteConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class DatabaseConfig:
    """Database deploy settings"""

    url_template: str = (
        "mssql+pyodbc://@{server}/{database}"
        "?driver=ODBC+Driver+18+for+SQL+Server&trusted_connection=yes"
    )
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_wait: float = DEFAULT_POLL_MAX_WAIT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "url_template": self.url_template,
            "poll_interval": self.poll_interval,
            "max_wait": self.max_wait,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DatabaseConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class ReleaseNotesConfig:
    """Release notes generation settings"""

    enabled: bool = True
    baseline_environment: str = "PROD"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "enabled": self.enabled,
            "baseline_environment": self.baseline_environment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReleaseNotesConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class SelfDeployConfig:
    """Framework self-deploy settings"""

    application: str = "RELEASEENGINE"
    install_dir: str = "/opt/release-engine"
    staging_suffix: str = SELF_DEPLOY_STAGING_SUFFIX
    python: str = "python3"

    @property
    def staging_dir(self) -> str:
        return f"{self.install_dir.rstrip('/')}{self.staging_suffix}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "application": self.application,
            "install_dir": self.install_dir,
            "staging_suffix": self.staging_suffix,
            "python": self.python,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelfDeployConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class EngineConfig:
    """Complete configuration"""

    paths: PathsConfig
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    release_notes: ReleaseNotesConfig = field(default_factory=ReleaseNotesConfig)
    self_deploy: SelfDeployConfig = field(default_factory=SelfDeployConfig)
    logging: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "paths": self.paths.to_dict(),
            "repository": self.repository.to_dict(),
            "notifications": self.notifications.to_dict(),
            "remote": self.remote.to_dict(),
            "database": self.database.to_dict(),
            "release_notes": self.release_notes.to_dict(),
            "self_deploy": self.self_deploy.to_dict(),
            "logging": self.logging,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Create from dictionary"""
        if not isinstance(data, dict) or "paths" not in data:
            raise ValueError("configuration requires a 'paths' section")

        return cls(
            paths=PathsConfig.from_dict(data["paths"]),
            repository=RepositoryConfig.from_dict(data.get("repository") or {}),
            notifications=NotificationConfig.from_dict(data.get("notifications") or {}),
            remote=RemoteConfig.from_dict(data.get("remote") or {}),
            database=DatabaseConfig.from_dict(data.get("database") or {}),
            release_notes=ReleaseNotesConfig.from_dict(data.get("release_notes") or {}),
            self_deploy=SelfDeployConfig.from_dict(data.get("self_deploy") or {}),
            logging=data.get("logging") or {},
        )
