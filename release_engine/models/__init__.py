# release_engine/models/__init__.py
"""Data models for release-engine"""

from .config import (
    EngineConfig,
    PathsConfig,
    RepositoryConfig,
    NotificationConfig,
    RemoteConfig,
    DatabaseConfig,
    ReleaseNotesConfig,
    SelfDeployConfig,
)
from .context import TaskContext, BuildContext, DeployContext
from .descriptor import ApplicationDescriptor, DeployTarget, DatabaseSettings
from .history import DeployRecord
from .result import OperationStatus, ErrorDetail, Result, BuildResult, DeployResult

__all__ = [
    # Config models
    "EngineConfig",
    "PathsConfig",
    "RepositoryConfig",
    "NotificationConfig",
    "RemoteConfig",
    "DatabaseConfig",
    "ReleaseNotesConfig",
    "SelfDeployConfig",

    # Task contexts
    "TaskContext",
    "BuildContext",
    "DeployContext",

    # Descriptor models
    "ApplicationDescriptor",
    "DeployTarget",
    "DatabaseSettings",

    # History
    "DeployRecord",

    # Result models
    "OperationStatus",
    "ErrorDetail",
    "Result",
    "BuildResult",
    "DeployResult",
]
