"""Release Engine - build and deploy orchestration for versioned application packages.

Builds an application version from source control into an immutable release
folder, ships it to target hosts through a relay host, applies it there and
keeps the per-environment version pointers and deploy history.
"""

from .__version__ import __version__, __version_info__, __author__

# Core API
from .api.builder import Builder, build
from .api.deployer import Deployer, deploy
from .api.query import query

# Data models
from .models.descriptor import ApplicationDescriptor, DeployTarget
from .models.history import DeployRecord
from .models.result import BuildResult, DeployResult, OperationStatus

# Exceptions
from .exceptions import (
    ReleaseEngineError,
    UsageError,
    ValidationError,
    ConfigError,
    AlreadyBuiltError,
    TaskProcessError,
    RemoteExecutionError,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",

    # Main classes
    "Builder",
    "Deployer",

    # Core API functions
    "build",
    "deploy",
    "query",

    # Data models
    "ApplicationDescriptor",
    "DeployTarget",
    "DeployRecord",
    "BuildResult",
    "DeployResult",
    "OperationStatus",

    # Exceptions
    "ReleaseEngineError",
    "UsageError",
    "ValidationError",
    "ConfigError",
    "AlreadyBuiltError",
    "TaskProcessError",
    "RemoteExecutionError",
]
