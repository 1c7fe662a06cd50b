"""API layer for release-engine"""

from .builder import Builder, build
from .deployer import Deployer, deploy, self_update
from .query import QueryInterface, query
from ..exceptions import (
    ReleaseEngineError,
    ConfigError,
    UsageError,
    MissingArgumentError,
    InvalidApplicationNameError,
    InvalidVersionError,
    VersionTooNewError,
    ReleaseNotFoundError,
    AlreadyBuiltError,
    ValidationError,
    DescriptorInvalidError,
    VersionFileInvalidError,
    TargetResolutionError,
    PipelineIOError,
    RemoteExecutionError,
    TaskProcessError,
    DatabaseFailoverError,
    UserCancelledError,
)

__all__ = [
    # Main classes
    "Builder",
    "Deployer",
    "QueryInterface",

    # Convenience functions
    "build",
    "deploy",
    "self_update",
    "query",

    # Exceptions
    "ReleaseEngineError",
    "ConfigError",
    "UsageError",
    "MissingArgumentError",
    "InvalidApplicationNameError",
    "InvalidVersionError",
    "VersionTooNewError",
    "ReleaseNotFoundError",
    "AlreadyBuiltError",
    "ValidationError",
    "DescriptorInvalidError",
    "VersionFileInvalidError",
    "TargetResolutionError",
    "PipelineIOError",
    "RemoteExecutionError",
    "TaskProcessError",
    "DatabaseFailoverError",
    "UserCancelledError",
]
