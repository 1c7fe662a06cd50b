"""Exception definitions for release-engine"""

from typing import List, Optional, Sequence

from .constants import ErrorCode


class ReleaseEngineError(Exception):
    """Base exception for release-engine"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(ReleaseEngineError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class UsageError(ReleaseEngineError):
    """Bad or missing command argument.

    Shown to the user with a listing of valid values. Never emailed and
    never recorded to deploy history.
    """

    def __init__(self, message: str, error_code: str = ErrorCode.MISSING_REQUIRED_PARAMETER,
                 valid_values: Optional[Sequence[str]] = None):
        super().__init__(message, error_code)
        self.valid_values: List[str] = list(valid_values or [])


class MissingArgumentError(UsageError):
    """Required argument not supplied"""

    def __init__(self, argument: str, valid_values: Optional[Sequence[str]] = None):
        super().__init__(f"Missing required argument: {argument}", valid_values=valid_values)
        self.argument = argument


class InvalidApplicationNameError(UsageError):
    """Application name not found in the descriptor set"""

    def __init__(self, application: str, valid_names: Sequence[str]):
        super().__init__(
            f"Invalid application name: {application}",
            ErrorCode.INVALID_APPLICATION,
            valid_values=valid_names
        )
        self.application = application


class InvalidVersionError(UsageError):
    """Version is not a positive integer"""

    def __init__(self, version):
        super().__init__(
            f"Invalid version: {version!r} (expected a positive integer or HEAD)",
            ErrorCode.INVALID_VERSION
        )
        self.version = version


class VersionTooNewError(UsageError):
    """Requested version is beyond the repository HEAD"""

    def __init__(self, version: int, head: int):
        super().__init__(
            f"Version {version} is newer than repository HEAD ({head})",
            ErrorCode.VERSION_TOO_NEW
        )
        self.version = version
        self.head = head


class ReleaseNotFoundError(UsageError):
    """No published release for the requested application/version"""

    def __init__(self, application: str, version: Optional[int] = None,
                 available: Optional[Sequence[str]] = None):
        if version is None:
            message = f"No releases found for {application}"
        else:
            message = f"Release not found: {application}_{version}"
        super().__init__(message, ErrorCode.RELEASE_NOT_FOUND, valid_values=available)
        self.application = application
        self.version = version


class AlreadyBuiltError(ReleaseEngineError):
    """Release already exists (informational, not a failure)"""

    def __init__(self, application: str, version: int):
        super().__init__(
            f"{application} version {version} is already built",
            ErrorCode.ALREADY_BUILT
        )
        self.application = application
        self.version = version


class ValidationError(ReleaseEngineError):
    """Validation error"""

    def __init__(self, message: str, error_code: str = ErrorCode.DESCRIPTOR_INVALID):
        super().__init__(message, error_code)


class DescriptorInvalidError(ValidationError):
    """Application descriptor is missing or malformed"""

    def __init__(self, message: str, path: Optional[str] = None):
        if path:
            message = f"{message} ({path})"
        super().__init__(message, ErrorCode.DESCRIPTOR_INVALID)
        self.path = path


class VersionFileInvalidError(ValidationError):
    """Version file missing or not a positive integer"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid version file {path}: {reason}", ErrorCode.VERSION_FILE_INVALID)
        self.path = path


class TargetResolutionError(ValidationError):
    """Environment nickname not declared by the package descriptor"""

    def __init__(self, nickname: str, valid_nicknames: Sequence[str]):
        valid = ", ".join(valid_nicknames) or "none declared"
        super().__init__(
            f"Unknown environment nickname {nickname!r} (valid: {valid})",
            ErrorCode.TARGET_UNRESOLVED
        )
        self.nickname = nickname
        self.valid_nicknames = list(valid_nicknames)


class PipelineIOError(ReleaseEngineError):
    """Folder or file creation/copy failure"""
    pass


class WorkspaceIOError(PipelineIOError):
    """Build workspace could not be prepared"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.WORKSPACE_IO)


class PublishIOError(PipelineIOError):
    """Release folder could not be published"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PUBLISH_IO)


class DeployIOError(PipelineIOError):
    """Target-side folder or file operation failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DEPLOY_IO)


class RemoteExecutionError(ReleaseEngineError):
    """Delegated command failed on a remote host"""

    def __init__(self,
                 server: str,
                 command: str,
                 message: str,
                 exit_status: Optional[int] = None,
                 stderr: str = "",
                 command_started: bool = False,
                 hint: Optional[str] = None):
        super().__init__(f"{server}: {message}", ErrorCode.REMOTE_EXECUTION)
        self.server = server
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        self.command_started = command_started
        self.hint = hint


class TaskProcessError(ReleaseEngineError):
    """A task in the task process reported failure"""

    def __init__(self, message: str, task_name: Optional[str] = None):
        if task_name:
            message = f"Task '{task_name}' failed: {message}"
        super().__init__(message, ErrorCode.TASK_PROCESS)
        self.task_name = task_name


class DatabaseFailoverError(ReleaseEngineError):
    """No configured database server is online"""

    def __init__(self, database: str, servers: Sequence[str]):
        super().__init__(
            f"No online server for database {database} (tried: {', '.join(servers)})",
            ErrorCode.DATABASE_FAILOVER
        )
        self.database = database
        self.servers = list(servers)


class DatabaseScriptError(ReleaseEngineError):
    """A SQL script failed to apply"""

    def __init__(self, script: str, message: str):
        super().__init__(f"Script {script} failed: {message}", ErrorCode.DATABASE_SCRIPT)
        self.script = script


class PollTimeoutError(ReleaseEngineError):
    """Polled state did not reach the expected value in time"""

    def __init__(self, description: str, max_wait: float):
        super().__init__(
            f"Timed out after {max_wait:g}s waiting for {description}",
            ErrorCode.POLL_TIMEOUT
        )
        self.description = description
        self.max_wait = max_wait


class SourceControlError(ReleaseEngineError):
    """Source control client failure"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SOURCE_CONTROL)


class UserCancelledError(ReleaseEngineError):
    """User cancelled the operation"""

    def __init__(self):
        super().__init__("Operation cancelled by user")
