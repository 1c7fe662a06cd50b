"""Core functionality for release-engine"""

from .attempt_log import AttemptLog, make_log_prefix
from .polling import poll_until
from .release_notes import ReleaseNotesGenerator
from .release_registry import (
    ReleaseInfo,
    ReleaseRegistry,
    read_version_file,
    write_version_file,
)
from .source_control import SubversionClient, LogEntry
from .task_process import Task, TaskProcess, TaskRegistry
from .version_resolver import VersionResolver, parse_version
from .workspace import BuildWorkspace, make_workspace_name

__all__ = [
    "AttemptLog",
    "make_log_prefix",
    "poll_until",
    "ReleaseNotesGenerator",
    "ReleaseInfo",
    "ReleaseRegistry",
    "read_version_file",
    "write_version_file",
    "SubversionClient",
    "LogEntry",
    "Task",
    "TaskProcess",
    "TaskRegistry",
    "VersionResolver",
    "parse_version",
    "BuildWorkspace",
    "make_workspace_name",
]
