"""Task process hand-off contexts"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .descriptor import ApplicationDescriptor


@dataclass
class TaskContext:
    """Values shared between the engine and the task process.

    Passed explicitly into TaskProcess.invoke; tasks read the folders and
    identifiers from here and may record outputs in ``outputs``.
    """

    application: str
    version: int
    root_folder: Path
    log_dir: Path
    log_prefix: str
    launch_user: str
    descriptor: Optional[ApplicationDescriptor] = None
    outputs: Dict[str, Any] = field(default_factory=dict)

    def variables(self) -> Dict[str, str]:
        """Placeholder values available to task definitions"""
        return {
            "app": self.application,
            "version": str(self.version),
            "root": str(self.root_folder),
            "log_dir": str(self.log_dir),
            "log_prefix": self.log_prefix,
            "user": self.launch_user,
        }


@dataclass
class BuildContext(TaskContext):
    """Context for build task processes"""

    zip_folder: Optional[Path] = None
    release_folder: Optional[Path] = None

    def variables(self) -> Dict[str, str]:
        values = super().variables()
        values["zip"] = str(self.zip_folder) if self.zip_folder else ""
        values["release"] = str(self.release_folder) if self.release_folder else ""
        return values


@dataclass
class DeployContext(TaskContext):
    """Context for deploy task processes"""

    environment_nickname: str = ""
    server: str = ""
    package_folder: Optional[Path] = None

    def variables(self) -> Dict[str, str]:
        values = super().variables()
        values["nickname"] = self.environment_nickname
        values["server"] = self.server
        values["package"] = str(self.package_folder) if self.package_folder else ""
        return values
