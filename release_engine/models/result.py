"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class OperationStatus(Enum):
    """Operation status"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class Result:
    """Base result class"""

    status: OperationStatus
    message: str = ""
    errors: List[ErrorDetail] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Successful or nothing to do"""
        return self.status in (OperationStatus.SUCCESS, OperationStatus.SKIPPED)

    @property
    def is_failed(self) -> bool:
        """Check if operation failed"""
        return self.status == OperationStatus.FAILED

    @property
    def is_skipped(self) -> bool:
        """Nothing to do"""
        return self.status == OperationStatus.SKIPPED

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    @property
    def error(self) -> Optional[str]:
        """First error message, if any"""
        return self.errors[0].message if self.errors else None

    def add_error(self, code: str, message: str, **context) -> None:
        """Add an error"""
        self.errors.append(ErrorDetail(code=code, message=message, context=context))

    def add_warning(self, message: str) -> None:
        """Add a warning"""
        self.warnings.append(message)

    def complete(self, status: Optional[OperationStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = datetime.now()
        if status:
            self.status = status

    def _base_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "duration": self.duration,
        }


@dataclass
class BuildResult(Result):
    """Result of a build"""

    application: Optional[str] = None
    version: Optional[int] = None
    release_path: Optional[Path] = None
    workspace: Optional[Path] = None
    package_zip: Optional[Path] = None
    log_files: List[Path] = field(default_factory=list)
    notified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = self._base_dict()
        data.update({
            "application": self.application,
            "version": self.version,
            "release_path": str(self.release_path) if self.release_path else None,
            "workspace": str(self.workspace) if self.workspace else None,
            "package_zip": str(self.package_zip) if self.package_zip else None,
            "log_files": [str(p) for p in self.log_files],
        })
        return data


@dataclass
class DeployResult(Result):
    """Result of a deploy"""

    application: Optional[str] = None
    version: Optional[int] = None
    environment_nickname: Optional[str] = None
    server: Optional[str] = None
    history_recorded: bool = False
    notified: bool = False
    log_files: List[Path] = field(default_factory=list)
    database_server: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = self._base_dict()
        data.update({
            "application": self.application,
            "version": self.version,
            "environment_nickname": self.environment_nickname,
            "server": self.server,
            "history_recorded": self.history_recorded,
            "log_files": [str(p) for p in self.log_files],
        })
        if self.database_server:
            data["database_server"] = self.database_server
        return data
