"""Deploy history record"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..constants import HISTORY_COLUMNS, HISTORY_SEPARATOR, HISTORY_TIMESTAMP_FORMAT


@dataclass(frozen=True)
class DeployRecord:
    """One line of the append-only deploy history file"""

    application: str
    environment_nickname: str
    server: str
    version: Optional[int]
    user: str
    success: bool
    timestamp: datetime = field(default_factory=datetime.now)

    def to_line(self) -> str:
        """Serialize to a single history line (no trailing newline)"""
        values = [
            self.application,
            self.environment_nickname,
            self.server,
            str(self.version) if self.version is not None else "-",
            self.user,
            self.timestamp.strftime(HISTORY_TIMESTAMP_FORMAT),
            "True" if self.success else "False",
        ]
        return HISTORY_SEPARATOR.join(_clean(v) for v in values)

    @classmethod
    def from_line(cls, line: str) -> 'DeployRecord':
        """Parse a history line"""
        parts = line.rstrip("\r\n").split(HISTORY_SEPARATOR)
        if len(parts) != len(HISTORY_COLUMNS):
            raise ValueError(f"Malformed history line: {line!r}")

        application, nickname, server, version, user, date, success = parts
        return cls(
            application=application,
            environment_nickname=nickname,
            server=server,
            version=int(version) if version.isdigit() else None,
            user=user,
            timestamp=datetime.strptime(date, HISTORY_TIMESTAMP_FORMAT),
            success=success == "True",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "application": self.application,
            "environment_nickname": self.environment_nickname,
            "server": self.server,
            "version": self.version,
            "user": self.user,
            "date": self.timestamp.strftime(HISTORY_TIMESTAMP_FORMAT),
            "success": self.success,
        }


def _clean(value: str) -> str:
    return (value or "").replace(HISTORY_SEPARATOR, "/").replace("\n", " ")
