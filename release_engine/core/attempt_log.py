"""Per-attempt log capture"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..constants import FILE_LOG_FORMAT, LOG_TIMESTAMP_FORMAT, LOGGER_NAME


def make_log_prefix(*parts: str, now: Optional[datetime] = None) -> str:
    """Timestamped log-file prefix, e.g. ``20250101_120000_WIDGETS_500_Build``"""
    now = now or datetime.now()
    return "_".join([now.strftime(LOG_TIMESTAMP_FORMAT)] + [str(p) for p in parts if p])


class AttemptLog:
    """Mirror engine log output to a file for the duration of an attempt.

    ``close()`` detaches the handler so the file is released before it is
    attached to a notification; it is safe to call more than once.
    """

    def __init__(self, log_dir: Path, prefix: str, logger_name: str = LOGGER_NAME):
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self.path = self.log_dir / f"{prefix}.log"
        self._logger = logging.getLogger(logger_name)
        self._handler: Optional[logging.FileHandler] = None
        self._previous_level: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self._handler is not None

    def open(self) -> Path:
        """Start mirroring log output to the file"""
        if self._handler is not None:
            return self.path

        self.log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.path, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        self._logger.addHandler(handler)

        # The file receives INFO even when the console is quieter
        self._previous_level = self._logger.level
        if self._logger.getEffectiveLevel() > logging.INFO:
            self._logger.setLevel(logging.INFO)

        self._handler = handler
        return self.path

    def close(self) -> None:
        """Stop mirroring and release the file"""
        if self._handler is None:
            return

        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None
        if self._previous_level is not None:
            self._logger.setLevel(self._previous_level)
            self._previous_level = None

    def files(self) -> List[Path]:
        """All log files for this attempt (tasks may add their own)"""
        if not self.log_dir.is_dir():
            return []
        return sorted(p for p in self.log_dir.glob(f"{self.prefix}*") if p.is_file())

    def __enter__(self) -> 'AttemptLog':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
