"""Release notes from repository history"""

import logging
from pathlib import Path
from typing import Optional

from ..constants import HISTORY_TIMESTAMP_FORMAT, RELEASE_NOTES_FILE
from ..models.descriptor import ApplicationDescriptor
from .release_registry import ReleaseRegistry

logger = logging.getLogger(__name__)


class ReleaseNotesGenerator:
    """Write the commit log between the baseline environment and a new version"""

    def __init__(self, source_control, registry: ReleaseRegistry, baseline_environment: str):
        self.source_control = source_control
        self.registry = registry
        self.baseline_environment = baseline_environment

    def lower_bound(self, application: str, version: int) -> int:
        """First revision to include: one past the baseline's current version"""
        current = self.registry.read_current_version(application, self.baseline_environment)
        if current is None or current >= version:
            return version
        return current + 1

    def generate(self,
                 descriptor: ApplicationDescriptor,
                 version: int,
                 destination_folder: Path) -> Optional[Path]:
        """Write release notes into the destination folder

        Returns:
            Path of the notes file, or None when the descriptor declares no source path
        """
        if not descriptor.source_path:
            logger.info("No General/SourcePath for %s, skipping release notes", descriptor.name)
            return None

        start = self.lower_bound(descriptor.name, version)
        entries = self.source_control.log(descriptor.source_path, start, version)

        lines = [
            f"Release notes for {descriptor.name} version {version}",
            f"Revisions {start} to {version} of {descriptor.source_path}"
            f" (baseline {self.baseline_environment})",
            "",
        ]
        if not entries:
            lines.append("No changes recorded.")
        for entry in entries:
            date = entry.date.strftime(HISTORY_TIMESTAMP_FORMAT) if entry.date else ""
            lines.append(f"r{entry.revision} | {entry.author} | {date}")
            for message_line in entry.message.splitlines() or [""]:
                lines.append(f"    {message_line}")
            lines.append("")

        path = destination_folder / RELEASE_NOTES_FILE
        path.write_text("\n".join(lines), encoding="utf-8")
        logger.info("Release notes written (%d revisions)", len(entries))
        return path
