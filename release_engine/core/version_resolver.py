"""Resolve requested versions against the repository HEAD"""

import logging
from typing import Optional, Union

from ..constants import LATEST_VERSION_ALIASES
from ..exceptions import InvalidVersionError, VersionTooNewError

logger = logging.getLogger(__name__)

VersionRequest = Optional[Union[int, str]]


def parse_version(requested: VersionRequest) -> Optional[int]:
    """Parse a requested version

    Returns:
        The integer version, or None for the "latest" sentinel

    Raises:
        InvalidVersionError: For non-numeric, zero or negative input
    """
    if requested is None:
        return None

    if isinstance(requested, bool):
        raise InvalidVersionError(requested)

    if isinstance(requested, int):
        version = requested
    else:
        text = str(requested).strip()
        if text.upper() in LATEST_VERSION_ALIASES:
            return None
        if not text.isdigit():
            raise InvalidVersionError(requested)
        version = int(text)

    if version <= 0:
        raise InvalidVersionError(requested)
    return version


class VersionResolver:
    """Resolve a requested version against the repository HEAD"""

    def __init__(self, source_control):
        """
        Args:
            source_control: Client exposing ``head_revision()``
        """
        self.source_control = source_control

    def resolve(self, requested: VersionRequest, application: Optional[str] = None) -> int:
        """Resolve a requested version

        Malformed input is rejected before HEAD is queried.

        Raises:
            InvalidVersionError: Malformed version
            VersionTooNewError: Version beyond HEAD
        """
        version = parse_version(requested)
        head = self.source_control.head_revision()

        if version is None:
            logger.info("Resolved latest version of %s to HEAD %d", application or "repository", head)
            return head

        if version > head:
            raise VersionTooNewError(version, head)

        return version
