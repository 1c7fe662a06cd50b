"""Second phase of the framework self-deploy: swap the staged install into place"""

import logging
import os
import shutil
from pathlib import Path
from typing import Union

from ..constants import SELF_DEPLOY_PREVIOUS_SUFFIX
from ..exceptions import DeployIOError

logger = logging.getLogger(__name__)


def swap_install(staging_dir: Union[str, Path], install_dir: Union[str, Path]) -> Path:
    """Replace the live install folder with the staged copy

    The live folder is renamed aside (``.previous``, replacing any older
    backup) before the staged folder is moved into place. Runs in a process
    started from the staging copy so the live files are not in use.

    Returns:
        Path of the backup folder

    Raises:
        DeployIOError: If a rename fails; the live install is restored when possible
    """
    staging_dir = Path(staging_dir)
    install_dir = Path(install_dir)
    backup_dir = install_dir.with_name(install_dir.name + SELF_DEPLOY_PREVIOUS_SUFFIX)

    if not staging_dir.is_dir():
        raise DeployIOError(f"Staging folder not found: {staging_dir}")

    if backup_dir.exists():
        shutil.rmtree(backup_dir)

    if install_dir.exists():
        try:
            os.rename(install_dir, backup_dir)
        except OSError as e:
            raise DeployIOError(f"Failed to move {install_dir} aside: {e}")

    try:
        os.rename(staging_dir, install_dir)
    except OSError as e:
        if backup_dir.exists() and not install_dir.exists():
            os.rename(backup_dir, install_dir)
        raise DeployIOError(f"Failed to move {staging_dir} into place: {e}")

    logger.info("Installed %s (previous install kept at %s)", install_dir, backup_dir)
    return backup_dir
