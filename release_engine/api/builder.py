"""Builder API for build operations"""

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..models.config import EngineConfig
from ..models.result import BuildResult
from ..services.build_service import BuildService
from ..services.config_service import load_config


class Builder:
    """Builder class for build operations"""

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 config_path: Optional[Union[str, Path]] = None,
                 service: Optional[BuildService] = None):
        """
        Initialize builder

        Args:
            config: Engine configuration (loaded from file when omitted)
            config_path: Explicit configuration file
            service: Preconfigured build service
        """
        if service is None:
            service = BuildService(config or load_config(config_path))
        self.service = service

    def application_names(self) -> List[str]:
        return self.service.application_names()

    def build(self,
              application: str,
              version: Optional[Union[int, str]] = None,
              launch_user: Optional[str] = None,
              test_build: bool = False) -> BuildResult:
        """
        Build one application version

        Args:
            application: Application name
            version: Version, or None/HEAD for the repository HEAD
            launch_user: User recorded in logs and notifications
            test_build: Build without publishing

        Returns:
            BuildResult

        Raises:
            UsageError: Invalid application name or version
        """
        return asyncio.run(self.service.build(application, version, launch_user, test_build))

    def build_many(self,
                   applications: Sequence[str],
                   version: Optional[Union[int, str]] = None,
                   launch_user: Optional[str] = None,
                   test_build: bool = False) -> List[BuildResult]:
        """Build several applications in turn; one failure does not stop the rest"""
        return [self.build(app, version, launch_user, test_build) for app in applications]


def build(application: str, **options) -> BuildResult:
    """
    Build an application (convenience function)

    Args:
        application: Application name
        **options: Options
            - version: Version (HEAD when omitted)
            - launch_user: User name
            - test_build: Do not publish
            - config: Config file path

    Returns:
        BuildResult
    """
    builder = Builder(config_path=options.get("config"))
    return builder.build(
        application,
        options.get("version"),
        options.get("launch_user"),
        options.get("test_build", False),
    )
