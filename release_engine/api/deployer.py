"""Deployer API for deployment operations"""

import asyncio
from pathlib import Path
from typing import Optional, Union

from ..core.self_update import swap_install
from ..models.config import EngineConfig
from ..models.result import DeployResult
from ..services.config_service import load_config
from ..services.deploy_executor import DeployExecutor
from ..services.deploy_service import DeployService
from ..services.remote_dispatcher import Credential


class Deployer:
    """Deployer class for deployment operations"""

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 config_path: Optional[Union[str, Path]] = None,
                 credential: Optional[Credential] = None,
                 service: Optional[DeployService] = None,
                 executor: Optional[DeployExecutor] = None):
        """
        Initialize deployer

        Args:
            config: Engine configuration (loaded from file when omitted)
            config_path: Explicit configuration file
            credential: Delegated credential for the remote channel
            service: Preconfigured initiator-side deploy service
            executor: Preconfigured target-side executor
        """
        if service is None or executor is None:
            config = config or load_config(config_path)
        self.service = service or DeployService(config, credential=credential)
        self.executor = executor or DeployExecutor(config)

    def deploy(self,
               application: str,
               version: Optional[Union[int, str]] = None,
               nickname: Optional[str] = None,
               launch_user: Optional[str] = None) -> DeployResult:
        """
        Deploy a published release to an environment through its target host

        Raises:
            UsageError: Invalid application, version or nickname argument
        """
        return asyncio.run(self.service.deploy(application, version, nickname, launch_user))

    def deploy_local(self,
                     descriptor_path: Union[str, Path],
                     nickname: str,
                     launch_user: Optional[str] = None) -> DeployResult:
        """Apply a delivered package on this host"""
        return asyncio.run(self.executor.deploy(descriptor_path, nickname, launch_user))

    def self_deploy(self,
                    version: Optional[Union[int, str]] = None,
                    nickname: Optional[str] = None,
                    launch_user: Optional[str] = None) -> DeployResult:
        """Deploy the engine itself (staged two-phase copy)"""
        return asyncio.run(self.service.self_deploy(version, nickname, launch_user))


def deploy(application: str, **options) -> DeployResult:
    """
    Deploy an application (convenience function)

    Args:
        application: Application name
        **options: Options
            - version: Release version (newest when omitted)
            - nickname: Environment nickname (required)
            - launch_user: User name
            - config: Config file path

    Returns:
        DeployResult
    """
    deployer = Deployer(config_path=options.get("config"))
    return deployer.deploy(
        application,
        options.get("version"),
        options.get("nickname"),
        options.get("launch_user"),
    )


def self_update(staging_dir: Union[str, Path], install_dir: Union[str, Path]) -> Path:
    """Swap a staged engine install into place; returns the backup folder"""
    return swap_install(staging_dir, install_dir)
