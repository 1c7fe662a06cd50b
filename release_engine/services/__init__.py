"""Service layer for release-engine"""

from .build_service import BuildService
from .config_service import ConfigService, load_config
from .database_deploy import DatabaseDeployer, DatabaseGateway, SqlAlchemyGateway
from .deploy_executor import DeployExecutor
from .deploy_service import DeployService
from .notification_service import NotificationService
from .remote_dispatcher import Credential, RemoteDispatcher

__all__ = [
    "BuildService",
    "ConfigService",
    "load_config",
    "DatabaseDeployer",
    "DatabaseGateway",
    "SqlAlchemyGateway",
    "DeployExecutor",
    "DeployService",
    "NotificationService",
    "Credential",
    "RemoteDispatcher",
]
