"""Query API for release and deploy state"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from ..core.release_registry import ReleaseInfo, ReleaseRegistry
from ..models.config import EngineConfig
from ..models.history import DeployRecord
from ..services.config_service import load_config


class QueryInterface:
    """Read-only access to the Releases root and target-side state"""

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 config_path: Optional[Union[str, Path]] = None):
        config = config or load_config(config_path)
        self.config = config
        self.registry = ReleaseRegistry(config.paths.releases_path, config.paths.state_path)

    def releases(self, application: Optional[str] = None, limit: Optional[int] = None) -> List[ReleaseInfo]:
        """
        Published releases, newest version first per application

        Args:
            application: Filter by application
            limit: Result limit
        """
        releases = self.registry.list_releases(application)
        return releases[:limit] if limit else releases

    def history(self,
                application: Optional[str] = None,
                nickname: Optional[str] = None,
                limit: Optional[int] = None) -> List[DeployRecord]:
        """Deploy history, most recent first"""
        records = list(reversed(self.registry.read_history(application, nickname)))
        return records[:limit] if limit else records

    def current_versions(self, application: str) -> Dict[str, int]:
        """Current version per environment nickname"""
        return self.registry.current_versions(application)


def query(config_path: Optional[Union[str, Path]] = None) -> QueryInterface:
    """Get a query interface"""
    return QueryInterface(config_path=config_path)
