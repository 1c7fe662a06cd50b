"""CLI commands"""

from . import build
from . import deploy
from . import deployps
from . import deploy_local
from . import self_update
from . import releases
from . import history
from . import current

__all__ = [
    "build",
    "deploy",
    "deployps",
    "deploy_local",
    "self_update",
    "releases",
    "history",
    "current",
]
