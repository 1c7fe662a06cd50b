"""CLI decorators"""

from .errors import handle_errors
from .config import require_config

__all__ = [
    'handle_errors',
    'require_config',
]
