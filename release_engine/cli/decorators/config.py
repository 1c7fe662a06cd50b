"""Configuration context decorator for CLI commands"""

import sys
from functools import wraps
from typing import Callable

import click

from ..utils.output import console
from ...constants import EMOJI_ERROR, ENV_CONFIG_PATH, PROJECT_CONFIG_FILE
from ...exceptions import ConfigError


def require_config(func: Callable) -> Callable:
    """Decorator that loads the engine configuration before the command runs

    The command receives the click context; the loaded configuration is
    available as ``ctx.obj.config``.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            ctx.obj.config
        except ConfigError as e:
            console.print(f"[red]{EMOJI_ERROR} {e}[/red]")
            console.print(
                f"[dim]Create {PROJECT_CONFIG_FILE}, pass --config, or set {ENV_CONFIG_PATH}[/dim]"
            )
            sys.exit(2)
        return func(*args, **kwargs)

    return wrapper
