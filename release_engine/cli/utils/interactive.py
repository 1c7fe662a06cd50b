"""Progressive prompting for missing command arguments"""

import sys
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.prompt import Prompt

from ...constants import LATEST_VERSION_ALIASES
from ...exceptions import MissingArgumentError

console = Console()


def can_prompt(no_input: bool = False) -> bool:
    return not no_input and sys.stdin.isatty()


def split_applications(value: Optional[str]) -> List[str]:
    """Split a comma-separated application list"""
    return [part.strip().upper() for part in (value or "").split(",") if part.strip()]


def is_version_token(value: Optional[str]) -> bool:
    text = (value or "").strip()
    return text.isdigit() or text.upper() in LATEST_VERSION_ALIASES[1:]


def split_version_and_nickname(first: Optional[str],
                               second: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Interpret up to two optional positionals as VERSION and NICKNAME

    A lone non-numeric token is taken as the nickname.
    """
    if first is not None and second is None and not is_version_token(first):
        return None, first
    return first, second


def choose(label: str,
           choices: Sequence[str],
           argument: str,
           no_input: bool = False,
           default: Optional[str] = None) -> str:
    """Ask for a missing argument, listing the valid values

    Raises:
        MissingArgumentError: When prompting is not possible
    """
    choices = list(choices)
    if not can_prompt(no_input):
        if default is not None:
            return default
        raise MissingArgumentError(argument, choices)

    if choices:
        console.print(f"[bold]{label}[/bold] options: {', '.join(choices)}")
    return Prompt.ask(
        label,
        choices=choices or None,
        default=default,
        show_choices=False,
        console=console,
    )


def ask_version(label: str,
                no_input: bool = False,
                default: str = "HEAD",
                available: Sequence[str] = ()) -> str:
    """Ask for a version, offering the latest as default"""
    if not can_prompt(no_input):
        return default
    if available:
        console.print(f"[bold]Available:[/bold] {', '.join(available)}")
    return Prompt.ask(label, default=default, console=console)
