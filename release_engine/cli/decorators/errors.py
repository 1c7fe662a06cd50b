"""Map engine exceptions to CLI exit codes"""

import sys
from functools import wraps
from typing import Callable

from ..utils.output import print_error, print_usage_error
from ...exceptions import ReleaseEngineError, UsageError


def handle_errors(func: Callable) -> Callable:
    """Decorator that turns engine exceptions into messages and exit codes

    UsageError exits with 2 after listing the valid values; any other
    ReleaseEngineError exits with 1.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UsageError as e:
            print_usage_error(e)
            sys.exit(2)
        except ReleaseEngineError as e:
            print_error(str(e))
            hint = getattr(e, "hint", None)
            if hint:
                print_error(hint)
            sys.exit(1)

    return wrapper
