"""CLI utilities"""

from .output import (
    console,
    format_build_result,
    format_deploy_result,
    format_release_list,
    format_history,
    format_current_versions,
    print_usage_error,
    print_error,
    print_warning,
    print_info,
    print_success,
)

__all__ = [
    "console",
    "format_build_result",
    "format_deploy_result",
    "format_release_list",
    "format_history",
    "format_current_versions",
    "print_usage_error",
    "print_error",
    "print_warning",
    "print_info",
    "print_success",
]
