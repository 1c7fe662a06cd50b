"""Main CLI entry point for release-engine"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.logging import RichHandler

from ..constants import APP_NAME, ENV_LOG_LEVEL, LOG_FORMAT, LOGGER_NAME
from ..exceptions import ReleaseEngineError, UsageError
from ..models.config import EngineConfig
from ..services.config_service import ConfigService
from .commands import build, current, deploy, deploy_local, deployps, history, releases, self_update
from .utils.output import console, print_error, print_usage_error


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
        quiet: Only show errors
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.getLevelName(os.environ.get(ENV_LOG_LEVEL, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    # Attempt logs raise the engine logger to INFO; the console keeps its own level
    handler = RichHandler(
        console=console,
        show_time=debug,
        show_path=debug,
        rich_tracebacks=True,
        tracebacks_suppress=[click]
    )
    handler.setLevel(level)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler]
    )

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiofiles").setLevel(logging.WARNING)
    logging.getLogger("paramiko").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    if debug:
        logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)


class Context:
    """CLI context object with lazy configuration loading

    Commands such as ``self-update`` run without a configuration file, so
    the file is only located when a command asks for it.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.verbose: bool = False
        self.debug: bool = False
        self.no_input: bool = False
        self._config_service = ConfigService(config_path)

    @property
    def config(self) -> EngineConfig:
        return self._config_service.config


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Configuration file (default: search for .release-engine.yaml)')
@click.option('--no-input', is_flag=True, help='Never prompt for missing arguments')
@click.pass_context
def cli(ctx, verbose, debug, quiet, config_path, no_input):
    """Release Engine - build and deploy versioned application packages

    Builds an application version from source control into the Releases
    root, ships published releases to target hosts through the relay host,
    and keeps per-environment version pointers and deploy history.

    Missing arguments are prompted for, with the valid values listed.
    """
    setup_logging(verbose=verbose, debug=debug, quiet=quiet)

    ctx.obj = Context(config_path)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    ctx.obj.no_input = no_input


# Register commands
cli.add_command(build.build)
cli.add_command(deploy.deploy)
cli.add_command(deployps.deployps)
cli.add_command(deploy_local.deploy_local)
cli.add_command(self_update.self_update)
cli.add_command(releases.releases)
cli.add_command(history.history)
cli.add_command(current.current)


def main():
    """Main entry point for the CLI application

    Exit codes: 0 success or nothing to do, 1 failure, 2 usage error,
    130 interrupted.
    """
    try:
        cli(prog_name=APP_NAME, standalone_mode=False)

    except click.exceptions.Abort:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)

    except UsageError as e:
        print_usage_error(e)
        sys.exit(2)

    except ReleaseEngineError as e:
        print_error(str(e))
        sys.exit(1)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
