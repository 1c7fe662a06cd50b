"""Second phase of the framework self-deploy"""

import click

from ..decorators import handle_errors
from ..utils.output import print_success
from ...api.deployer import self_update as swap


@click.command('self-update')
@click.argument('staging', type=click.Path(file_okay=False))
@click.argument('install', type=click.Path(file_okay=False))
@handle_errors
def self_update(staging, install):
    """Move a staged engine install into place

    Run from the STAGING copy; the live INSTALL folder is kept as
    INSTALL.previous.
    """
    backup = swap(staging, install)
    print_success(f"Installed {install} (previous kept at {backup})")
