"""Target-side deploy command"""

import sys

import click

from ..decorators import handle_errors, require_config
from ..utils.output import format_deploy_result
from ...api import Deployer


@click.command('deploy-local')
@click.argument('descriptor', type=click.Path(dir_okay=False))
@click.argument('nickname')
@click.option('--user', 'launch_user', help='User that launched the deploy')
@click.pass_context
@require_config
@handle_errors
def deploy_local(ctx, descriptor, nickname, launch_user):
    """Apply a delivered package on this host

    DESCRIPTOR is the application descriptor inside the delivered package
    folder; the sibling version file and package zip are read from the same
    folder. This is the command the initiator runs on the target server.
    """
    deployer = Deployer(config=ctx.obj.config)
    result = deployer.deploy_local(descriptor, nickname, launch_user)
    format_deploy_result(result)
    if result.is_failed:
        sys.exit(1)
