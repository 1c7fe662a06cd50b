"""Framework self-deploy command"""

import sys

import click

from ..decorators import handle_errors, require_config
from ..utils.interactive import split_version_and_nickname
from ..utils.output import console, format_deploy_result
from ...api import Deployer
from ...constants import EMOJI_ROCKET
from .deploy import build_credential, resolve_nickname


@click.command()
@click.argument('version', required=False)
@click.argument('nickname', required=False)
@click.option('--user', 'launch_user', help='User recorded in deploy history')
@click.option('--remote-user', help='Delegated user for the remote channel')
@click.option('--ask-password', is_flag=True, help='Prompt for the delegated password')
@click.pass_context
@require_config
@handle_errors
def deployps(ctx, version, nickname, launch_user, remote_user, ask_password):
    """Deploy release-engine itself to an environment

    The running engine cannot overwrite its own files, so the release is
    staged next to the install folder first and the staged copy then swaps
    itself into place.
    """
    config = ctx.obj.config
    no_input = ctx.obj.no_input
    version, nickname = split_version_and_nickname(version, nickname)
    deployer = Deployer(config=config, credential=build_credential(config, remote_user, ask_password, no_input))

    application = config.self_deploy.application.upper()
    version, nickname = resolve_nickname(deployer, application, version, nickname, no_input)

    console.print(f"\n{EMOJI_ROCKET} [cyan]Deploying {application} to {nickname.upper()}...[/cyan]")
    result = deployer.self_deploy(version, nickname, launch_user)
    format_deploy_result(result)
    if result.is_failed:
        sys.exit(1)
