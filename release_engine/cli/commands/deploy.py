"""Deploy command implementation"""

import sys

import click
from rich.prompt import Prompt

from ..decorators import handle_errors, require_config
from ..utils.interactive import (
    ask_version,
    can_prompt,
    choose,
    split_applications,
    split_version_and_nickname,
)
from ..utils.output import console, format_deploy_result
from ...api import Deployer
from ...constants import (
    EMOJI_ROCKET,
    PROMPT_ENTER_VERSION,
    PROMPT_SELECT_APPLICATION,
    PROMPT_SELECT_NICKNAME,
)
from ...services.remote_dispatcher import Credential


def build_credential(config, remote_user, ask_password, no_input) -> Credential:
    """Delegated credential: configuration values overridden by options"""
    credential = Credential.from_config(config.remote)
    if remote_user:
        credential.username = remote_user
    if ask_password and can_prompt(no_input):
        credential.password = Prompt.ask(f"Password for {credential.username or 'remote user'}",
                                         password=True, console=console)
    return credential


def resolve_nickname(deployer: Deployer, application: str, version, nickname, no_input):
    """Prompt for the nickname from the targets declared by the release"""
    if nickname:
        return version, nickname
    service = deployer.service
    resolved = service.resolve_release(application, version)
    descriptor = service.load_descriptor(application, resolved)
    nickname = choose(PROMPT_SELECT_NICKNAME, descriptor.nicknames, "environment nickname", no_input)
    return resolved, nickname


@click.command()
@click.argument('applications', required=False)
@click.argument('version', required=False)
@click.argument('nickname', required=False)
@click.option('--user', 'launch_user', help='User recorded in deploy history')
@click.option('--remote-user', help='Delegated user for the remote channel')
@click.option('--ask-password', is_flag=True, help='Prompt for the delegated password')
@click.pass_context
@require_config
@handle_errors
def deploy(ctx, applications, version, nickname, launch_user, remote_user, ask_password):
    """Deploy published releases to an environment

    APPLICATIONS is one name or a comma-separated list; VERSION defaults to
    the newest published release; NICKNAME must be a deploy target declared
    by that release's descriptor. The package is copied by the relay host
    and applied on the target server.

    Examples:

        # Deploy the newest WIDGETS release to QA
        release-engine deploy WIDGETS QA

        # Deploy a specific release
        release-engine deploy WIDGETS 480 PROD --remote-user svc_deploy --ask-password
    """
    config = ctx.obj.config
    no_input = ctx.obj.no_input
    version, nickname = split_version_and_nickname(version, nickname)
    deployer = Deployer(config=config, credential=build_credential(config, remote_user, ask_password, no_input))

    names = split_applications(applications)
    if not names:
        names = [choose(PROMPT_SELECT_APPLICATION, deployer.service.application_names(), "application", no_input)]

    if version is None and len(names) == 1 and can_prompt(no_input):
        releases = [str(r.version) for r in deployer.service.registry.list_releases(names[0])]
        version = ask_version(PROMPT_ENTER_VERSION, no_input, default=releases[0] if releases else "HEAD",
                              available=releases[:10])

    failed = False
    for name in names:
        app_version, app_nickname = resolve_nickname(deployer, name, version, nickname, no_input)
        console.print(f"\n{EMOJI_ROCKET} [cyan]Deploying {name} to {app_nickname.upper()}...[/cyan]")
        result = deployer.deploy(name, app_version, app_nickname, launch_user)
        format_deploy_result(result)
        failed = failed or result.is_failed

    if failed:
        sys.exit(1)
