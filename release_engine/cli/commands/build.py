"""Build command implementation"""

import sys

import click

from ..decorators import handle_errors, require_config
from ..utils.interactive import ask_version, choose, split_applications
from ..utils.output import console, format_build_result
from ...api import Builder
from ...constants import EMOJI_PACKAGE, PROMPT_ENTER_VERSION, PROMPT_SELECT_APPLICATION


@click.command()
@click.argument('applications', required=False)
@click.argument('version', required=False)
@click.option('--test-build', '--testBuild', 'test_build', is_flag=True,
              help='Build without publishing to the Releases root')
@click.option('--user', 'launch_user', help='User recorded in logs and notifications')
@click.pass_context
@require_config
@handle_errors
def build(ctx, applications, version, test_build, launch_user):
    """Build application versions into the Releases root

    APPLICATIONS is one name or a comma-separated list; VERSION is a
    repository revision and defaults to HEAD. A version that is already
    built is reported as nothing to do.

    Examples:

        # Build WIDGETS at repository HEAD
        release-engine build WIDGETS

        # Build two applications at revision 480 without publishing
        release-engine build WIDGETS,GADGETS 480 --test-build
    """
    builder = Builder(config=ctx.obj.config)
    no_input = ctx.obj.no_input

    names = split_applications(applications)
    if not names:
        names = [choose(PROMPT_SELECT_APPLICATION, builder.application_names(), "application", no_input)]

    if version is None:
        version = ask_version(PROMPT_ENTER_VERSION, no_input)

    failed = False
    for name in names:
        console.print(f"\n{EMOJI_PACKAGE} [cyan]Building {name} ({version or 'HEAD'})...[/cyan]")
        result = builder.build(name, version, launch_user, test_build)
        format_build_result(result)
        failed = failed or result.is_failed

    if failed:
        sys.exit(1)
