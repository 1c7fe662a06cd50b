"""Current version command"""

import click

from ..decorators import handle_errors, require_config
from ..utils.output import format_current_versions
from ...api.query import QueryInterface


@click.command()
@click.argument('application')
@click.pass_context
@require_config
@handle_errors
def current(ctx, application):
    """Show the version currently deployed to each environment"""
    application = application.upper()
    format_current_versions(application, QueryInterface(config=ctx.obj.config).current_versions(application))
