"""Release listing command"""

import click

from ..decorators import handle_errors, require_config
from ..utils.output import format_release_list
from ...api.query import QueryInterface


@click.command()
@click.argument('application', required=False)
@click.option('--limit', type=int, help='Maximum number of releases to show')
@click.pass_context
@require_config
@handle_errors
def releases(ctx, application, limit):
    """List published releases, newest first"""
    format_release_list(QueryInterface(config=ctx.obj.config).releases(application, limit))
