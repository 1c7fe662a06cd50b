"""Deploy history command"""

import click

from ..decorators import handle_errors, require_config
from ..utils.output import format_history
from ...api.query import QueryInterface


@click.command()
@click.argument('application', required=False)
@click.option('--env', 'nickname', help='Filter by environment nickname')
@click.option('--limit', type=int, default=20, show_default=True, help='Maximum number of records')
@click.pass_context
@require_config
@handle_errors
def history(ctx, application, nickname, limit):
    """Show deploy history, most recent first"""
    format_history(QueryInterface(config=ctx.obj.config).history(application, nickname, limit))
