"""
Admin capability commands for DSS CLI.
"""

import click

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def admin(ctx: CLIContext):
    """Admin capability management."""
    ctx.logger.debug("Admin command group invoked")


@admin.command('init')
@pass_context
@handle_cli_error
def init_admin(ctx: CLIContext):
    """
    Issue the registry's admin capability.

    The secret is printed once; store it and pass it with --admin-secret or
    DSS_ADMIN_SECRET. It cannot be recovered.
    """
    with ctx.workspace() as workspace:
        capability = workspace.registry.issue_admin()

    ctx.output({
        'admin_secret': capability.secret,
        'note': 'Store this secret now; it cannot be shown again.',
    })
