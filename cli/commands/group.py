"""
Collection group commands for DSS CLI.

Create, close and inspect collection groups and attach editions to them.
"""

from typing import Optional

import click

from ..context import CLIContext, handle_cli_error, parse_timestamp, pass_context

admin_secret_option = click.option(
    '--admin-secret', envvar='DSS_ADMIN_SECRET', help='Admin capability secret'
)


@click.group()
@pass_context
def group(ctx: CLIContext):
    """Collection group administration and queries."""
    ctx.logger.debug("Group command group invoked")


@group.command('create')
@click.option('--name', required=True, help='Collection group name')
@click.option('--product-path', required=True, help='Path of the external product definition')
@click.option('--start', help='Mint window start (UNIX seconds or ISO 8601)')
@click.option('--end', help='Mint window end (UNIX seconds or ISO 8601)')
@admin_secret_option
@pass_context
@handle_cli_error
def create_group(ctx: CLIContext, name: str, product_path: str, start: Optional[str],
                 end: Optional[str], admin_secret: Optional[str]):
    """Create a collection group; giving --start/--end makes it time-bound."""
    start_time = parse_timestamp(start)
    end_time = parse_timestamp(end)
    time_bound = start_time is not None or end_time is not None

    with ctx.workspace() as workspace:
        capability = ctx.admin(workspace, admin_secret)
        group_id = capability.create_collection_group(
            name, product_path, start_time=start_time, end_time=end_time, time_bound=time_bound
        )
        snapshot = workspace.registry.get_group(group_id)

    ctx.output(snapshot.model_dump())


@group.command('close')
@click.argument('group_id', type=int)
@admin_secret_option
@pass_context
@handle_cli_error
def close_group(ctx: CLIContext, group_id: int, admin_secret: Optional[str]):
    """Close a collection group so it can be minted from."""
    with ctx.workspace() as workspace:
        ctx.admin(workspace, admin_secret).close_collection_group(group_id)
        snapshot = workspace.registry.get_group(group_id)

    ctx.output(snapshot.model_dump())


@group.command('add-edition')
@click.argument('group_id', type=int)
@click.argument('edition_id', type=int)
@admin_secret_option
@pass_context
@handle_cli_error
def add_edition(ctx: CLIContext, group_id: int, edition_id: int, admin_secret: Optional[str]):
    """Attach an edition to an open collection group."""
    with ctx.workspace() as workspace:
        ctx.admin(workspace, admin_secret).add_edition_to_group(group_id, edition_id)
        snapshot = workspace.registry.get_group(group_id)

    ctx.output(snapshot.model_dump())


@group.command('show')
@click.argument('group_id', type=int)
@pass_context
@handle_cli_error
def show_group(ctx: CLIContext, group_id: int):
    """Show a collection group."""
    with ctx.workspace(readonly=True) as workspace:
        snapshot = workspace.registry.get_group(group_id)

    ctx.output(snapshot.model_dump())


@group.command('list')
@click.option('--state', type=click.Choice(['open', 'closed', 'all']), default='all',
              help='Filter by lifecycle state')
@pass_context
@handle_cli_error
def list_groups(ctx: CLIContext, state: str):
    """List collection groups."""
    with ctx.workspace(readonly=True) as workspace:
        snapshots = workspace.registry.list_groups()

    if state != 'all':
        snapshots = [s for s in snapshots if s.open == (state == 'open')]

    ctx.output([
        {
            'id': s.id,
            'name': s.name,
            'open': s.open,
            'time_bound': s.time_bound,
            'num_minted': s.num_minted,
            'editions': len(s.edition_ids),
        }
        for s in snapshots
    ])
