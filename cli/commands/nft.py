"""
Token commands for DSS CLI.

Mint tokens into owner collections, inspect them, move them between owners
and burn them.
"""

from typing import Optional

import click

from nft.metadata import MetadataView
from registry.exceptions import NotFoundError

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def nft(ctx: CLIContext):
    """Token minting, custody and queries."""
    ctx.logger.debug("NFT command group invoked")


@nft.command('mint')
@click.option('--group-id', type=int, required=True, help='Closed collection group to mint from')
@click.option('--completed-by', required=True, help='Attribution recorded on the token')
@click.option('--level', type=int, required=True, help='Token level (0-10)')
@click.option('--recipient', required=True, help='Owner whose collection receives the token')
@click.option('--admin-secret', envvar='DSS_ADMIN_SECRET', help='Admin capability secret')
@pass_context
@handle_cli_error
def mint_nft(ctx: CLIContext, group_id: int, completed_by: str, level: int,
             recipient: str, admin_secret: Optional[str]):
    """Mint a token and deposit it into the recipient's collection."""
    with ctx.workspace() as workspace:
        capability = ctx.admin(workspace, admin_secret)
        collection = workspace.accounts.collection(recipient)
        token_id = capability.mint_to(collection, group_id, completed_by, level)
        view = collection.borrow(token_id)

    ctx.output({**view.to_dict(), 'owner': recipient})


@nft.command('supply')
@pass_context
@handle_cli_error
def total_supply(ctx: CLIContext):
    """Show the number of tokens ever minted."""
    with ctx.workspace(readonly=True) as workspace:
        supply = workspace.registry.total_supply

    ctx.output({'total_supply': supply})


@nft.command('show')
@click.argument('owner')
@click.argument('token_id', type=int)
@pass_context
@handle_cli_error
def show_nft(ctx: CLIContext, owner: str, token_id: int):
    """Show a token held by an owner."""
    with ctx.workspace(readonly=True) as workspace:
        view = workspace.accounts.get_nft(owner, token_id)

    if view is None:
        raise NotFoundError(f"Token {token_id} not found in {owner}'s collection")
    ctx.output({**view.to_dict(), 'owner': owner})


@nft.command('views')
@click.argument('owner')
@click.argument('token_id', type=int)
@click.option('--view', 'view_name', type=click.Choice([v.value for v in MetadataView]),
              help='Resolve a single view instead of listing them')
@pass_context
@handle_cli_error
def show_views(ctx: CLIContext, owner: str, token_id: int, view_name: Optional[str]):
    """List or resolve a token's metadata views."""
    with ctx.workspace(readonly=True) as workspace:
        view = workspace.accounts.collection(owner).borrow(token_id)
        group_snapshot = workspace.registry.get_group(view.group_id)

    if view_name is None:
        ctx.output(view.get_views())
        return

    resolved = view.resolve_view(
        view_name,
        group=group_snapshot,
        thumbnail_base_url=ctx.get_config('metadata.thumbnail_base_url'),
    )
    if hasattr(resolved, 'model_dump'):
        resolved = resolved.model_dump()
    elif not isinstance(resolved, dict):
        resolved = {view_name: resolved}
    ctx.output(resolved)


@nft.command('transfer')
@click.argument('sender')
@click.argument('recipient')
@click.argument('token_id', type=int)
@pass_context
@handle_cli_error
def transfer_nft(ctx: CLIContext, sender: str, recipient: str, token_id: int):
    """Move a token from one owner's collection to another's."""
    with ctx.workspace() as workspace:
        workspace.accounts.transfer(sender, recipient, token_id)

    ctx.output({'id': token_id, 'from': sender, 'to': recipient})


@nft.command('burn')
@click.argument('owner')
@click.argument('token_id', type=int)
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@pass_context
@handle_cli_error
def burn_nft(ctx: CLIContext, owner: str, token_id: int, yes: bool):
    """Destroy a token permanently; its id is never reissued."""
    if not yes:
        click.confirm(f"Burn token {token_id} held by {owner}?", abort=True)

    with ctx.workspace() as workspace:
        workspace.accounts.collection(owner).burn(token_id)

    ctx.output({'id': token_id, 'burned': True})
