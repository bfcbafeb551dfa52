"""
Account commands for DSS CLI.
"""

import click

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def account(ctx: CLIContext):
    """Owner collection setup and queries."""
    ctx.logger.debug("Account command group invoked")


@account.command('setup')
@click.argument('owner')
@pass_context
@handle_cli_error
def setup_account(ctx: CLIContext, owner: str):
    """Create an empty collection for an owner (no-op when already set up)."""
    with ctx.workspace() as workspace:
        already = workspace.accounts.is_account_setup(owner)
        workspace.accounts.setup_account(owner)

    ctx.output({'owner': owner.strip(), 'created': not already})


@account.command('is-setup')
@click.argument('owner')
@pass_context
@handle_cli_error
def is_setup(ctx: CLIContext, owner: str):
    """Report whether an owner has a collection."""
    with ctx.workspace(readonly=True) as workspace:
        result = workspace.accounts.is_account_setup(owner)

    ctx.output({'owner': owner, 'is_setup': result})


@account.command('ids')
@click.argument('owner')
@pass_context
@handle_cli_error
def list_ids(ctx: CLIContext, owner: str):
    """List the token ids an owner holds."""
    with ctx.workspace(readonly=True) as workspace:
        ids = workspace.accounts.get_ids(owner)

    ctx.output({'owner': owner, 'ids': ids})


@account.command('list')
@pass_context
@handle_cli_error
def list_accounts(ctx: CLIContext):
    """List every set-up owner with its token count."""
    with ctx.workspace(readonly=True) as workspace:
        rows = [
            {'owner': owner, 'tokens': len(workspace.accounts.collection(owner))}
            for owner in workspace.accounts.owners()
        ]

    ctx.output(rows)
