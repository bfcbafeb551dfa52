"""
Storage commands for DSS CLI.

Inspect, verify and restore the persisted registry document.
"""

from typing import Optional

import click

from registry.exceptions import NotFoundError

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def storage(ctx: CLIContext):
    """Registry document maintenance."""
    ctx.logger.debug("Storage command group invoked")


@storage.command('info')
@pass_context
@handle_cli_error
def storage_info(ctx: CLIContext):
    """Show where the registry document lives and how large it is."""
    ctx.output(ctx.storage().get_storage_info())


@storage.command('verify')
@click.option('--checksum', help='Expected SHA-256 checksum of the document')
@pass_context
@handle_cli_error
def verify_storage(ctx: CLIContext, checksum: Optional[str]):
    """Check the registry document is readable and valid."""
    ctx.output(ctx.storage().verify(expected_checksum=checksum))


@storage.command('backups')
@pass_context
@handle_cli_error
def list_backups(ctx: CLIContext):
    """List backup timestamps, newest first."""
    ctx.output([{'timestamp': timestamp} for timestamp in ctx.storage().list_backups()])


@storage.command('restore')
@click.argument('timestamp')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@pass_context
@handle_cli_error
def restore_backup(ctx: CLIContext, timestamp: str, yes: bool):
    """Replace the registry document with a backup."""
    if not yes:
        click.confirm(f"Restore registry from backup {timestamp}?", abort=True)

    registry_storage = ctx.storage()
    if not registry_storage.restore_backup(timestamp):
        raise NotFoundError(f"Backup {timestamp} not found")

    ctx.output({'restored': timestamp, **registry_storage.verify()})
