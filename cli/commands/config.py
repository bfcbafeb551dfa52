"""
Configuration commands for DSS CLI.
"""

import sys

import click

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def config(ctx: CLIContext):
    """Configuration inspection."""
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--show-secrets', is_flag=True, help='Include the admin secret')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, show_secrets: bool):
    """Show the merged configuration."""
    data = {section: dict(values) if isinstance(values, dict) else values
            for section, values in ctx.config_manager.load().items()}

    if not show_secrets and data.get('admin', {}).get('secret'):
        data['admin']['secret'] = '********'

    ctx.output(data)


@config.command('sources')
@pass_context
@handle_cli_error
def show_sources(ctx: CLIContext):
    """List the configuration sources in merge order."""
    ctx.output(ctx.config_manager.get_sources())


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """Validate the merged configuration."""
    errors = ctx.config_manager.validate()
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    ctx.output({'valid': True})
