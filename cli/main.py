#!/usr/bin/env python3
"""
DSS Collection - Command Line Interface

A CLI for administering collection groups, minting tokens and managing
owner collections backed by a persistent registry document.
"""

from typing import Optional

import click

from .commands.account import account
from .commands.admin import admin
from .commands.config import config
from .commands.group import group
from .commands.nft import nft
from .commands.storage import storage
from .context import CLIContext, handle_cli_error, pass_context
from .output import OUTPUT_FORMATS


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c', help='Path to configuration file')
@click.option('--profile', type=click.Choice(['production', 'development']),
              help='Configuration profile')
@click.option('--output-format', '-o', type=click.Choice(OUTPUT_FORMATS),
              help='Output format')
@click.option('--data-dir', type=click.Path(file_okay=False),
              help='Directory holding the registry document')
@click.option('--verbose', '-v', count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option('1.0.0', prog_name='dss')
@pass_context
@handle_cli_error
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], data_dir: Optional[str], verbose: int):
    """
    DSS Collection command line interface.

    Examples:
        dss admin init
        dss group create --name "Finals2024" --product-path /public/finals
        dss group close 1
        dss account setup 0xf8d6e0586b0a20c7
        dss nft mint --group-id 1 --completed-by alice --level 3 --recipient 0xf8d6e0586b0a20c7
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format
    ctx.data_dir = data_dir
    ctx.verbose = verbose

    ctx.setup_logging()
    ctx.load_config()
    ctx.logger.debug("CLI initialized with context")


cli.add_command(admin)
cli.add_command(group)
cli.add_command(nft)
cli.add_command(account)
cli.add_command(config)
cli.add_command(storage)


def main():
    cli()


if __name__ == '__main__':
    main()
