"""
Shared CLI context for DSS commands.

Holds global options, configuration, logging and the helpers every command
uses to open the persistent workspace and render output.
"""

import logging
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Iterator, Optional

import click

from registry.admin import Admin
from registry.clock import Clock, SystemClock
from registry.events import EventLog
from registry.exceptions import CollectionError, UnauthorizedError
from registry.storage import RegistryStorage, StorageError
from registry.workspace import Workspace, open_workspace

from .config import ConfigurationManager
from .output import OutputFormatter


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.data_dir: Optional[str] = None
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('dss-cli')

    def setup_logging(self) -> None:
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }
        level = log_levels[min(self.verbose, 2)]

        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        # Library loggers (registry.*, nft.*) follow the same verbosity
        for name in ('dss-cli', 'registry', 'nft'):
            logger = logging.getLogger(name)
            logger.setLevel(level)
            if not logger.handlers:
                logger.addHandler(handler)

    def load_config(self) -> None:
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        self.config_manager.load()
        self.logger.debug(f"Configuration sources: {', '.join(self.config_manager.get_sources())}")

    def get_config(self, key_path: str, default: Any = None) -> Any:
        if self.config_manager is None:
            self.load_config()
        return self.config_manager.get(key_path, default)

    def storage(self) -> RegistryStorage:
        data_dir = self.data_dir or self.get_config('storage.data_dir')
        return RegistryStorage(
            Path(data_dir).expanduser(),
            compressed=bool(self.get_config('storage.compressed', False)),
            backup_count=int(self.get_config('storage.backup_count', 5)),
            lock_timeout=float(self.get_config('storage.lock_timeout', 30.0)),
        )

    def event_log(self, clock: Clock) -> EventLog:
        """Audit log written only after the command's changes are saved."""
        return EventLog(path=self.get_config('events.audit_log'), clock=clock, deferred=True)

    @contextmanager
    def workspace(self, readonly: bool = False) -> Iterator[Workspace]:
        """Open the persisted registry for one command."""
        clock = SystemClock()
        with open_workspace(self.storage(), clock=clock, events=self.event_log(clock),
                            readonly=readonly) as workspace:
            yield workspace

    def admin(self, workspace: Workspace, secret: Optional[str] = None) -> Admin:
        """Attach the admin facade using --admin-secret or admin.secret."""
        secret = secret or self.get_config('admin.secret')
        if not secret:
            raise UnauthorizedError(
                "Admin secret required: pass --admin-secret or set DSS_ADMIN_SECRET"
            )
        return Admin.from_secret(workspace.registry, str(secret))

    def output(self, data: Any) -> None:
        """Output data in the selected format."""
        format_type = self.output_format or self.get_config('cli.output_format', 'table')
        click.echo(OutputFormatter(format_type).format(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator reporting library errors and exiting with status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except (CollectionError, StorageError, ValueError, OSError) as e:
            ctx = click.get_current_context().find_object(CLIContext)
            click.echo(f"Error: {e}", err=True)
            if ctx and ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)
            sys.exit(1)

    return wrapper


def parse_timestamp(value: Optional[str]) -> Optional[float]:
    """Accept UNIX seconds or an ISO 8601 datetime."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).timestamp()
    except ValueError:
        raise click.BadParameter(f"Not a UNIX timestamp or ISO 8601 datetime: {value}")
