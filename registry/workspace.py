"""
DSS Collection - Persistent Workspace

Ties a registry and its account directory to on-disk storage for one
load-modify-save cycle. The storage lock is held for the whole cycle so
concurrent processes serialize on the registry document.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from nft.accounts import AccountDirectory

from .clock import Clock
from .events import EventLog
from .manager import CollectionGroupRegistry
from .storage import RegistryStorage


class Workspace:
    """A loaded registry plus its accounts."""

    def __init__(self, registry: CollectionGroupRegistry, accounts: AccountDirectory):
        self.registry = registry
        self.accounts = accounts

    @classmethod
    def load(cls, storage: RegistryStorage, clock: Optional[Clock] = None,
             events: Optional[EventLog] = None) -> 'Workspace':
        state = storage.load_state()
        registry = CollectionGroupRegistry.from_state(state, clock=clock, events=events)
        accounts = AccountDirectory.from_state(registry.events, state.accounts)
        return cls(registry, accounts)

    def save(self, storage: RegistryStorage) -> str:
        state = self.registry.export_state(accounts=self.accounts.export_state())
        return storage.save_state(state)


@contextmanager
def open_workspace(storage: RegistryStorage, clock: Optional[Clock] = None,
                   events: Optional[EventLog] = None,
                   readonly: bool = False) -> Iterator[Workspace]:
    """
    Load a workspace, yield it, and save it back unless an error escaped.

    A failing operation leaves the stored document untouched. Events held by
    a deferred event log reach its sink only once the save has succeeded.
    """
    logger = logging.getLogger(__name__)
    with storage.locked():
        workspace = Workspace.load(storage, clock=clock, events=events)
        log = workspace.registry.events
        try:
            yield workspace
            if not readonly:
                checksum = workspace.save(storage)
                logger.debug(f"Saved registry state (checksum {checksum})")
        except BaseException:
            log.discard()
            raise

        if readonly:
            log.discard()
        else:
            log.flush()
