"""
DSS Collection - Collection Group Registry

This module provides the registry owning every collection group: id allocation,
the open/closed group lifecycle, edition membership and token minting. All
mutations happen under a single writer lock and either fully apply or leave the
registry untouched.
"""

import logging
from threading import RLock
from typing import Dict, List, Optional

from pydantic import ValidationError

from nft.collections import Collection
from nft.token import NFT, TokenFactory

from .admin import Admin, AdminCredential, requires_admin
from .clock import Clock, SystemClock
from .events import EventLog, EventType
from .exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from .schema import CollectionGroup, GroupSnapshot, RegistryState, TokenData


class CollectionGroupRegistry:
    """Registry of collection groups and the global token supply."""

    def __init__(self, clock: Optional[Clock] = None, events: Optional[EventLog] = None):
        """
        Initialize an empty registry.

        Args:
            clock: Timestamp source for time-bound checks and mint timestamps
            events: Event log receiving every state change
        """
        self.logger = logging.getLogger(__name__)
        self.clock = clock or SystemClock()
        self.events = events if events is not None else EventLog(clock=self.clock)
        self._lock = RLock()

        self._groups: Dict[int, CollectionGroup] = {}
        self._next_group_id = 1
        self._total_supply = 0
        self._admin_digest: Optional[str] = None

        self._factory = TokenFactory(self.events, self._groups.get)

    # Authority

    def issue_admin(self) -> Admin:
        """Create the single admin capability; only possible once per registry."""
        with self._lock:
            if self._admin_digest is not None:
                raise InvalidStateError("Admin capability has already been issued")

            credential = AdminCredential.generate()
            self._admin_digest = credential.digest()
            self.logger.info("Issued admin capability")
            return Admin(self, credential)

    @property
    def has_admin(self) -> bool:
        return self._admin_digest is not None

    # Privileged operations

    @requires_admin
    def create_group(self, name: str, product_path: str,
                     start_time: Optional[float] = None,
                     end_time: Optional[float] = None,
                     time_bound: bool = False) -> int:
        """Create an open collection group and return its id."""
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("Collection group name must be a non-empty string")
        if not isinstance(product_path, str) or not product_path:
            raise InvalidArgumentError("Product path must be a non-empty string")

        with self._lock:
            try:
                group = CollectionGroup(
                    id=self._next_group_id,
                    name=name,
                    product_path=product_path,
                    start_time=start_time,
                    end_time=end_time,
                    time_bound=time_bound,
                )
            except ValidationError as e:
                raise InvalidArgumentError(f"Invalid collection group definition: {e}") from e

            self._groups[group.id] = group
            self._next_group_id += 1

            self.events.emit(
                EventType.GROUP_CREATED,
                id=group.id,
                name=group.name,
                product_path=group.product_path,
                start_time=group.start_time,
                end_time=group.end_time,
                time_bound=group.time_bound,
            )
            self.logger.info(f"Created collection group {group.id} ({name})")
            return group.id

    @requires_admin
    def close_group(self, group_id: int) -> int:
        """Close an open group; closing is irreversible."""
        with self._lock:
            group = self._require_group(group_id)
            group.close()

            self.events.emit(EventType.GROUP_CLOSED, id=group_id)
            self.logger.info(f"Closed collection group {group_id}")
            return group_id

    @requires_admin
    def add_edition(self, group_id: int, edition_id: int) -> None:
        """Attach an edition to an open group."""
        if isinstance(edition_id, bool) or not isinstance(edition_id, int) or edition_id < 0:
            raise InvalidArgumentError(f"Edition id must be a non-negative integer, got {edition_id!r}")

        with self._lock:
            group = self._require_group(group_id)
            group.add_edition(edition_id)

            self.events.emit(EventType.EDITION_ADDED, group_id=group_id, edition_id=edition_id)
            self.logger.info(f"Added edition {edition_id} to collection group {group_id}")

    @requires_admin
    def mint(self, group_id: int, completed_by: str, level: int) -> NFT:
        """
        Mint a token from a closed group.

        Raises:
            NotFoundError: Unknown group
            InvalidStateError: Group still open
            InvalidArgumentError: Level outside 0..10 or bad attribution
            OutOfWindowError: Time-bound group outside its window
        """
        if not isinstance(completed_by, str):
            raise InvalidArgumentError("completed_by must be a string")

        with self._lock:
            group = self._require_group(group_id)
            now = self.clock.now()
            group.check_mintable(level, now)

            token = self._factory.build(
                token_id=self._total_supply + 1,
                group_id=group_id,
                serial_number=group.num_minted + 1,
                completed_by=completed_by,
                level=level,
                timestamp=now,
            )

            group.num_minted += 1
            self._total_supply += 1
            return token

    # Queries

    def _require_group(self, group_id: int) -> CollectionGroup:
        group = self._groups.get(group_id)
        if group is None:
            raise NotFoundError(f"Collection group {group_id} not found")
        return group

    def get_group(self, group_id: int) -> GroupSnapshot:
        """Immutable snapshot of a group."""
        with self._lock:
            return self._require_group(group_id).snapshot()

    def list_groups(self) -> List[GroupSnapshot]:
        with self._lock:
            return [self._groups[gid].snapshot() for gid in sorted(self._groups)]

    def group_exists(self, group_id: int) -> bool:
        with self._lock:
            return group_id in self._groups

    @property
    def total_supply(self) -> int:
        with self._lock:
            return self._total_supply

    @property
    def next_group_id(self) -> int:
        with self._lock:
            return self._next_group_id

    def create_empty_collection(self, owner: Optional[str] = None) -> Collection:
        """New collection store wired to this registry's event log."""
        return Collection(self.events, owner=owner)

    # Persistence

    def export_state(self, accounts: Optional[Dict[str, List[TokenData]]] = None) -> RegistryState:
        """Build the persisted document for this registry."""
        with self._lock:
            return RegistryState(
                total_supply=self._total_supply,
                next_group_id=self._next_group_id,
                admin_digest=self._admin_digest,
                groups={gid: group.model_copy(deep=True) for gid, group in self._groups.items()},
                accounts=accounts or {},
            )

    @classmethod
    def from_state(cls, state: RegistryState, clock: Optional[Clock] = None,
                   events: Optional[EventLog] = None) -> 'CollectionGroupRegistry':
        """Rebuild a registry from a persisted document; counters carry over."""
        registry = cls(clock=clock, events=events)
        for gid, group in state.groups.items():
            registry._groups[gid] = group.model_copy(deep=True)
        registry._next_group_id = state.next_group_id
        registry._total_supply = state.total_supply
        registry._admin_digest = state.admin_digest
        return registry

    def get_stats(self) -> Dict[str, int]:
        """Registry-wide counters."""
        with self._lock:
            return {
                'total_groups': len(self._groups),
                'open_groups': len([g for g in self._groups.values() if g.open]),
                'closed_groups': len([g for g in self._groups.values() if not g.open]),
                'total_supply': self._total_supply,
                'next_group_id': self._next_group_id,
            }

    def __repr__(self) -> str:
        return f"CollectionGroupRegistry(groups={len(self._groups)}, total_supply={self._total_supply})"
