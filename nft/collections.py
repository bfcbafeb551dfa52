"""
DSS Collection - Per-Owner Collection Store

This module provides the keyed holding area for one owner's tokens. Custody is
exclusive: depositing consumes the caller's handle, withdrawing hands out the
only live handle and frees the slot.
"""

import logging
from threading import RLock
from typing import Dict, Iterable, List, Optional

from registry.events import EventLog, EventType
from registry.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from registry.schema import TokenData

from .token import NFT, TokenView


class Collection:
    """Holds zero or more tokens by id for a single owner."""

    def __init__(self, events: EventLog, owner: Optional[str] = None):
        """
        Initialize collection.

        Args:
            events: Event log receiving Deposit/Withdraw/Burned events
            owner: Owner address the events are tagged with, if any
        """
        self.logger = logging.getLogger(__name__)
        self.events = events
        self.owner = owner
        self._owned: Dict[int, NFT] = {}
        self._disposed = False
        self._lock = RLock()

    def _ensure_usable(self) -> None:
        if self._disposed:
            raise InvalidStateError("Collection has been disposed")

    def withdraw(self, token_id: int) -> NFT:
        """Remove a token and return the owning handle."""
        with self._lock:
            self._ensure_usable()
            token = self._owned.pop(token_id, None)
            if token is None:
                raise NotFoundError(f"Token {token_id} not found in collection")

            self.events.emit(EventType.WITHDRAW, id=token_id, owner=self.owner)
            self.logger.debug(f"Withdrew token {token_id} from {self.owner}")
            return token

    def deposit(self, token: NFT) -> None:
        """Take custody of a token, voiding the caller's handle."""
        with self._lock:
            self._ensure_usable()
            held = token.move()
            token_id = held.id

            # Ids are globally unique, a collision means the old entry is stale
            previous = self._owned.pop(token_id, None)
            if previous is not None:
                self.logger.warning(f"Token id collision on {token_id}; destroying previous entry")
                previous.destroy(self.events)

            self._owned[token_id] = held
            self.events.emit(EventType.DEPOSIT, id=token_id, owner=self.owner)
            self.logger.debug(f"Deposited token {token_id} into {self.owner}")

    def batch_deposit(self, source: 'Collection') -> List[int]:
        """
        Move every token out of source into this collection, then dispose source.

        Both collections are checked before any token leaves the source, so a
        disposed target or source fails with nothing moved. Tokens then move
        one at a time in the source's enumeration order.

        Returns:
            Ids moved, in order
        """
        if source is self:
            raise InvalidArgumentError("Cannot batch deposit a collection into itself")

        with self._lock:
            self._ensure_usable()
            token_ids = source.get_ids()

            moved = []
            for token_id in token_ids:
                self.deposit(source.withdraw(token_id))
                moved.append(token_id)

            source.dispose()
            return moved

    def burn(self, token_id: int) -> None:
        """Withdraw a token and destroy it permanently."""
        with self._lock:
            token = self.withdraw(token_id)
            token.destroy(self.events)
            self.logger.info(f"Burned token {token_id} held by {self.owner}")

    def get_ids(self) -> List[int]:
        """Snapshot of held ids, in deposit order."""
        with self._lock:
            self._ensure_usable()
            return list(self._owned.keys())

    def borrow(self, token_id: int) -> TokenView:
        """Borrow a read-only reference; fails when absent."""
        view = self.borrow_nft(token_id)
        if view is None:
            raise NotFoundError(f"Token {token_id} not found in collection")
        return view

    def borrow_nft(self, token_id: int) -> Optional[TokenView]:
        """Borrow a read-only reference, or None when absent."""
        with self._lock:
            self._ensure_usable()
            token = self._owned.get(token_id)
            return token.view() if token is not None else None

    def dispose(self) -> None:
        """Retire an empty collection; it cannot be used afterwards."""
        with self._lock:
            self._ensure_usable()
            if self._owned:
                raise InvalidStateError(
                    f"Cannot dispose a collection still holding {len(self._owned)} tokens"
                )
            self._disposed = True

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def export_tokens(self) -> List[TokenData]:
        """Token records for persistence, in deposit order."""
        with self._lock:
            self._ensure_usable()
            return [token.data for token in self._owned.values()]

    @classmethod
    def restore(cls, events: EventLog, owner: Optional[str],
                tokens: Iterable[TokenData]) -> 'Collection':
        """Rebuild a collection from persisted records without emitting events."""
        collection = cls(events, owner=owner)
        for data in tokens:
            collection._owned[data.id] = NFT(data)
        return collection

    def __len__(self) -> int:
        with self._lock:
            return len(self._owned)

    def __contains__(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._owned

    def __repr__(self) -> str:
        return f"Collection(owner={self.owner!r}, tokens={len(self._owned)})"
