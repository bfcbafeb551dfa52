"""
DSS Collection - Account Directory

Maps owner addresses to their collection stores: account setup, lookups and
owner-to-owner transfers.
"""

import logging
from threading import RLock
from typing import Dict, List, Optional

from registry.events import EventLog
from registry.exceptions import InvalidArgumentError, NotFoundError
from registry.schema import TokenData

from .collections import Collection
from .token import NFT, TokenView


class AccountDirectory:
    """Owner address -> Collection mapping."""

    def __init__(self, events: EventLog):
        self.logger = logging.getLogger(__name__)
        self.events = events
        self._collections: Dict[str, Collection] = {}
        self._lock = RLock()

    @staticmethod
    def _validate_owner(owner: str) -> str:
        if not isinstance(owner, str) or not owner.strip():
            raise InvalidArgumentError("Owner address must be a non-empty string")
        # Surrounding whitespace is not part of an address
        return owner.strip()

    def setup_account(self, owner: str) -> Collection:
        """Create an empty collection for owner; existing accounts are returned as-is."""
        owner = self._validate_owner(owner)
        with self._lock:
            collection = self._collections.get(owner)
            if collection is None:
                collection = Collection(self.events, owner=owner)
                self._collections[owner] = collection
                self.logger.info(f"Set up account {owner}")
            return collection

    def is_account_setup(self, owner: str) -> bool:
        if not isinstance(owner, str):
            return False
        with self._lock:
            return owner.strip() in self._collections

    def collection(self, owner: str) -> Collection:
        """Get an owner's collection, failing when the account is not set up."""
        owner = self._validate_owner(owner)
        with self._lock:
            collection = self._collections.get(owner)
            if collection is None:
                raise NotFoundError(f"Account {owner} has no collection set up")
            return collection

    def owners(self) -> List[str]:
        with self._lock:
            return sorted(self._collections)

    def deposit(self, owner: str, token: NFT) -> None:
        self.collection(owner).deposit(token)

    def get_ids(self, owner: str) -> List[int]:
        return self.collection(owner).get_ids()

    def get_nft(self, owner: str, token_id: int) -> Optional[TokenView]:
        """Borrow a token's view from an owner's collection, or None."""
        return self.collection(owner).borrow_nft(token_id)

    def transfer(self, sender: str, recipient: str, token_id: int) -> None:
        """Move a token between two owners' collections."""
        source = self.collection(sender)
        target = self.collection(recipient)
        if source is target:
            raise InvalidArgumentError("Sender and recipient must differ")
        if token_id not in source:
            raise NotFoundError(f"Token {token_id} not found in {sender}'s collection")

        target.deposit(source.withdraw(token_id))
        self.logger.info(f"Transferred token {token_id} from {sender} to {recipient}")

    def export_state(self) -> Dict[str, List[TokenData]]:
        with self._lock:
            return {
                owner: collection.export_tokens()
                for owner, collection in self._collections.items()
            }

    @classmethod
    def from_state(cls, events: EventLog,
                   accounts: Dict[str, List[TokenData]]) -> 'AccountDirectory':
        """Rebuild accounts from persisted records without emitting events."""
        directory = cls(events)
        seen = set()
        for owner, tokens in accounts.items():
            for data in tokens:
                if data.id in seen:
                    raise InvalidArgumentError(f"Token {data.id} is held by more than one account")
                seen.add(data.id)
            directory._collections[owner] = Collection.restore(events, owner, tokens)
        return directory
