"""
DSS Collection - Minted Tokens

This module provides the owned token handle, its read-only borrowed view and the
factory that assigns ids, serial numbers and mint timestamps.
"""

import logging
from typing import Any, Callable, List, Optional

from registry.events import EventLog, EventType
from registry.exceptions import InvalidStateError, NotFoundError
from registry.schema import GroupSnapshot, TokenData

from .metadata import resolve_view, supported_views


class NFT:
    """
    Owned handle to a minted token.

    Exactly one live handle exists per token. Moving the token (into a
    collection, or destroying it) voids the handle the caller held.
    """

    __slots__ = ('_data', '_moved')

    def __init__(self, data: TokenData):
        self._data = data
        self._moved = False

    @property
    def data(self) -> TokenData:
        self._ensure_live()
        return self._data

    @property
    def id(self) -> int:
        return self.data.id

    @property
    def group_id(self) -> int:
        return self.data.group_id

    @property
    def serial_number(self) -> int:
        return self.data.serial_number

    @property
    def completed_by(self) -> str:
        return self.data.completed_by

    @property
    def mint_timestamp(self) -> float:
        return self.data.mint_timestamp

    @property
    def level(self) -> int:
        return self.data.level

    @property
    def is_moved(self) -> bool:
        return self._moved

    def _ensure_live(self) -> None:
        if self._moved:
            raise InvalidStateError(f"Token handle for {self._data.id} has already been moved")

    def move(self) -> 'NFT':
        """Void this handle and return a fresh one for the new custodian."""
        self._ensure_live()
        self._moved = True
        return NFT(self._data)

    def destroy(self, events: EventLog) -> None:
        """Permanently remove the token from circulation."""
        self._ensure_live()
        self._moved = True
        events.emit(EventType.BURNED, id=self._data.id)

    def view(self) -> 'TokenView':
        """Borrow a read-only view without transferring custody."""
        return TokenView(self.data)

    def __repr__(self) -> str:
        state = "moved" if self._moved else "live"
        return f"NFT(id={self._data.id}, group_id={self._data.group_id}, {state})"


class TokenView:
    """Non-owning reference to a stored token; readable, never movable."""

    __slots__ = ('_data',)

    def __init__(self, data: TokenData):
        self._data = data

    @property
    def id(self) -> int:
        return self._data.id

    @property
    def group_id(self) -> int:
        return self._data.group_id

    @property
    def serial_number(self) -> int:
        return self._data.serial_number

    @property
    def completed_by(self) -> str:
        return self._data.completed_by

    @property
    def mint_timestamp(self) -> float:
        return self._data.mint_timestamp

    @property
    def level(self) -> int:
        return self._data.level

    def to_dict(self) -> dict:
        return self._data.model_dump()

    def get_views(self) -> List[str]:
        """List the metadata views this token can resolve."""
        return supported_views()

    def resolve_view(self, view: str, group: Optional[GroupSnapshot] = None,
                     thumbnail_base_url: Optional[str] = None) -> Optional[Any]:
        """Resolve a metadata view for this token."""
        return resolve_view(self, view, group=group, thumbnail_base_url=thumbnail_base_url)

    def __eq__(self, other) -> bool:
        if isinstance(other, TokenView):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data.id)

    def __repr__(self) -> str:
        return f"TokenView(id={self._data.id}, serial_number={self._data.serial_number})"


class TokenFactory:
    """Builds tokens for the registry; reachable only through a group mint."""

    def __init__(self, events: EventLog, group_lookup: Callable[[int], Optional[Any]]):
        """
        Initialize token factory.

        Args:
            events: Event log receiving Minted events
            group_lookup: Returns the stored group for an id, or None
        """
        self.logger = logging.getLogger(__name__)
        self.events = events
        self._group_lookup = group_lookup

    def build(self, token_id: int, group_id: int, serial_number: int,
              completed_by: str, level: int, timestamp: float) -> NFT:
        """
        Construct a token and emit its Minted event.

        Raises:
            NotFoundError: If group_id does not correspond to a stored group
        """
        if self._group_lookup(group_id) is None:
            raise NotFoundError(f"Collection group {group_id} not found")

        data = TokenData(
            id=token_id,
            group_id=group_id,
            serial_number=serial_number,
            completed_by=completed_by,
            mint_timestamp=timestamp,
            level=level,
        )

        self.events.emit(EventType.MINTED, **data.model_dump())
        self.logger.info(
            f"Minted token {token_id} (group {group_id}, serial {serial_number}, level {level})"
        )
        return NFT(data)
