"""
DSS Collection - Registry Schema Models

This module defines the Pydantic models for collection groups, their immutable
snapshots, minted token records and the persisted registry document.
"""

from typing import Dict, FrozenSet, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import InvalidArgumentError, InvalidStateError, OutOfWindowError


# Highest level a minted token may carry
MAX_LEVEL = 10


class TokenData(BaseModel):
    """Immutable fields of a minted token."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Global token id, never reused")
    group_id: int = Field(..., ge=1, description="Owning collection group")
    serial_number: int = Field(..., ge=1, description="Position within the group")
    completed_by: str = Field(..., description="Free-form attribution")
    mint_timestamp: float = Field(..., description="Clock value at mint time")
    level: int = Field(..., ge=0, le=MAX_LEVEL)


class GroupSnapshot(BaseModel):
    """Read-only copy of a collection group's public fields."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    product_path: str
    open: bool
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    time_bound: bool = False
    num_minted: int = 0
    edition_ids: FrozenSet[int] = frozenset()


class CollectionGroup(BaseModel):
    """
    A collection group and its open/closed lifecycle.

    Groups start open. Editions may only be attached while open; minting is
    only legal once the group is closed. Closing is one-way.
    """

    id: int = Field(..., ge=1)
    name: str
    product_path: str
    open: bool = True
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    time_bound: bool = False
    num_minted: int = Field(default=0, ge=0)
    edition_ids: Set[int] = Field(default_factory=set)

    @model_validator(mode='after')
    def validate_window(self):
        """Time-bound groups need an ordered start/end window."""
        if self.time_bound:
            if self.start_time is None or self.end_time is None:
                raise InvalidArgumentError("Time-bound collection groups require start and end times")
            if self.start_time > self.end_time:
                raise InvalidArgumentError(
                    f"Start time {self.start_time} is after end time {self.end_time}"
                )
        return self

    def close(self) -> None:
        """Transition open -> closed."""
        if not self.open:
            raise InvalidStateError(f"Collection group {self.id} is already closed")
        self.open = False

    def add_edition(self, edition_id: int) -> None:
        """Record edition membership; only legal while open."""
        if not self.open:
            raise InvalidStateError(
                f"Cannot add edition {edition_id}: collection group {self.id} is closed"
            )
        self.edition_ids.add(edition_id)

    def is_within_window(self, now: float) -> bool:
        """Check the time-bound window, boundaries inclusive."""
        if not self.time_bound:
            return True
        return self.start_time <= now <= self.end_time

    def check_mintable(self, level: int, now: float) -> None:
        """
        Validate every mint precondition without mutating anything.

        Raises:
            InvalidStateError: If the group is still open
            InvalidArgumentError: If the level is outside 0..MAX_LEVEL
            OutOfWindowError: If now falls outside the time-bound window
        """
        if self.open:
            raise InvalidStateError(f"Collection group {self.id} must be closed before minting")

        if isinstance(level, bool) or not isinstance(level, int) or level < 0 or level > MAX_LEVEL:
            raise InvalidArgumentError(f"Level must be an integer between 0 and {MAX_LEVEL}, got {level!r}")

        if not self.is_within_window(now):
            raise OutOfWindowError(self.id, now, self.start_time, self.end_time)

    def snapshot(self) -> GroupSnapshot:
        """Return an immutable copy of the public fields."""
        return GroupSnapshot(
            id=self.id,
            name=self.name,
            product_path=self.product_path,
            open=self.open,
            start_time=self.start_time,
            end_time=self.end_time,
            time_bound=self.time_bound,
            num_minted=self.num_minted,
            edition_ids=frozenset(self.edition_ids),
        )


class RegistryState(BaseModel):
    """Complete persisted registry document."""

    version: str = Field(default="1.0.0", description="Document schema version")
    total_supply: int = Field(default=0, ge=0)
    next_group_id: int = Field(default=1, ge=1)
    admin_digest: Optional[str] = Field(None, description="SHA-256 digest of the admin secret")
    groups: Dict[int, CollectionGroup] = Field(default_factory=dict)
    accounts: Dict[str, List[TokenData]] = Field(default_factory=dict)

    @model_validator(mode='after')
    def validate_counters(self):
        """Counters must stay ahead of every stored id."""
        if self.groups and max(self.groups) >= self.next_group_id:
            raise ValueError('next_group_id must exceed every stored group id')

        for tokens in self.accounts.values():
            for token in tokens:
                if token.id > self.total_supply:
                    raise ValueError(f'Token {token.id} exceeds total supply {self.total_supply}')
                if token.group_id not in self.groups:
                    raise ValueError(f'Token {token.id} references unknown group {token.group_id}')

        return self
