"""
DSS Collection - Registry Exceptions

This module defines the error taxonomy shared by the collection group registry,
the token factory and the per-owner collection stores.
"""


class CollectionError(Exception):
    """Base exception for collection group and token operations."""
    pass


class NotFoundError(CollectionError):
    """Raised when a referenced group, token or account does not exist."""
    pass


class InvalidStateError(CollectionError):
    """Raised when an operation is not legal in the current lifecycle state."""
    pass


class InvalidArgumentError(CollectionError):
    """Raised when a value is outside its allowed domain."""
    pass


class OutOfWindowError(CollectionError):
    """Raised when minting is attempted outside a group's time window."""

    def __init__(self, group_id: int, now: float, start_time: float, end_time: float,
                 message: str = None):
        self.group_id = group_id
        self.now = now
        self.start_time = start_time
        self.end_time = end_time
        if message is None:
            message = (
                f"Collection group {group_id} is not mintable at {now}: "
                f"window is [{start_time}, {end_time}]"
            )
        super().__init__(message)


class UnauthorizedError(CollectionError):
    """Raised when a privileged operation is attempted without the admin capability."""
    pass
