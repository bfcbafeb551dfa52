"""
DSS Collection - Admin Capability

The admin capability is the single authority boundary of the registry: whoever
holds its secret may create and close groups, attach editions and mint; nobody
else may do any of these. Only a SHA-256 digest of the secret is ever stored.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Optional

from .exceptions import InvalidStateError, UnauthorizedError

if TYPE_CHECKING:
    from nft.collections import Collection
    from nft.token import NFT
    from .manager import CollectionGroupRegistry
    from .schema import GroupSnapshot


@dataclass(frozen=True)
class AdminCredential:
    """Bearer credential for privileged registry operations."""
    secret: str

    @classmethod
    def generate(cls) -> 'AdminCredential':
        return cls(secret=secrets.token_hex(32))

    def digest(self) -> str:
        return hashlib.sha256(self.secret.encode('utf-8')).hexdigest()

    def __repr__(self) -> str:
        return "AdminCredential(secret=<redacted>)"


def verify_credential(expected_digest: Optional[str], credential: Optional[AdminCredential]) -> None:
    """Raise UnauthorizedError unless credential matches the stored digest."""
    if expected_digest is None:
        raise UnauthorizedError("No admin capability has been issued")
    if not isinstance(credential, AdminCredential):
        raise UnauthorizedError("Admin credential required")
    if not hmac.compare_digest(credential.digest(), expected_digest):
        raise UnauthorizedError("Invalid admin credential")


def requires_admin(method):
    """Check the `credential` keyword against the registry before running method."""
    @wraps(method)
    def wrapper(self, *args, credential: Optional[AdminCredential] = None, **kwargs):
        verify_credential(self._admin_digest, credential)
        return method(self, *args, **kwargs)
    return wrapper


class Admin:
    """Facade over every privileged registry operation."""

    def __init__(self, registry: 'CollectionGroupRegistry', credential: AdminCredential):
        verify_credential(registry._admin_digest, credential)
        self.registry = registry
        self._credential = credential

    @classmethod
    def from_secret(cls, registry: 'CollectionGroupRegistry', secret: str) -> 'Admin':
        """Re-attach a facade from a previously issued secret."""
        return cls(registry, AdminCredential(secret=secret))

    @property
    def secret(self) -> str:
        return self._credential.secret

    def create_collection_group(self, name: str, product_path: str,
                                start_time: Optional[float] = None,
                                end_time: Optional[float] = None,
                                time_bound: bool = False) -> int:
        return self.registry.create_group(
            name, product_path,
            start_time=start_time, end_time=end_time, time_bound=time_bound,
            credential=self._credential,
        )

    def create_time_bound_collection_group(self, name: str, product_path: str,
                                           start_time: float, end_time: float) -> int:
        return self.create_collection_group(
            name, product_path, start_time=start_time, end_time=end_time, time_bound=True
        )

    def close_collection_group(self, group_id: int) -> int:
        return self.registry.close_group(group_id, credential=self._credential)

    def add_edition_to_group(self, group_id: int, edition_id: int) -> None:
        self.registry.add_edition(group_id, edition_id, credential=self._credential)

    def mint_nft(self, group_id: int, completed_by: str, level: int) -> 'NFT':
        return self.registry.mint(group_id, completed_by, level, credential=self._credential)

    def mint_to(self, recipient: 'Collection', group_id: int, completed_by: str, level: int) -> int:
        """Mint and deposit straight into a recipient collection; returns the token id."""
        if recipient.is_disposed:
            raise InvalidStateError("Recipient collection has been disposed")
        token = self.mint_nft(group_id, completed_by, level)
        token_id = token.id
        recipient.deposit(token)
        return token_id

    def get_collection_group(self, group_id: int) -> 'GroupSnapshot':
        return self.registry.get_group(group_id)

    def __repr__(self) -> str:
        return f"Admin(registry={self.registry!r})"
