"""
Pytest configuration and fixtures for DSS Collection tests.
"""

import pytest

from nft.accounts import AccountDirectory
from registry.clock import FixedClock
from registry.events import EventLog
from registry.manager import CollectionGroupRegistry
from registry.storage import RegistryStorage


@pytest.fixture
def clock():
    """Manually driven clock starting at t=1000."""
    return FixedClock(1000.0)


@pytest.fixture
def events(clock):
    """Fresh in-memory event log on the fixed clock."""
    return EventLog(clock=clock)


@pytest.fixture
def registry(clock, events):
    """Empty registry on the fixed clock."""
    return CollectionGroupRegistry(clock=clock, events=events)


@pytest.fixture
def admin(registry):
    """Admin capability for the registry."""
    return registry.issue_admin()


@pytest.fixture
def open_group(admin):
    """Id of an open collection group."""
    return admin.create_collection_group("Finals2024", "/public/finals2024")


@pytest.fixture
def closed_group(admin, open_group):
    """Id of a closed (mintable) collection group."""
    admin.close_collection_group(open_group)
    return open_group


@pytest.fixture
def accounts(events):
    """Account directory sharing the registry's event log."""
    return AccountDirectory(events)


@pytest.fixture
def registry_storage(tmp_path):
    """Registry storage in a temporary directory."""
    return RegistryStorage(storage_dir=tmp_path / "data", backup_count=3, lock_timeout=2.0)
