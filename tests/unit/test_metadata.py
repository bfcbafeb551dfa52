"""
Unit tests for token metadata views.
"""

import pytest

from nft.metadata import DEFAULT_THUMBNAIL_BASE_URL, DisplayView, MetadataView, resolve_view


@pytest.fixture
def view(accounts, admin, closed_group):
    collection = accounts.setup_account("0x01")
    admin.mint_to(collection, closed_group, "alice", 7)
    return collection.borrow(1)


class TestMetadataViews:
    """Test view listing and resolution."""

    def test_supported_views(self, view):
        assert view.get_views() == ["Display", "Serial", "Traits"]

    def test_display_with_group(self, registry, view):
        group = registry.get_group(view.group_id)
        display = view.resolve_view(MetadataView.DISPLAY, group=group,
                                    thumbnail_base_url="https://cdn.example/t/")

        assert isinstance(display, DisplayView)
        assert display.name == "Finals2024"
        assert display.description == "Finals2024 #1, completed by alice"
        assert display.thumbnail == "https://cdn.example/t/1.png"

    def test_display_without_group(self, view):
        display = view.resolve_view("Display")

        assert display.name == f"Collection Group {view.group_id}"
        assert display.thumbnail == f"{DEFAULT_THUMBNAIL_BASE_URL}/1.png"

    def test_serial(self, view):
        assert view.resolve_view("Serial") == 1

    def test_traits(self, registry, view):
        traits = view.resolve_view("Traits", group=registry.get_group(view.group_id))

        assert traits == {
            "group_id": view.group_id,
            "level": 7,
            "completed_by": "alice",
            "mint_timestamp": 1000.0,
            "product_path": "/public/finals2024",
        }

    def test_unknown_view(self, view):
        assert resolve_view(view, "Royalties") is None
