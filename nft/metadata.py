"""
DSS Collection - Metadata Views

Structural metadata views rendered from a token's own fields and, where
available, its collection group. Display formatting beyond these fields is left
to external resolvers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from registry.schema import GroupSnapshot


DEFAULT_THUMBNAIL_BASE_URL = "https://assets.dss-collection.example/tokens"


class MetadataView(str, Enum):
    """Supported metadata view identifiers."""
    DISPLAY = "Display"
    SERIAL = "Serial"
    TRAITS = "Traits"


class DisplayView(BaseModel):
    """Name, description and thumbnail for a token."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    thumbnail: str


def supported_views() -> List[str]:
    """List view identifiers every token resolves."""
    return [view.value for view in MetadataView]


def resolve_view(token: Any, view: str, group: Optional[GroupSnapshot] = None,
                 thumbnail_base_url: Optional[str] = None) -> Optional[Any]:
    """
    Resolve a metadata view for a token.

    Args:
        token: Borrowed token view (any object exposing the token fields)
        view: View identifier, see MetadataView
        group: Snapshot of the owning group, used for the display name
        thumbnail_base_url: Base URL thumbnails are served from

    Returns:
        The resolved view, or None for unsupported identifiers
    """
    try:
        kind = MetadataView(view)
    except ValueError:
        return None

    if kind == MetadataView.DISPLAY:
        base_url = (thumbnail_base_url or DEFAULT_THUMBNAIL_BASE_URL).rstrip('/')
        name = group.name if group is not None else f"Collection Group {token.group_id}"
        return DisplayView(
            name=name,
            description=f"{name} #{token.serial_number}, completed by {token.completed_by}",
            thumbnail=f"{base_url}/{token.id}.png",
        )

    if kind == MetadataView.SERIAL:
        return token.serial_number

    traits: Dict[str, Any] = {
        "group_id": token.group_id,
        "level": token.level,
        "completed_by": token.completed_by,
        "mint_timestamp": token.mint_timestamp,
    }
    if group is not None:
        traits["product_path"] = group.product_path
    return traits
