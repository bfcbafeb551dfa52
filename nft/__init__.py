"""
DSS Collection - NFT Management

This package provides the minted token handle and its borrowed view, per-owner
collection stores, the account directory and metadata views.
"""

from .token import NFT, TokenView, TokenFactory

from .collections import Collection

from .accounts import AccountDirectory

from .metadata import (
    MetadataView,
    DisplayView,
    resolve_view,
    supported_views
)

__version__ = "1.0.0"

__all__ = [
    # Tokens
    "NFT",
    "TokenView",
    "TokenFactory",

    # Custody
    "Collection",
    "AccountDirectory",

    # Metadata views
    "MetadataView",
    "DisplayView",
    "resolve_view",
    "supported_views"
]
