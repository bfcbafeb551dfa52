"""
DSS Collection CLI

Command line interface over the collection group registry.
"""

__version__ = "1.0.0"
