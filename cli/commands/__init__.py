"""
DSS CLI Commands Package

Command modules for the DSS Collection CLI.
"""

__all__ = ['admin', 'group', 'nft', 'account', 'config', 'storage']
