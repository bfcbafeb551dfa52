"""
DSS Collection - Collection Group Registry

Collection groups, their open/closed lifecycle, the admin capability gating
every privileged operation, the event log and registry persistence.
"""

__version__ = "1.0.0"
