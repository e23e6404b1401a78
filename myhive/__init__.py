"""myHive: multi-tenant beekeeping management API."""

__version__ = "0.1.0"
