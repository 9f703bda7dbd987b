"""Multi-tenant task tracking: accounts, task lifecycle, queries and reminders."""

__version__ = "0.1.0"
