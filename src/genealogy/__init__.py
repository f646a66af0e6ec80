"""genealogy — typed directed graph persisted as a flat edge relation."""

__version__ = "0.1.0"
