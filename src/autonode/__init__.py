"""Keyword-driven auto-node notes for markdown vaults."""

__version__ = "0.1.0"
